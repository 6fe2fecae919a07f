"""
Network API Tests
Tests for: connection requests, answers, listing, status, mutuals, suggestions
"""
from httpx import AsyncClient


async def connect(client: AsyncClient, requester_headers: dict, receiver, receiver_headers: dict) -> dict:
    """Send a request and accept it"""
    sent = await client.post("/api/connections", json={"receiver_id": str(receiver.id)}, headers=requester_headers)
    assert sent.status_code == 201
    accepted = await client.patch(f"/api/connections/{sent.json()['id']}", json={"status": "accepted"},
                                  headers=receiver_headers)
    assert accepted.status_code == 200
    return accepted.json()


class TestRequests:

    async def test_send_request(self, client: AsyncClient, test_user, other_user, auth_headers, other_headers):
        response = await client.post("/api/connections", json={"receiver_id": str(other_user.id)},
                                     headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["requester"]["id"] == str(test_user.id)

        incoming = (await client.get("/api/connections/requests", headers=other_headers)).json()
        assert [c["user"]["id"] for c in incoming] == [str(test_user.id)]
        sent = (await client.get("/api/connections/sent", headers=auth_headers)).json()
        assert [c["user"]["id"] for c in sent] == [str(other_user.id)]

        notifications = (await client.get("/api/notifications", headers=other_headers)).json()
        assert notifications["items"][0]["type"] == "connection"

    async def test_cannot_connect_with_self(self, client: AsyncClient, test_user, auth_headers):
        response = await client.post("/api/connections", json={"receiver_id": str(test_user.id)},
                                     headers=auth_headers)

        assert response.status_code == 400

    async def test_duplicate_in_either_direction(self, client: AsyncClient, test_user, other_user, auth_headers,
                                                 other_headers):
        await client.post("/api/connections", json={"receiver_id": str(other_user.id)}, headers=auth_headers)

        again = await client.post("/api/connections", json={"receiver_id": str(other_user.id)}, headers=auth_headers)
        reverse = await client.post("/api/connections", json={"receiver_id": str(test_user.id)}, headers=other_headers)

        assert again.status_code == 409
        assert reverse.status_code == 409

    async def test_unknown_receiver(self, client: AsyncClient, auth_headers):
        response = await client.post("/api/connections", json={"receiver_id": "missing"}, headers=auth_headers)

        assert response.status_code == 404

    async def test_only_receiver_answers(self, client: AsyncClient, other_user, auth_headers):
        sent = await client.post("/api/connections", json={"receiver_id": str(other_user.id)}, headers=auth_headers)

        response = await client.patch(f"/api/connections/{sent.json()['id']}", json={"status": "accepted"},
                                      headers=auth_headers)

        assert response.status_code == 403

    async def test_answer_only_once(self, client: AsyncClient, other_user, auth_headers, other_headers):
        sent = await client.post("/api/connections", json={"receiver_id": str(other_user.id)}, headers=auth_headers)
        url = f"/api/connections/{sent.json()['id']}"

        await client.patch(url, json={"status": "rejected"}, headers=other_headers)
        response = await client.patch(url, json={"status": "accepted"}, headers=other_headers)

        assert response.status_code == 409

    async def test_rejected_pair_can_retry(self, client: AsyncClient, test_user, other_user, auth_headers,
                                           other_headers):
        sent = await client.post("/api/connections", json={"receiver_id": str(other_user.id)}, headers=auth_headers)
        await client.patch(f"/api/connections/{sent.json()['id']}", json={"status": "rejected"},
                           headers=other_headers)

        retry = await client.post("/api/connections", json={"receiver_id": str(test_user.id)}, headers=other_headers)

        assert retry.status_code == 201
        assert retry.json()["requester"]["id"] == str(other_user.id)
        assert retry.json()["status"] == "pending"


class TestNetwork:

    async def test_accepted_connection_listed_on_both_sides(self, client: AsyncClient, test_user, other_user,
                                                            auth_headers, other_headers):
        await connect(client, auth_headers, other_user, other_headers)

        mine = (await client.get("/api/connections", headers=auth_headers)).json()
        theirs = (await client.get("/api/connections", headers=other_headers)).json()

        assert [c["user"]["id"] for c in mine] == [str(other_user.id)]
        assert [c["user"]["id"] for c in theirs] == [str(test_user.id)]

        profile = (await client.get(f"/api/users/{other_user.id}", headers=auth_headers)).json()
        assert profile["connection_count"] == 1
        assert profile["connection_status"] == "accepted"

    async def test_status(self, client: AsyncClient, test_user, other_user, auth_headers, other_headers):
        none = (await client.get(f"/api/connections/status/{other_user.id}", headers=auth_headers)).json()
        assert none["status"] is None

        await client.post("/api/connections", json={"receiver_id": str(other_user.id)}, headers=auth_headers)

        sent = (await client.get(f"/api/connections/status/{other_user.id}", headers=auth_headers)).json()
        received = (await client.get(f"/api/connections/status/{test_user.id}", headers=other_headers)).json()
        assert (sent["status"], sent["direction"]) == ("pending", "sent")
        assert (received["status"], received["direction"]) == ("pending", "received")

    async def test_remove_connection(self, client: AsyncClient, other_user, auth_headers, other_headers):
        connection = await connect(client, auth_headers, other_user, other_headers)

        response = await client.delete(f"/api/connections/{connection['id']}", headers=other_headers)

        assert response.status_code == 204
        assert (await client.get("/api/connections", headers=auth_headers)).json() == []

    async def test_mutual_connections(self, client: AsyncClient, make_user, auth_for, test_user, other_user,
                                      auth_headers, other_headers):
        shared = await make_user(name="Shared Friend")
        shared_headers = auth_for(shared)
        await connect(client, auth_headers, shared, shared_headers)
        await connect(client, other_headers, shared, shared_headers)

        response = await client.get(f"/api/connections/mutual/{other_user.id}", headers=auth_headers)

        data = response.json()
        assert data["count"] == 1
        assert data["users"][0]["name"] == "Shared Friend"


class TestSuggestions:

    async def test_ranked_by_mutual_connections(self, client: AsyncClient, make_user, auth_for, test_user,
                                                auth_headers):
        friend_a = await make_user(name="Friend A")
        friend_b = await make_user(name="Friend B")
        knows_both = await make_user(name="Knows Both")
        knows_one = await make_user(name="Knows One")
        await make_user(name="Knows Nobody")

        await connect(client, auth_headers, friend_a, auth_for(friend_a))
        await connect(client, auth_headers, friend_b, auth_for(friend_b))
        await connect(client, auth_for(knows_both), friend_a, auth_for(friend_a))
        await connect(client, auth_for(knows_both), friend_b, auth_for(friend_b))
        await connect(client, auth_for(knows_one), friend_a, auth_for(friend_a))

        response = await client.get("/api/connections/suggestions", headers=auth_headers)

        suggestions = response.json()
        names = [s["user"]["name"] for s in suggestions]
        assert names[:3] == ["Knows Both", "Knows One", "Knows Nobody"]
        assert suggestions[0]["mutual_connections"] == 2
        assert suggestions[0]["reason"] == "2 mutual connections"
        assert "Friend A" not in names
        assert "Asha Rao" not in names

    async def test_excludes_pending_requests(self, client: AsyncClient, other_user, auth_headers):
        await client.post("/api/connections", json={"receiver_id": str(other_user.id)}, headers=auth_headers)

        response = await client.get("/api/connections/suggestions", headers=auth_headers)

        assert str(other_user.id) not in [s["user"]["id"] for s in response.json()]

    async def test_same_company_beats_stranger(self, client: AsyncClient, make_user, auth_headers):
        await make_user(name="Colleague", company="Chai Labs")
        await make_user(name="Stranger", company="Elsewhere")

        response = await client.get("/api/connections/suggestions", headers=auth_headers)

        first = response.json()[0]
        assert first["user"]["name"] == "Colleague"
        assert first["reason"] == "Also at Chai Labs"
