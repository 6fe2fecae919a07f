"""
Pitch Room API Tests
Tests for: startup listings, filters, facets, upvotes
"""
from httpx import AsyncClient


async def list_startup(client: AsyncClient, headers: dict, **overrides) -> dict:
    data = {
        "name": "KrishiTech",
        "description": "Soil sensors for smallholder farms",
        "location": "Pune",
        "category": "AgriTech",
        "status": "registered",
        "funding_goal": "50 lakh",
    }
    data.update(overrides)
    response = await client.post("/api/pitches", json=data, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestPitches:

    async def test_create_and_get(self, client: AsyncClient, test_user, auth_headers):
        pitch = await list_startup(client, auth_headers)

        assert pitch["owner"]["id"] == str(test_user.id)
        assert pitch["upvote_count"] == 0

        response = await client.get(f"/api/pitches/{pitch['id']}")
        assert response.json()["name"] == "KrishiTech"

    async def test_filters(self, client: AsyncClient, auth_headers, other_headers):
        await list_startup(client, auth_headers)
        await list_startup(client, other_headers, name="PayLoop", description="UPI billing for kiranas",
                           category="FinTech", location="Mumbai", status="funded")

        funded = (await client.get("/api/pitches", params={"status": "funded"})).json()
        agri = (await client.get("/api/pitches", params={"category": "agritech"})).json()
        mumbai = (await client.get("/api/pitches", params={"location": "mum"})).json()
        upi = (await client.get("/api/pitches", params={"search": "upi"})).json()

        assert [p["name"] for p in funded["items"]] == ["PayLoop"]
        assert [p["name"] for p in agri["items"]] == ["KrishiTech"]
        assert [p["name"] for p in mumbai["items"]] == ["PayLoop"]
        assert [p["name"] for p in upi["items"]] == ["PayLoop"]

    async def test_facets(self, client: AsyncClient, auth_headers):
        await list_startup(client, auth_headers)
        await list_startup(client, auth_headers, name="SoilSense")
        await list_startup(client, auth_headers, name="PayLoop", category="FinTech", location="Mumbai",
                           status="idea")

        facets = (await client.get("/api/pitches/facets")).json()

        assert facets["categories"] == [{"value": "AgriTech", "count": 2}, {"value": "FinTech", "count": 1}]
        assert facets["locations"][0] == {"value": "Pune", "count": 2}
        assert {f["value"] for f in facets["statuses"]} == {"registered", "idea"}

    async def test_only_owner_edits(self, client: AsyncClient, auth_headers, other_headers):
        pitch = await list_startup(client, auth_headers)

        forbidden = await client.patch(f"/api/pitches/{pitch['id']}", json={"status": "acquired"},
                                       headers=other_headers)
        assert forbidden.status_code == 403

        updated = await client.patch(f"/api/pitches/{pitch['id']}", json={"status": "funded"},
                                     headers=auth_headers)
        assert updated.json()["status"] == "funded"

        assert (await client.delete(f"/api/pitches/{pitch['id']}", headers=auth_headers)).status_code == 204
        assert (await client.get(f"/api/pitches/{pitch['id']}")).status_code == 404

    async def test_bad_status(self, client: AsyncClient, auth_headers):
        response = await client.post("/api/pitches", json={"name": "X", "description": "Y", "status": "unicorn"},
                                     headers=auth_headers)

        assert response.status_code == 422


class TestUpvotes:

    async def test_upvote_is_idempotent(self, client: AsyncClient, auth_headers, other_headers):
        pitch = await list_startup(client, auth_headers)

        await client.post(f"/api/pitches/{pitch['id']}/upvote", headers=other_headers)
        response = await client.post(f"/api/pitches/{pitch['id']}/upvote", headers=other_headers)

        assert response.json() == {"pitch_id": pitch["id"], "upvoted": True, "upvote_count": 1}
        detail = (await client.get(f"/api/pitches/{pitch['id']}", headers=other_headers)).json()
        assert detail["upvoted_by_me"] is True

        removed = await client.delete(f"/api/pitches/{pitch['id']}/upvote", headers=other_headers)
        assert removed.json() == {"pitch_id": pitch["id"], "upvoted": False, "upvote_count": 0}

    async def test_upvote_requires_login(self, client: AsyncClient, auth_headers):
        pitch = await list_startup(client, auth_headers)

        response = await client.post(f"/api/pitches/{pitch['id']}/upvote")

        assert response.status_code == 401

    async def test_upvote_unknown_pitch(self, client: AsyncClient, auth_headers):
        response = await client.post("/api/pitches/missing/upvote", headers=auth_headers)

        assert response.status_code == 404
