"""
Messaging API Tests
Tests for: conversations, messages, read receipts, contacts, realtime events
"""
from httpx import AsyncClient

from app.api.v1.endpoints.messaging import handle_client_event
from app.core.database import commit_session, rollback_session
from app.services.message_service import MessageService
from app.services.realtime import notification_hub


class FakeWebSocket:
    """Records what the hub pushes"""

    def __init__(self):
        self.accepted = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        self.sent.append(message)

    def events(self, event_type: str) -> list:
        return [m["data"] for m in self.sent if m["type"] == event_type]


async def start_conversation(client: AsyncClient, headers: dict, *members, message: str = None) -> dict:
    payload = {"participant_ids": [str(m.id) for m in members]}
    if message:
        payload["initial_message"] = message
    response = await client.post("/api/conversations", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestConversations:

    async def test_start_with_first_message(self, client: AsyncClient, test_user, other_user, auth_headers,
                                            other_headers):
        conversation = await start_conversation(client, auth_headers, other_user, message="Chai sometime?")

        assert {p["id"] for p in conversation["participants"]} == {str(test_user.id), str(other_user.id)}
        assert conversation["last_message"]["content"] == "Chai sometime?"
        assert conversation["unread_count"] == 0

        theirs = (await client.get("/api/conversations", headers=other_headers)).json()
        assert theirs[0]["id"] == conversation["id"]
        assert theirs[0]["unread_count"] == 1

        notifications = (await client.get("/api/notifications", headers=other_headers)).json()
        assert notifications["items"][0]["type"] == "message"

    async def test_direct_conversation_reused(self, client: AsyncClient, test_user, other_user, auth_headers,
                                              other_headers):
        first = await start_conversation(client, auth_headers, other_user)
        second = await start_conversation(client, other_headers, test_user)

        assert first["id"] == second["id"]

    async def test_needs_someone_else(self, client: AsyncClient, test_user, auth_headers):
        response = await client.post("/api/conversations", json={"participant_ids": [str(test_user.id)]},
                                     headers=auth_headers)

        assert response.status_code == 400

    async def test_unknown_member(self, client: AsyncClient, auth_headers):
        response = await client.post("/api/conversations", json={"participant_ids": ["ghost"]},
                                     headers=auth_headers)

        assert response.status_code == 404

    async def test_outsider_cannot_read(self, client: AsyncClient, other_user, auth_headers, make_user, auth_for):
        conversation = await start_conversation(client, auth_headers, other_user, message="private")
        outsider = auth_for(await make_user())

        detail = await client.get(f"/api/conversations/{conversation['id']}", headers=outsider)
        send = await client.post(f"/api/conversations/{conversation['id']}/messages", json={"content": "hi"},
                                 headers=outsider)

        assert detail.status_code == 404
        assert send.status_code == 404


class TestMessages:

    async def test_send_and_list(self, client: AsyncClient, other_user, auth_headers, other_headers):
        conversation = await start_conversation(client, auth_headers, other_user)
        url = f"/api/conversations/{conversation['id']}/messages"

        await client.post(url, json={"content": "first"}, headers=auth_headers)
        reply = await client.post(url, json={"content": "second"}, headers=other_headers)
        assert reply.status_code == 201
        assert reply.json()["is_read"] is True

        messages = (await client.get(url, headers=auth_headers)).json()
        assert [m["content"] for m in messages] == ["first", "second"]
        assert [m["is_read"] for m in messages] == [True, False]

        detail = (await client.get(f"/api/conversations/{conversation['id']}", headers=auth_headers)).json()
        assert [m["content"] for m in detail["messages"]] == ["first", "second"]

    async def test_blank_message_rejected(self, client: AsyncClient, other_user, auth_headers):
        conversation = await start_conversation(client, auth_headers, other_user)

        response = await client.post(f"/api/conversations/{conversation['id']}/messages",
                                     json={"content": "   "}, headers=auth_headers)

        assert response.status_code == 400

    async def test_mark_conversation_read(self, client: AsyncClient, other_user, auth_headers, other_headers):
        conversation = await start_conversation(client, auth_headers, other_user, message="one")
        await client.post(f"/api/conversations/{conversation['id']}/messages", json={"content": "two"},
                          headers=auth_headers)

        response = await client.patch(f"/api/conversations/{conversation['id']}/read", headers=other_headers)
        again = await client.patch(f"/api/conversations/{conversation['id']}/read", headers=other_headers)

        assert response.json() == {"success": True, "marked": 2}
        assert again.json()["marked"] == 0
        theirs = (await client.get("/api/conversations", headers=other_headers)).json()
        assert theirs[0]["unread_count"] == 0

    async def test_mark_single_message_read(self, client: AsyncClient, other_user, auth_headers, other_headers):
        conversation = await start_conversation(client, auth_headers, other_user, message="hello")
        message_id = conversation["last_message"]["id"]

        response = await client.patch(f"/api/messages/{message_id}/read", headers=other_headers)

        assert response.json()["marked"] == 1
        missing = await client.patch("/api/messages/missing/read", headers=other_headers)
        assert missing.status_code == 404

    async def test_muted_message_notifications(self, client: AsyncClient, other_user, auth_headers,
                                               other_headers):
        await client.patch(f"/api/users/{other_user.id}/notifications", json={"message_notifications": False},
                           headers=other_headers)

        await start_conversation(client, auth_headers, other_user, message="are you there?")

        notifications = (await client.get("/api/notifications", headers=other_headers)).json()
        assert notifications["total"] == 0


class TestContacts:

    async def test_contacts_are_accepted_connections(self, client: AsyncClient, test_user, other_user,
                                                     auth_headers, other_headers, make_user):
        await make_user(name="Not Connected")
        request = await client.post("/api/connections", json={"receiver_id": str(other_user.id)},
                                    headers=auth_headers)
        await client.patch(f"/api/connections/{request.json()['id']}", json={"status": "accepted"},
                           headers=other_headers)

        response = await client.get("/api/contacts", headers=auth_headers)

        assert [u["name"] for u in response.json()] == ["Vikram Singh"]


class TestRealtime:

    async def test_new_message_pushed_to_recipient(self, client: AsyncClient, other_user, auth_headers):
        socket = FakeWebSocket()
        await notification_hub.connect(socket, str(other_user.id))

        await start_conversation(client, auth_headers, other_user, message="ping from REST")

        assert socket.accepted
        assert socket.events("connected") == [{"user_id": str(other_user.id)}]
        assert socket.events("new_message")[0]["content"] == "ping from REST"

    async def test_chat_event_sends_message(self, client: AsyncClient, test_user, other_user, auth_headers,
                                            other_headers):
        conversation = await start_conversation(client, auth_headers, other_user)
        mine, theirs = FakeWebSocket(), FakeWebSocket()
        sock = await notification_hub.connect(mine, str(test_user.id))
        await notification_hub.connect(theirs, str(other_user.id))

        await handle_client_event(sock, "chat", {"conversation_id": conversation["id"], "content": "over the socket"})

        assert theirs.events("new_message")[0]["content"] == "over the socket"
        assert mine.events("new_message")[0]["sender"]["id"] == str(test_user.id)
        messages = (await client.get(f"/api/conversations/{conversation['id']}/messages",
                                     headers=other_headers)).json()
        assert [m["content"] for m in messages] == ["over the socket"]

    async def test_typing_relayed_to_others(self, client: AsyncClient, test_user, other_user, auth_headers):
        conversation = await start_conversation(client, auth_headers, other_user)
        mine, theirs = FakeWebSocket(), FakeWebSocket()
        sock = await notification_hub.connect(mine, str(test_user.id))
        await notification_hub.connect(theirs, str(other_user.id))

        await handle_client_event(sock, "typing", {"conversation_id": conversation["id"]})

        assert theirs.events("typing") == [
            {"conversation_id": conversation["id"], "user_id": str(test_user.id), "name": "Asha Rao"}
        ]
        assert mine.events("typing") == []

    async def test_read_event_notifies_sender(self, client: AsyncClient, test_user, other_user, auth_headers):
        conversation = await start_conversation(client, auth_headers, other_user, message="seen?")
        mine, theirs = FakeWebSocket(), FakeWebSocket()
        await notification_hub.connect(mine, str(test_user.id))
        sock = await notification_hub.connect(theirs, str(other_user.id))

        await handle_client_event(sock, "read", {"conversation_id": conversation["id"]})

        receipt = mine.events("messages_read")[0]
        assert receipt["reader_id"] == str(other_user.id)
        assert receipt["message_ids"] == [conversation["last_message"]["id"]]

    async def test_errors_go_back_to_the_socket(self, client: AsyncClient, test_user):
        mine = FakeWebSocket()
        sock = await notification_hub.connect(mine, str(test_user.id))

        await handle_client_event(sock, "chat", {"conversation_id": "missing", "content": "hello"})
        await handle_client_event(sock, "dance", {})

        errors = mine.events("error")
        assert len(errors) == 2
        assert errors[1]["error"] == "unknown_event"

    async def test_nothing_pushed_for_rolled_back_message(self, client: AsyncClient, db_session, test_user,
                                                          other_user, auth_headers):
        conversation = await start_conversation(client, auth_headers, other_user)
        theirs = FakeWebSocket()
        await notification_hub.connect(theirs, str(other_user.id))

        await MessageService(db_session).send_message(conversation["id"], test_user, "never stored")
        assert theirs.events("new_message") == []

        await rollback_session(db_session)
        await commit_session(db_session)
        assert theirs.events("new_message") == []
