"""
Notifications API Tests
Tests for: listing, unread counts, mark read, preferences, realtime push
"""
from httpx import AsyncClient

from app.core.database import commit_session, rollback_session
from app.models.notification import NotificationType
from app.services.notification_service import NotificationService
from app.services.realtime import notification_hub, EventType


async def notify(db_session, user, content: str = "Welcome to the network",
                 notification_type: NotificationType = NotificationType.SYSTEM):
    notification = await NotificationService(db_session).create(user.id, notification_type, content)
    await commit_session(db_session)
    return notification


class TestNotifications:

    async def test_requires_login(self, client: AsyncClient):
        response = await client.get("/api/notifications")

        assert response.status_code == 401

    async def test_list_newest_first(self, client: AsyncClient, db_session, test_user, auth_headers):
        await notify(db_session, test_user, "older")
        await notify(db_session, test_user, "newer")

        response = await client.get("/api/notifications", headers=auth_headers)

        data = response.json()
        assert [n["content"] for n in data["items"]] == ["newer", "older"]
        assert data["unread_count"] == 2
        assert data["items"][0]["type"] == "system"

    async def test_only_own_notifications(self, client: AsyncClient, db_session, other_user, auth_headers):
        await notify(db_session, other_user)

        response = await client.get("/api/notifications", headers=auth_headers)

        assert response.json()["total"] == 0

    async def test_mark_one_read(self, client: AsyncClient, db_session, test_user, auth_headers, other_headers):
        notification = await notify(db_session, test_user)
        await notify(db_session, test_user, "second")

        stolen = await client.patch(f"/api/notifications/{notification.id}/read", headers=other_headers)
        assert stolen.status_code == 404

        response = await client.patch(f"/api/notifications/{notification.id}/read", headers=auth_headers)
        assert response.json()["is_read"] is True

        count = await client.get("/api/notifications/unread-count", headers=auth_headers)
        assert count.json() == {"unread_count": 1}

        unread = (await client.get("/api/notifications", params={"unread_only": True},
                                   headers=auth_headers)).json()
        assert [n["content"] for n in unread["items"]] == ["second"]

    async def test_mark_all_read(self, client: AsyncClient, db_session, test_user, auth_headers):
        for _ in range(3):
            await notify(db_session, test_user)

        response = await client.patch("/api/notifications/read-all", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "3 notification(s) marked as read"
        assert (await client.get("/api/notifications/unread-count", headers=auth_headers)).json()["unread_count"] == 0


class TestNotificationService:

    async def test_preferences_suppress(self, db_session, make_user):
        quiet = await make_user(connection_notifications=False, message_notifications=False)
        service = NotificationService(db_session)

        assert await service.create(quiet.id, NotificationType.CONNECTION, "x") is None
        assert await service.create(quiet.id, NotificationType.MESSAGE, "x") is None
        assert await service.create(quiet.id, NotificationType.LIKE, "x") is not None

    async def test_inactive_or_unknown_recipient(self, db_session, make_user):
        gone = await make_user(is_active=False)
        service = NotificationService(db_session)

        assert await service.create(gone.id, NotificationType.SYSTEM, "x") is None
        assert await service.create("nobody", NotificationType.SYSTEM, "x") is None

    async def test_pushed_to_open_sockets(self, client: AsyncClient, db_session, test_user):
        class Socket:
            def __init__(self):
                self.sent = []

            async def accept(self):
                pass

            async def send_json(self, message):
                self.sent.append(message)

        tab, phone = Socket(), Socket()
        await notification_hub.connect(tab, str(test_user.id))
        await notification_hub.connect(phone, str(test_user.id))

        await notify(db_session, test_user, "ding")

        for sock in (tab, phone):
            pushed = [m for m in sock.sent if m["type"] == "notification"]
            assert pushed[0]["data"]["content"] == "ding"

    async def test_dead_socket_dropped(self, client: AsyncClient, db_session, test_user):
        class BrokenSocket:
            async def accept(self):
                pass

            async def send_json(self, message):
                raise RuntimeError("connection reset")

        await notification_hub.connect(BrokenSocket(), str(test_user.id))

        delivered = await notification_hub.send_to_user(str(test_user.id), EventType.NOTIFICATION, {})

        assert delivered == 0
        assert not notification_hub.is_online(str(test_user.id))

    async def test_push_waits_for_commit(self, client: AsyncClient, db_session, test_user):
        class Socket:
            def __init__(self):
                self.sent = []

            async def accept(self):
                pass

            async def send_json(self, message):
                self.sent.append(message)

        user_id = str(test_user.id)
        committed, rolled_back = Socket(), Socket()
        await notification_hub.connect(committed, user_id)

        await NotificationService(db_session).create(user_id, NotificationType.SYSTEM, "stored")
        assert [m for m in committed.sent if m["type"] == "notification"] == []
        await commit_session(db_session)
        assert [m["data"]["content"] for m in committed.sent if m["type"] == "notification"] == ["stored"]

        await notification_hub.connect(rolled_back, user_id)
        await NotificationService(db_session).create(user_id, NotificationType.SYSTEM, "discarded")
        await rollback_session(db_session)
        await commit_session(db_session)
        assert [m for m in rolled_back.sent if m["type"] == "notification"] == []
