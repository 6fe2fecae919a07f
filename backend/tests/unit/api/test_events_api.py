"""
Events API Tests
Tests for: event CRUD, listings, registration, capacity, month calendar
"""
from datetime import datetime, timedelta

from httpx import AsyncClient


def event_payload(days_from_now: int = 7, **overrides) -> dict:
    start = datetime.utcnow().replace(microsecond=0) + timedelta(days=days_from_now)
    data = {
        "title": "Founder's Fireside Chat",
        "description": "An intimate evening with successful founders",
        "location": "Bengaluru",
        "start_date": start.isoformat(),
        "category": "Networking",
    }
    data.update(overrides)
    return data


async def create_event(client: AsyncClient, headers: dict, days_from_now: int = 7, **overrides) -> dict:
    response = await client.post("/api/events", json=event_payload(days_from_now, **overrides), headers=headers)
    assert response.status_code == 201
    return response.json()


class TestEvents:

    async def test_create_and_get(self, client: AsyncClient, test_user, auth_headers):
        event = await create_event(client, auth_headers)

        assert event["creator"]["id"] == str(test_user.id)
        assert event["attendee_count"] == 0

        response = await client.get(f"/api/events/{event['id']}")
        assert response.status_code == 200
        assert response.json()["title"] == "Founder's Fireside Chat"

    async def test_create_requires_login(self, client: AsyncClient):
        response = await client.post("/api/events", json=event_payload())

        assert response.status_code == 401

    async def test_end_before_start_rejected(self, client: AsyncClient, auth_headers):
        payload = event_payload(end_date=(datetime.utcnow() - timedelta(days=30)).isoformat())

        response = await client.post("/api/events", json=payload, headers=auth_headers)

        assert response.status_code == 422

    async def test_upcoming_and_past(self, client: AsyncClient, auth_headers):
        await create_event(client, auth_headers, 10, title="Later")
        await create_event(client, auth_headers, 2, title="Sooner")
        await create_event(client, auth_headers, -5, title="Last week")
        await create_event(client, auth_headers, -40, title="Last month")

        upcoming = (await client.get("/api/events")).json()
        past = (await client.get("/api/events", params={"when": "past"})).json()
        everything = (await client.get("/api/events", params={"when": "all"})).json()

        assert [e["title"] for e in upcoming["items"]] == ["Sooner", "Later"]
        assert [e["title"] for e in past["items"]] == ["Last week", "Last month"]
        assert everything["total"] == 4

    async def test_bad_when(self, client: AsyncClient):
        response = await client.get("/api/events", params={"when": "someday"})

        assert response.status_code == 422

    async def test_category_and_virtual_filters(self, client: AsyncClient, auth_headers):
        await create_event(client, auth_headers, title="Pitch Night", category="Competition", is_virtual=True)
        await create_event(client, auth_headers, title="Meetup")

        competitions = (await client.get("/api/events", params={"category": "competition"})).json()
        virtual = (await client.get("/api/events", params={"virtual": True})).json()

        assert [e["title"] for e in competitions["items"]] == ["Pitch Night"]
        assert [e["title"] for e in virtual["items"]] == ["Pitch Night"]

    async def test_only_organiser_edits(self, client: AsyncClient, auth_headers, other_headers):
        event = await create_event(client, auth_headers)

        forbidden = await client.patch(f"/api/events/{event['id']}", json={"title": "Mine now"},
                                       headers=other_headers)
        assert forbidden.status_code == 403

        updated = await client.patch(f"/api/events/{event['id']}", json={"location": "Online"},
                                     headers=auth_headers)
        assert updated.json()["location"] == "Online"

        assert (await client.delete(f"/api/events/{event['id']}", headers=auth_headers)).status_code == 204
        assert (await client.get(f"/api/events/{event['id']}")).status_code == 404

    async def test_update_cannot_end_before_start(self, client: AsyncClient, auth_headers):
        event = await create_event(client, auth_headers)

        response = await client.patch(
            f"/api/events/{event['id']}",
            json={"end_date": (datetime.utcnow() - timedelta(days=1)).isoformat()},
            headers=auth_headers,
        )

        assert response.status_code == 400


class TestRegistration:

    async def test_register_and_unregister(self, client: AsyncClient, auth_headers, other_headers):
        event = await create_event(client, auth_headers)

        first = await client.post(f"/api/events/{event['id']}/register", headers=other_headers)
        second = await client.post(f"/api/events/{event['id']}/register", headers=other_headers)

        assert first.json() == {"event_id": event["id"], "registered": True, "attendee_count": 1}
        assert second.json()["attendee_count"] == 1

        detail = (await client.get(f"/api/events/{event['id']}", headers=other_headers)).json()
        assert detail["registered_by_me"] is True

        left = await client.delete(f"/api/events/{event['id']}/register", headers=other_headers)
        assert left.json() == {"event_id": event["id"], "registered": False, "attendee_count": 0}

    async def test_capacity(self, client: AsyncClient, auth_headers, other_headers, make_user, auth_for):
        event = await create_event(client, auth_headers, capacity=1)
        await client.post(f"/api/events/{event['id']}/register", headers=other_headers)

        response = await client.post(f"/api/events/{event['id']}/register", headers=auth_for(await make_user()))

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "EVENT_FULL"

    async def test_cannot_register_for_past_event(self, client: AsyncClient, auth_headers, other_headers):
        event = await create_event(client, auth_headers, -3)

        response = await client.post(f"/api/events/{event['id']}/register", headers=other_headers)

        assert response.status_code == 400


class TestCalendar:

    async def test_month_grid(self, client: AsyncClient, auth_headers):
        await create_event(client, auth_headers, title="Startup India Summit 2025",
                           start_date="2025-05-15T09:00:00", end_date="2025-05-16T18:00:00")
        await create_event(client, auth_headers, title="June thing", start_date="2025-06-20T09:00:00")

        response = await client.get("/api/events/calendar", params={"year": 2025, "month": 5})

        assert response.status_code == 200
        data = response.json()
        assert (data["year"], data["month"], data["first_weekday"]) == (2025, 5, 0)
        days = [day for week in data["weeks"] for day in week]
        assert days[0]["date"] == "2025-04-28"
        assert all(len(week) == 7 for week in data["weeks"])

        by_date = {day["date"]: [e["title"] for e in day["events"]] for day in days}
        assert by_date["2025-05-15"] == ["Startup India Summit 2025"]
        assert by_date["2025-05-16"] == ["Startup India Summit 2025"]
        assert all("June thing" not in titles for titles in by_date.values())

    async def test_sunday_start(self, client: AsyncClient):
        response = await client.get("/api/events/calendar", params={"year": 2025, "month": 5, "first_weekday": 6})

        assert response.json()["weeks"][0][0]["date"] == "2025-04-27"

    async def test_bad_month(self, client: AsyncClient):
        response = await client.get("/api/events/calendar", params={"year": 2025, "month": 13})

        assert response.status_code == 422

    async def test_grid_outside_supported_years(self, client: AsyncClient):
        last = await client.get("/api/events/calendar", params={"year": 9999, "month": 12})
        first = await client.get("/api/events/calendar", params={"year": 1, "month": 1, "first_weekday": 6})

        for response in (last, first):
            assert response.status_code == 400
            assert response.json()["error"]["details"]["field"] == "year"

    async def test_first_supported_month(self, client: AsyncClient):
        response = await client.get("/api/events/calendar", params={"year": 1, "month": 1})

        assert response.status_code == 200
        assert response.json()["weeks"][0][0]["date"] == "0001-01-01"
