"""
Rate Limiter Tests
"""
import pytest
from httpx import AsyncClient

from app.core.config import settings
from app.core.rate_limiter import limiter, build_limiter
from app.main import app


@pytest.fixture
def live_limiter(monkeypatch):
    """The app limiter switched on, with empty counters"""
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    yield limiter
    limiter.reset()


async def test_login_limited_per_minute(client: AsyncClient, test_user, live_limiter):
    statuses = []
    for _ in range(11):
        response = await client.post("/api/login", json={"username": test_user.username, "password": "wrong-pass"})
        statuses.append(response.status_code)

    assert statuses == [401] * 10 + [429]
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "RATE_LIMIT_EXCEEDED"
    assert body["error"]["details"]["retry_after_seconds"] == 60
    assert response.headers["retry-after"] == "60"


async def test_default_limit_on_undecorated_routes(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(app.state, "limiter", build_limiter(2))

    statuses = [(await client.get("/api/jobs")).status_code for _ in range(3)]

    assert statuses == [200, 200, 429]


async def test_health_checks_not_limited(client: AsyncClient, live_limiter):
    for _ in range(settings.RATE_LIMIT_PER_MINUTE + 1):
        response = await client.get("/api/health")

    assert response.status_code == 200


async def test_disabled_limiter_lets_everything_through(client: AsyncClient, test_user):
    for _ in range(12):
        response = await client.post("/api/login", json={"username": test_user.username, "password": "wrong-pass"})

    assert response.status_code == 401
