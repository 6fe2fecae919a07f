"""
Health Check Tests
"""
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.services.search_service import SearchService


async def test_root(client: AsyncClient):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["version"]


async def test_liveness(client: AsyncClient):
    for url in ("/health", "/api/health"):
        response = await client.get(url)
        assert response.status_code == 200, url
        assert response.json()["status"] == "healthy"


async def test_readiness(client: AsyncClient):
    response = await client.get("/api/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"]["database"]["tables_ready"] is True
    assert data["checks"]["uploads"]["writable"] is True


async def test_security_headers(client: AsyncClient):
    response = await client.get("/api/health")

    assert response.headers["x-content-type-options"] == "nosniff"
    assert "x-request-id" in {k.lower() for k in response.headers.keys()}


async def test_unknown_route_is_json_404(client: AsyncClient):
    response = await client.get("/api/nowhere")

    assert response.status_code == 404


async def test_unexpected_error_uses_error_envelope(db_session, monkeypatch):
    async def explode(self, query):
        raise RuntimeError("index went away")

    monkeypatch.setattr(SearchService, "suggest", explode)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/search/suggestions", params={"q": "startup"})

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "INTERNAL_ERROR"
    assert "index went away" not in body["detail"]
