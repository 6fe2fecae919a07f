"""
Middleware Tests
"""
from httpx import AsyncClient

from app.core.config import settings


async def test_oversized_body_rejected(client: AsyncClient, auth_headers):
    too_big = settings.MAX_UPLOAD_SIZE + 2 * 1024 * 1024

    response = await client.post(
        "/api/posts",
        content=b'{"content": "hi"}',
        headers={**auth_headers, "Content-Type": "application/json", "Content-Length": str(too_big)},
    )

    assert response.status_code == 413
    assert response.json()["error"]["code"] == "FILE_TOO_LARGE"


async def test_request_id_echoed(client: AsyncClient):
    response = await client.get("/api/health", headers={"X-Request-ID": "req-42"})

    assert response.headers["x-request-id"] == "req-42"
    assert response.headers["x-response-time"].endswith("ms")
