"""
WebSocket Auth Tests
"""
import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.core.security import create_refresh_token
from app.main import app


@pytest.mark.parametrize("query", ["", "?token=not-a-jwt"])
def test_socket_refused_without_valid_token(query):
    client = TestClient(app)

    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"/api/ws{query}"):
            pass

    assert exc.value.code == 4001


def test_refresh_token_is_not_enough():
    client = TestClient(app)
    token = create_refresh_token({"sub": "someone"})

    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"/api/ws?token={token}"):
            pass

    assert exc.value.code == 4001
