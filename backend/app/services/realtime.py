"""
Realtime Notification Hub

Pushes notifications, new messages and typing indicators to members over
WebSocket. A member may have several sockets open (tabs, devices); every
one of them receives the event. Sockets that fail on send are dropped. Events about stored rows go out
only after the transaction that wrote them commits.
"""

import asyncio
from typing import Dict, List, Set, Any, Iterable, Optional
from datetime import datetime
from dataclasses import dataclass, field
from enum import Enum
from fastapi import WebSocket
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import run_after_commit
from app.core.logging_config import logger


class EventType(str, Enum):
    """WebSocket event types"""
    # Connection events
    CONNECTED = "connected"

    # Server pushes
    NOTIFICATION = "notification"
    NEW_MESSAGE = "new_message"
    MESSAGES_READ = "messages_read"
    TYPING = "typing"

    # Client events
    PING = "ping"
    PONG = "pong"
    READ = "read"
    CHAT = "chat"

    ERROR = "error"


@dataclass
class UserSocket:
    websocket: WebSocket
    user_id: str
    connected_at: datetime = field(default_factory=datetime.utcnow)
    last_activity: datetime = field(default_factory=datetime.utcnow)


class NotificationHub:
    """WebSocket connection manager keyed by user id"""

    def __init__(self):
        # user_id -> open sockets
        self._connections: Dict[str, List[UserSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id: str) -> UserSocket:
        await websocket.accept()
        sock = UserSocket(websocket=websocket, user_id=str(user_id))

        async with self._lock:
            self._connections.setdefault(sock.user_id, []).append(sock)

        logger.info(f"WebSocket connected: user {user_id} ({self.socket_count(user_id)} open)")
        await self.send_to_socket(sock, EventType.CONNECTED, {"user_id": sock.user_id})
        return sock

    async def disconnect(self, sock: UserSocket) -> None:
        async with self._lock:
            sockets = self._connections.get(sock.user_id, [])
            if sock in sockets:
                sockets.remove(sock)
            if not sockets:
                self._connections.pop(sock.user_id, None)
        logger.info(f"WebSocket disconnected: user {sock.user_id}")

    def is_online(self, user_id: str) -> bool:
        return bool(self._connections.get(str(user_id)))

    def socket_count(self, user_id: Optional[str] = None) -> int:
        if user_id is not None:
            return len(self._connections.get(str(user_id), []))
        return sum(len(s) for s in self._connections.values())

    def online_users(self) -> Set[str]:
        return set(self._connections.keys())

    async def send_to_socket(self, sock: UserSocket, event_type: EventType, data: Dict[str, Any]) -> bool:
        message = {
            "type": event_type.value,
            "data": data,
            "timestamp": datetime.utcnow().isoformat()
        }
        try:
            await sock.websocket.send_json(message)
            sock.last_activity = datetime.utcnow()
            return True
        except Exception as e:
            logger.warning(f"Error sending to user {sock.user_id}: {e}")
            return False

    async def send_to_user(self, user_id: str, event_type: EventType, data: Dict[str, Any]) -> int:
        """Send to every socket of one user. Returns how many sockets received it."""
        sockets = list(self._connections.get(str(user_id), []))
        delivered = 0
        dead = []
        for sock in sockets:
            if await self.send_to_socket(sock, event_type, data):
                delivered += 1
            else:
                dead.append(sock)

        for sock in dead:
            await self.disconnect(sock)
        return delivered

    async def broadcast(
        self,
        user_ids: Iterable[str],
        event_type: EventType,
        data: Dict[str, Any],
        exclude_user: Optional[str] = None
    ) -> int:
        delivered = 0
        for user_id in {str(u) for u in user_ids}:
            if exclude_user and user_id == str(exclude_user):
                continue
            delivered += await self.send_to_user(user_id, event_type, data)
        return delivered

    def broadcast_after_commit(
        self,
        db: AsyncSession,
        user_ids: Iterable[str],
        event_type: EventType,
        data: Dict[str, Any],
        exclude_user: Optional[str] = None
    ) -> None:
        """Broadcast once db has committed; nothing is sent if it rolls back"""
        recipients = [str(u) for u in user_ids]

        async def _send():
            await self.broadcast(recipients, event_type, data, exclude_user=exclude_user)

        run_after_commit(db, _send)


# Process-wide hub used by services and the /ws endpoint
notification_hub = NotificationHub()
