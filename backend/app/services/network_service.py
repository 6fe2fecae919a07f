"""
Network Service - connection requests, the accepted network and suggestions.

A pair of members shares at most one Connection row whichever side sent
the request. Suggestions are ranked by real mutual connections.
"""

from typing import Optional, List, Dict, Set, Any
from collections import defaultdict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, and_

from app.core.config import settings
from app.core.exceptions import (
    ValidationError,
    UserNotFoundError,
    ConnectionNotFoundError,
    DuplicateConnectionError,
    AuthorizationError,
    ConflictError,
)
from app.core.logging_config import logger
from app.models.connection import Connection, ConnectionStatus
from app.models.notification import NotificationType
from app.models.user import User
from app.services.notification_service import NotificationService

# Cap on how many candidate members are scored for suggestions
SUGGESTION_CANDIDATE_POOL = 500


def _same_text(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a and b and a.strip().lower() == b.strip().lower())


class NetworkService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def find_between(self, user_a: str, user_b: str) -> Optional[Connection]:
        """The connection row for an unordered pair, if any"""
        a, b = str(user_a), str(user_b)
        result = await self.db.execute(
            select(Connection).where(
                or_(
                    and_(Connection.requester_id == a, Connection.receiver_id == b),
                    and_(Connection.requester_id == b, Connection.receiver_id == a),
                )
            )
        )
        return result.scalars().first()

    async def get_connection(self, connection_id: str) -> Connection:
        connection = await self.db.get(Connection, str(connection_id))
        if connection is None:
            raise ConnectionNotFoundError(connection_id)
        return connection

    async def send_request(self, requester: User, receiver_id: str) -> Connection:
        receiver_id = str(receiver_id)
        if receiver_id == str(requester.id):
            raise ValidationError("You cannot connect with yourself", field="receiver_id")

        receiver = await self.db.get(User, receiver_id)
        if receiver is None or not receiver.is_active:
            raise UserNotFoundError(receiver_id)

        existing = await self.find_between(requester.id, receiver_id)
        if existing is not None:
            if existing.status != ConnectionStatus.REJECTED:
                raise DuplicateConnectionError()
            # A rejected pair may try again; the row is reused in the new direction
            existing.requester_id = str(requester.id)
            existing.receiver_id = receiver_id
            existing.status = ConnectionStatus.PENDING
            connection = existing
        else:
            connection = Connection(
                requester_id=str(requester.id),
                receiver_id=receiver_id,
                status=ConnectionStatus.PENDING,
            )
            self.db.add(connection)
        await self.db.flush()
        await self.db.refresh(connection)

        await self.notifications.create(
            receiver_id,
            NotificationType.CONNECTION,
            f"{requester.name} sent you a connection request",
            related_id=connection.id,
            related_type="connection",
        )
        logger.info(f"Connection request {requester.id} -> {receiver_id}")
        return connection

    async def respond(self, connection_id: str, user: User, status: str) -> Connection:
        connection = await self.get_connection(connection_id)
        if str(connection.receiver_id) != str(user.id):
            if str(connection.requester_id) == str(user.id):
                raise AuthorizationError("Only the recipient can respond to this request")
            raise ConnectionNotFoundError(connection_id)
        if connection.status != ConnectionStatus.PENDING:
            raise ConflictError("This connection request has already been answered")

        connection.status = ConnectionStatus(status)
        await self.db.flush()

        if connection.status == ConnectionStatus.ACCEPTED:
            await self.notifications.create(
                connection.requester_id,
                NotificationType.CONNECTION,
                f"{user.name} accepted your connection request",
                related_id=connection.id,
                related_type="connection",
            )
        return connection

    async def remove(self, connection_id: str, user: User) -> None:
        """Withdraw a request or drop an existing connection (either side)"""
        connection = await self.get_connection(connection_id)
        if str(user.id) not in (str(connection.requester_id), str(connection.receiver_id)):
            raise ConnectionNotFoundError(connection_id)
        await self.db.delete(connection)
        await self.db.flush()

    async def list_connections(self, user_id: str) -> List[Connection]:
        uid = str(user_id)
        result = await self.db.execute(
            select(Connection)
            .where(
                Connection.status == ConnectionStatus.ACCEPTED,
                or_(Connection.requester_id == uid, Connection.receiver_id == uid),
            )
            .order_by(Connection.updated_at.desc())
        )
        return list(result.scalars().all())

    async def connected_user_ids(self, user_id: str) -> Set[str]:
        uid = str(user_id)
        result = await self.db.execute(
            select(Connection.requester_id, Connection.receiver_id).where(
                Connection.status == ConnectionStatus.ACCEPTED,
                or_(Connection.requester_id == uid, Connection.receiver_id == uid),
            )
        )
        return {str(b) if str(a) == uid else str(a) for a, b in result.all()}

    async def connection_count(self, user_id: str) -> int:
        return len(await self.connected_user_ids(user_id))

    async def pending_incoming(self, user_id: str) -> List[Connection]:
        result = await self.db.execute(
            select(Connection)
            .where(Connection.receiver_id == str(user_id), Connection.status == ConnectionStatus.PENDING)
            .order_by(Connection.created_at.desc())
        )
        return list(result.scalars().all())

    async def pending_sent(self, user_id: str) -> List[Connection]:
        result = await self.db.execute(
            select(Connection)
            .where(Connection.requester_id == str(user_id), Connection.status == ConnectionStatus.PENDING)
            .order_by(Connection.created_at.desc())
        )
        return list(result.scalars().all())

    async def status_between(self, viewer_id: str, other_id: str) -> Dict[str, Any]:
        connection = await self.find_between(viewer_id, other_id)
        if connection is None:
            return {"user_id": str(other_id), "status": None, "direction": None, "connection_id": None}
        return {
            "user_id": str(other_id),
            "status": connection.status,
            "direction": "sent" if str(connection.requester_id) == str(viewer_id) else "received",
            "connection_id": connection.id,
        }

    async def mutual_connections(self, user_a: str, user_b: str) -> List[User]:
        shared = (await self.connected_user_ids(user_a)) & (await self.connected_user_ids(user_b))
        if not shared:
            return []
        result = await self.db.execute(
            select(User).where(User.id.in_(shared), User.is_active.is_(True)).order_by(User.name)
        )
        return list(result.scalars().all())

    async def _mutual_counts(self, my_network: Set[str]) -> Dict[str, int]:
        """For every member adjacent to my_network: how many of my connections they know"""
        if not my_network:
            return {}
        result = await self.db.execute(
            select(Connection.requester_id, Connection.receiver_id).where(
                Connection.status == ConnectionStatus.ACCEPTED,
                or_(Connection.requester_id.in_(my_network), Connection.receiver_id.in_(my_network)),
            )
        )
        known_by: Dict[str, Set[str]] = defaultdict(set)
        for a, b in result.all():
            a, b = str(a), str(b)
            if a in my_network:
                known_by[b].add(a)
            if b in my_network:
                known_by[a].add(b)
        return {uid: len(friends) for uid, friends in known_by.items()}

    async def suggestions(self, user: User, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        People you may know.

        Excludes yourself and anyone you already have a connection row with.
        Ordered by mutual connections, then same company, then same
        location, then newest member first.
        """
        limit = limit or settings.CONNECTION_SUGGESTION_LIMIT
        uid = str(user.id)

        rows = await self.db.execute(
            select(Connection.requester_id, Connection.receiver_id).where(
                or_(Connection.requester_id == uid, Connection.receiver_id == uid)
            )
        )
        excluded = {uid}
        for a, b in rows.all():
            excluded.add(str(a))
            excluded.add(str(b))

        my_network = await self.connected_user_ids(uid)
        mutual_counts = await self._mutual_counts(my_network)

        candidates_result = await self.db.execute(
            select(User)
            .where(User.is_active.is_(True), User.id.notin_(excluded))
            .order_by(User.created_at.desc())
            .limit(SUGGESTION_CANDIDATE_POOL)
        )
        candidates = list(candidates_result.scalars().all())

        scored = []
        for candidate in candidates:
            mutual = mutual_counts.get(str(candidate.id), 0)
            same_company = _same_text(candidate.company, user.company)
            same_location = _same_text(candidate.location, user.location)

            if mutual:
                reason = f"{mutual} mutual connection{'s' if mutual != 1 else ''}"
            elif same_company:
                reason = f"Also at {candidate.company}"
            elif same_location:
                reason = f"Based in {candidate.location}"
            else:
                reason = "New to the network"

            scored.append((
                (-mutual, not same_company, not same_location, -candidate.created_at.timestamp()),
                {"user": candidate, "mutual_connections": mutual, "reason": reason},
            ))

        scored.sort(key=lambda item: item[0])
        return [entry for _, entry in scored[:limit]]
