"""
Connections: requests, the accepted network, suggestions and mutuals.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.models.connection import Connection
from app.models.user import User
from app.modules.auth.dependencies import get_current_user
from app.schemas.network import (
    ConnectionCreate,
    ConnectionUpdate,
    ConnectionResponse,
    ConnectionWithUser,
    ConnectionSuggestion,
    ConnectionStatusResponse,
    MutualConnectionsResponse,
)
from app.services.network_service import NetworkService
from app.services.user_service import UserService

router = APIRouter(prefix="/connections", tags=["Network"])


def _from_side(connection: Connection, user: User) -> dict:
    return {
        "id": str(connection.id),
        "status": connection.status,
        "created_at": connection.created_at,
        "user": connection.other_user(user.id),
    }


@router.get("", response_model=List[ConnectionWithUser])
async def list_connections(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Accepted connections, each with the other member"""
    connections = await NetworkService(db).list_connections(current_user.id)
    return [_from_side(c, current_user) for c in connections]


@router.post("", response_model=ConnectionResponse, status_code=status.HTTP_201_CREATED)
async def send_request(
    data: ConnectionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await NetworkService(db).send_request(current_user, data.receiver_id)


@router.get("/requests", response_model=List[ConnectionWithUser])
async def incoming_requests(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Pending requests waiting for your answer"""
    pending = await NetworkService(db).pending_incoming(current_user.id)
    return [_from_side(c, current_user) for c in pending]


@router.get("/sent", response_model=List[ConnectionWithUser])
async def sent_requests(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    pending = await NetworkService(db).pending_sent(current_user.id)
    return [_from_side(c, current_user) for c in pending]


@router.get("/suggestions", response_model=List[ConnectionSuggestion])
async def suggestions(
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """People you may know, ranked by mutual connections"""
    return await NetworkService(db).suggestions(current_user, limit=limit)


@router.get("/status/{user_id}", response_model=ConnectionStatusResponse)
async def connection_status(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await UserService(db).get_user(user_id)
    return await NetworkService(db).status_between(current_user.id, user_id)


@router.get("/mutual/{user_id}", response_model=MutualConnectionsResponse)
async def mutual_connections(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await UserService(db).get_user(user_id)
    users = await NetworkService(db).mutual_connections(current_user.id, user_id)
    return {"user_id": user_id, "count": len(users), "users": users}


@router.patch("/{connection_id}", response_model=ConnectionResponse)
async def respond_to_request(
    connection_id: str,
    data: ConnectionUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Accept or reject a request you received"""
    return await NetworkService(db).respond(connection_id, current_user, data.status)


@router.delete("/{connection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_connection(
    connection_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await NetworkService(db).remove(connection_id, current_user)
