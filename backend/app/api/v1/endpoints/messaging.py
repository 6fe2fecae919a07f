"""
Direct messaging endpoints and the realtime socket.

Connect: WS /api/ws?token=<jwt>  (the session cookie also works)

Message format (send):
{
    "type": "event_type",
    "data": { ... }
}

Supported client events:
- ping: keep-alive, answered with pong
- typing: { conversation_id } relayed to the other participants
- read: { conversation_id } marks the conversation read
- chat: { conversation_id, content } sends a message

Server events:
- connected, notification, new_message, messages_read, typing, pong, error
"""
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List

from app.core.config import settings
from app.core.database import get_db, AsyncSessionLocal, commit_session, rollback_session
from app.core.exceptions import FoundersNetworkError
from app.core.logging_config import logger
from app.models.user import User
from app.modules.auth.dependencies import get_current_user, resolve_user
from app.schemas.message import (
    ConversationCreate,
    ConversationResponse,
    ConversationDetail,
    MessageCreate,
    MessageResponse,
    ReadResponse,
)
from app.schemas.user import UserSummary
from app.services.message_service import MessageService
from app.services.realtime import notification_hub, EventType, UserSocket

router = APIRouter(tags=["Messaging"])
ws_router = APIRouter(tags=["Realtime"])


@router.get("/conversations", response_model=List[ConversationResponse])
async def list_conversations(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Your conversations, most recent activity first"""
    return await MessageService(db).list_conversations(current_user)


@router.post("/conversations", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    data: ConversationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Start a conversation. An existing one-to-one conversation is reused."""
    service = MessageService(db)
    conversation = await service.create_conversation(current_user, data.participant_ids, data.initial_message)
    return await service.summarize(conversation, current_user)


@router.get("/conversations/{conversation_id}", response_model=ConversationDetail)
async def get_conversation(
    conversation_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await MessageService(db).conversation_detail(conversation_id, current_user)


@router.get("/conversations/{conversation_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    conversation_id: str,
    limit: int = Query(50, ge=1, le=200),
    before: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Messages oldest first; pass `before` (a message id) to page back"""
    service = MessageService(db)
    messages = await service.list_messages(conversation_id, current_user, limit=limit, before=before)
    return await service.message_dicts(messages, current_user)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: str,
    data: MessageCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = MessageService(db)
    message = await service.send_message(conversation_id, current_user, data.content)
    return (await service.message_dicts([message], current_user))[0]


@router.patch("/conversations/{conversation_id}/read", response_model=ReadResponse)
async def mark_conversation_read(
    conversation_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    marked = await MessageService(db).mark_conversation_read(conversation_id, current_user)
    return {"success": True, "marked": marked}


@router.patch("/messages/{message_id}/read", response_model=ReadResponse)
async def mark_message_read(
    message_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    marked = await MessageService(db).mark_message_read(message_id, current_user)
    return {"success": True, "marked": marked}


@router.get("/contacts", response_model=List[UserSummary])
async def list_contacts(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Members you can message: your accepted connections"""
    return await MessageService(db).contacts(current_user)


# ==================== WebSocket ====================

async def handle_client_event(sock: UserSocket, event_type: str, data: dict) -> None:
    """Run one client event in its own session so every event commits on its own"""
    user_id = sock.user_id
    async with AsyncSessionLocal() as db:
        try:
            user = await db.get(User, user_id)
            if user is None or not user.is_active:
                return
            service = MessageService(db)
            conversation_id = str(data.get("conversation_id") or "")

            if event_type == EventType.TYPING.value:
                await service.relay_typing(conversation_id, user)
            elif event_type == EventType.READ.value:
                await service.mark_conversation_read(conversation_id, user)
            elif event_type == EventType.CHAT.value:
                message = await service.send_message(conversation_id, user, str(data.get("content") or ""))
                payload = (await service.message_dicts([message], user))[0]
                notification_hub.broadcast_after_commit(
                    db, [user_id], EventType.NEW_MESSAGE, MessageResponse(**payload).model_dump(mode="json")
                )
            else:
                await notification_hub.send_to_socket(
                    sock, EventType.ERROR, {"error": "unknown_event", "message": f"Unknown event '{event_type}'"}
                )
                return
            await commit_session(db)
        except FoundersNetworkError as e:
            await rollback_session(db)
            await notification_hub.send_to_socket(sock, EventType.ERROR, e.to_dict())


@ws_router.websocket("/ws")
async def notifications_websocket(
    websocket: WebSocket,
    token: Optional[str] = Query(None)
):
    """Realtime channel for notifications and messages"""
    token = token or websocket.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        await websocket.close(code=4001, reason="Not authenticated")
        return

    async with AsyncSessionLocal() as db:
        try:
            user = await resolve_user(token, db)
        except FoundersNetworkError as e:
            await websocket.close(code=4001, reason=e.message)
            return
        user_id = str(user.id)

    sock = await notification_hub.connect(websocket, user_id)
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await notification_hub.send_to_socket(
                    sock, EventType.ERROR, {"error": "invalid_json", "message": "Invalid JSON message"}
                )
                continue

            if not isinstance(message, dict):
                continue
            event_type = message.get("type")
            data = message.get("data") or {}

            if event_type == EventType.PING.value:
                await notification_hub.send_to_socket(sock, EventType.PONG, {})
            else:
                await handle_client_event(sock, str(event_type), data if isinstance(data, dict) else {})

    except WebSocketDisconnect:
        logger.info(f"WebSocket closed by user {user_id}")
    except Exception as e:
        logger.error(f"WebSocket error for user {user_id}: {e}", exc_info=True)
    finally:
        await notification_hub.disconnect(sock)
