"""
Message Service - direct conversations between members.

Every message gets one MessageReadStatus row per participant. The sender's
row is created already read, so unread counts are a plain count of
unread rows for the viewer.
"""

from typing import Optional, List, Dict, Any, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update

from app.core.exceptions import (
    ValidationError,
    UserNotFoundError,
    ConversationNotFoundError,
    MessageNotFoundError,
)
from app.core.logging_config import logger
from app.core.types import utcnow
from app.models.message import Conversation, ConversationParticipant, Message, MessageReadStatus
from app.models.notification import NotificationType
from app.models.user import User
from app.schemas.user import UserSummary
from app.services.network_service import NetworkService
from app.services.notification_service import NotificationService
from app.services.realtime import notification_hub, EventType

# Messages returned with a conversation when no page is asked for
CONVERSATION_MESSAGE_LIMIT = 200
NOTIFICATION_PREVIEW_LENGTH = 80


def _preview(content: str) -> str:
    if len(content) <= NOTIFICATION_PREVIEW_LENGTH:
        return content
    return content[:NOTIFICATION_PREVIEW_LENGTH - 3] + "..."


class MessageService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    # ==================== Conversations ====================

    async def participant_ids(self, conversation_id: str) -> List[str]:
        result = await self.db.execute(
            select(ConversationParticipant.user_id)
            .where(ConversationParticipant.conversation_id == str(conversation_id))
        )
        return [str(r[0]) for r in result.all()]

    async def participants(self, conversation_id: str) -> List[User]:
        result = await self.db.execute(
            select(ConversationParticipant)
            .where(ConversationParticipant.conversation_id == str(conversation_id))
            .order_by(ConversationParticipant.joined_at, ConversationParticipant.id)
        )
        return [p.user for p in result.scalars().unique().all()]

    async def get_conversation(self, conversation_id: str, user: User) -> Conversation:
        """A conversation the user takes part in; anything else is reported missing"""
        conversation = await self.db.get(Conversation, str(conversation_id))
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        if str(user.id) not in await self.participant_ids(conversation.id):
            raise ConversationNotFoundError(conversation_id)
        return conversation

    async def find_direct_conversation(self, user_a: str, user_b: str) -> Optional[Conversation]:
        """The existing two-person conversation between a and b, if any"""
        pair = {str(user_a), str(user_b)}
        candidates = (
            select(ConversationParticipant.conversation_id)
            .where(ConversationParticipant.user_id.in_(pair))
            .group_by(ConversationParticipant.conversation_id)
            .having(func.count(ConversationParticipant.id) == 2)
        )
        result = await self.db.execute(
            select(ConversationParticipant.conversation_id)
            .where(ConversationParticipant.conversation_id.in_(candidates))
            .group_by(ConversationParticipant.conversation_id)
            .having(func.count(ConversationParticipant.id) == 2)
        )
        conversation_id = result.scalars().first()
        if conversation_id is None:
            return None
        return await self.db.get(Conversation, str(conversation_id))

    async def create_conversation(
        self,
        creator: User,
        participant_ids: Iterable[str],
        initial_message: Optional[str] = None
    ) -> Conversation:
        others = []
        for user_id in participant_ids:
            user_id = str(user_id)
            if user_id != str(creator.id) and user_id not in others:
                others.append(user_id)
        if not others:
            raise ValidationError("A conversation needs at least one other member", field="participant_ids")

        result = await self.db.execute(
            select(User.id).where(User.id.in_(others), User.is_active.is_(True))
        )
        found = {str(r[0]) for r in result.all()}
        for user_id in others:
            if user_id not in found:
                raise UserNotFoundError(user_id)

        conversation = None
        if len(others) == 1:
            conversation = await self.find_direct_conversation(creator.id, others[0])

        if conversation is None:
            conversation = Conversation()
            self.db.add(conversation)
            await self.db.flush()
            for user_id in [str(creator.id)] + others:
                self.db.add(ConversationParticipant(conversation_id=str(conversation.id), user_id=user_id))
            await self.db.flush()
            logger.info(f"Conversation {conversation.id} created by {creator.id} with {len(others)} member(s)")

        if initial_message and initial_message.strip():
            await self.send_message(conversation.id, creator, initial_message)

        return conversation

    async def list_conversations(self, user: User) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(Conversation)
            .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
            .where(ConversationParticipant.user_id == str(user.id))
            .order_by(Conversation.last_activity_at.desc(), Conversation.id)
        )
        conversations = result.scalars().unique().all()
        return [await self.summarize(c, user) for c in conversations]

    async def last_message(self, conversation_id: str) -> Optional[Message]:
        result = await self.db.execute(
            select(Message)
            .where(Message.conversation_id == str(conversation_id))
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def unread_count(self, conversation_id: str, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count(MessageReadStatus.id))
            .join(Message, Message.id == MessageReadStatus.message_id)
            .where(
                Message.conversation_id == str(conversation_id),
                MessageReadStatus.user_id == str(user_id),
                MessageReadStatus.is_read.is_(False),
            )
        )
        return result.scalar() or 0

    async def total_unread(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count(MessageReadStatus.id)).where(
                MessageReadStatus.user_id == str(user_id),
                MessageReadStatus.is_read.is_(False),
            )
        )
        return result.scalar() or 0

    async def summarize(self, conversation: Conversation, viewer: User) -> Dict[str, Any]:
        last = await self.last_message(conversation.id)
        return {
            "id": str(conversation.id),
            "created_at": conversation.created_at,
            "last_activity_at": conversation.last_activity_at,
            "participants": [UserSummary.model_validate(u) for u in await self.participants(conversation.id)],
            "last_message": (await self.message_dicts([last], viewer))[0] if last is not None else None,
            "unread_count": await self.unread_count(conversation.id, viewer.id),
        }

    async def conversation_detail(
        self,
        conversation_id: str,
        viewer: User,
        limit: int = CONVERSATION_MESSAGE_LIMIT
    ) -> Dict[str, Any]:
        conversation = await self.get_conversation(conversation_id, viewer)
        detail = await self.summarize(conversation, viewer)
        detail["messages"] = await self.message_dicts(
            await self.list_messages(conversation.id, viewer, limit=limit), viewer
        )
        return detail

    # ==================== Messages ====================

    async def list_messages(
        self,
        conversation_id: str,
        user: User,
        limit: int = CONVERSATION_MESSAGE_LIMIT,
        before: Optional[str] = None
    ) -> List[Message]:
        """Oldest first; `before` pages back from a message id"""
        conversation = await self.get_conversation(conversation_id, user)
        query = select(Message).where(Message.conversation_id == str(conversation.id))
        if before:
            anchor = await self.db.get(Message, str(before))
            if anchor is None or str(anchor.conversation_id) != str(conversation.id):
                raise MessageNotFoundError(before)
            query = query.where(Message.created_at < anchor.created_at)
        result = await self.db.execute(
            query.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit)
        )
        messages = list(result.scalars().unique().all())
        messages.reverse()
        return messages

    async def message_dicts(self, messages: Iterable[Message], viewer: User) -> List[Dict[str, Any]]:
        """Message payloads with is_read from the viewer's point of view"""
        messages = list(messages)
        ids = [str(m.id) for m in messages]
        read = set()
        if ids:
            result = await self.db.execute(
                select(MessageReadStatus.message_id).where(
                    MessageReadStatus.message_id.in_(ids),
                    MessageReadStatus.user_id == str(viewer.id),
                    MessageReadStatus.is_read.is_(True),
                )
            )
            read = {str(r[0]) for r in result.all()}
        return [
            {
                "id": str(m.id),
                "conversation_id": str(m.conversation_id),
                "content": m.content,
                "created_at": m.created_at,
                "sender": UserSummary.model_validate(m.sender),
                "is_read": str(m.sender_id) == str(viewer.id) or str(m.id) in read,
            }
            for m in messages
        ]

    async def send_message(self, conversation_id: str, sender: User, content: str) -> Message:
        content = (content or "").strip()
        if not content:
            raise ValidationError("Message cannot be empty", field="content")

        conversation = await self.get_conversation(conversation_id, sender)
        members = await self.participant_ids(conversation.id)

        message = Message(conversation_id=str(conversation.id), sender_id=str(sender.id), content=content)
        self.db.add(message)
        await self.db.flush()

        now = utcnow()
        for user_id in members:
            is_sender = user_id == str(sender.id)
            self.db.add(MessageReadStatus(
                message_id=str(message.id),
                user_id=user_id,
                is_read=is_sender,
                read_at=now if is_sender else None,
            ))
        conversation.last_activity_at = now
        await self.db.flush()
        await self.db.refresh(message)

        payload = {
            "id": str(message.id),
            "conversation_id": str(conversation.id),
            "content": message.content,
            "created_at": message.created_at.isoformat(),
            "sender": UserSummary.model_validate(sender).model_dump(mode="json"),
        }
        others = [u for u in members if u != str(sender.id)]
        for user_id in others:
            await self.notifications.create(
                user_id,
                NotificationType.MESSAGE,
                f"{sender.name}: {_preview(content)}",
                related_id=conversation.id,
                related_type="conversation",
                push=False,
            )
        notification_hub.broadcast_after_commit(self.db, others, EventType.NEW_MESSAGE, payload)
        return message

    async def mark_message_read(self, message_id: str, user: User) -> int:
        message = await self.db.get(Message, str(message_id))
        if message is None:
            raise MessageNotFoundError(message_id)
        # Only participants can see the message at all
        await self.get_conversation(message.conversation_id, user)
        result = await self.db.execute(
            update(MessageReadStatus)
            .where(
                MessageReadStatus.message_id == str(message.id),
                MessageReadStatus.user_id == str(user.id),
                MessageReadStatus.is_read.is_(False),
            )
            .values(is_read=True, read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        marked = result.rowcount or 0
        if marked:
            await self._push_read(message.conversation_id, user, [str(message.id)])
        return marked

    async def mark_conversation_read(self, conversation_id: str, user: User) -> int:
        conversation = await self.get_conversation(conversation_id, user)
        result = await self.db.execute(
            select(MessageReadStatus.message_id)
            .join(Message, Message.id == MessageReadStatus.message_id)
            .where(
                Message.conversation_id == str(conversation.id),
                MessageReadStatus.user_id == str(user.id),
                MessageReadStatus.is_read.is_(False),
            )
        )
        message_ids = [str(r[0]) for r in result.all()]
        if not message_ids:
            return 0
        await self.db.execute(
            update(MessageReadStatus)
            .where(
                MessageReadStatus.user_id == str(user.id),
                MessageReadStatus.message_id.in_(message_ids),
            )
            .values(is_read=True, read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()
        await self._push_read(conversation.id, user, message_ids)
        return len(message_ids)

    async def _push_read(self, conversation_id: str, reader: User, message_ids: List[str]) -> None:
        members = await self.participant_ids(conversation_id)
        notification_hub.broadcast_after_commit(
            self.db,
            members,
            EventType.MESSAGES_READ,
            {"conversation_id": str(conversation_id), "reader_id": str(reader.id), "message_ids": message_ids},
            exclude_user=str(reader.id),
        )

    async def relay_typing(self, conversation_id: str, user: User) -> int:
        """Tell the other participants that user is typing"""
        conversation = await self.get_conversation(conversation_id, user)
        members = await self.participant_ids(conversation.id)
        return await notification_hub.broadcast(
            members,
            EventType.TYPING,
            {"conversation_id": str(conversation.id), "user_id": str(user.id), "name": user.name},
            exclude_user=str(user.id),
        )

    async def contacts(self, user: User) -> List[User]:
        """Members the user can start a conversation with: their accepted connections"""
        connections = await NetworkService(self.db).list_connections(user.id)
        contacts = [c.other_user(user.id) for c in connections]
        return [u for u in contacts if u is not None and u.is_active]
