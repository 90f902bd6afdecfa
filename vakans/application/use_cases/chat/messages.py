"""Use cases for sending, reading and deleting chat messages."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from functools import partial

from anyio import to_thread
from sqlalchemy.orm import Session

from vakans.application.use_cases.notifications import (
    NotificationDispatcher,
    notify_new_message,
)
from vakans.domain.entities import ChatMessage, ChatRoom, MessageType
from vakans.domain.exceptions import (
    ChatNotFoundError,
    ChatPermissionError,
    ChatRoomClosedError,
    ChatValidationError,
)
from vakans.infrastructure.realtime import (
    RealtimeConnection,
    RealtimeGateway,
    events,
    serialize_message,
)
from vakans.infrastructure.repositories import ChatRepository, UserRepository

from .rooms import get_participant_room

logger = logging.getLogger(__name__)

MAX_MESSAGES_PER_ROOM = 200
MAX_CONTENT_LENGTH = 2000


@dataclass
class MessagePage:
    messages: list[ChatMessage]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def list_messages(
    session: Session,
    *,
    room_id: int,
    user_id: int,
    page: int = 1,
    limit: int = MAX_MESSAGES_PER_ROOM,
) -> MessagePage:
    """Return messages in chronological order and mark the peer's ones as read."""

    get_participant_room(session, room_id=room_id, user_id=user_id)
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_MESSAGES_PER_ROOM)
    repository = ChatRepository(session)
    messages, total = repository.list_messages(
        room_id, skip=(page - 1) * limit, limit=limit
    )
    repository.mark_read(room_id, reader_id=user_id)
    return MessagePage(messages=messages, page=page, limit=limit, total=total)


def _validate_payload(
    content: str, message_type: MessageType, file_url: str | None
) -> None:
    if message_type is MessageType.TEXT and not content.strip():
        raise ChatValidationError("Xabar matni kiritilishi shart")
    if message_type in (MessageType.IMAGE, MessageType.FILE) and not file_url:
        raise ChatValidationError("Fayl URL kiritilishi shart")
    if len(content) > MAX_CONTENT_LENGTH:
        raise ChatValidationError("Xabar 2000 belgidan oshmasligi kerak")


def _store_message(
    session: Session, message: ChatMessage
) -> tuple[ChatMessage, ChatRoom, str]:
    room = ChatRepository(session).get_room(message.room_id)
    if room is None or not room.has_participant(message.sender_id):
        raise ChatPermissionError("Siz bu chatga xabar yuborolmaysiz")
    if not room.is_open:
        raise ChatRoomClosedError(room.id)
    _validate_payload(message.content, message.type, message.file_url)

    repository = ChatRepository(session)
    saved = repository.add_message(message)
    pruned = repository.prune_messages(room.id, keep=MAX_MESSAGES_PER_ROOM)
    if pruned:
        logger.debug("Pruned %s old messages from room %s", pruned, room.id)

    sender = UserRepository(session).get(message.sender_id)
    sender_name = sender.display_name if sender else str(message.sender_id)
    return saved, room, sender_name


async def send_message(
    session: Session,
    gateway: RealtimeGateway,
    dispatcher: NotificationDispatcher,
    *,
    sender_id: int,
    room_id: int,
    content: str = "",
    message_type: MessageType = MessageType.TEXT,
    file_url: str | None = None,
    file_name: str | None = None,
    file_size: int | None = None,
) -> ChatMessage:
    """Persist a message, relay it to the room and notify the other participant.

    Raises ``ChatRoomClosedError`` once the room is ``CLOSED``. Nothing is
    relayed unless the message was stored.
    """

    draft = ChatMessage(
        id=None,
        room_id=room_id,
        sender_id=sender_id,
        content=content or "",
        type=message_type,
        file_url=file_url,
        file_name=file_name,
        file_size=file_size,
    )
    saved, room, sender_name = await to_thread.run_sync(_store_message, session, draft)

    await gateway.broadcast_room(
        room.id,
        events.NEW_MESSAGE,
        {"room_id": room.id, "message": serialize_message(saved)},
    )

    receiver_id = room.other_participant(sender_id)
    if receiver_id is not None:
        await notify_new_message(
            session,
            dispatcher,
            user_id=receiver_id,
            sender_name=sender_name,
            room_id=room.id,
            preview=saved.content or saved.file_name or "",
        )
    return saved


async def mark_room_read(
    session: Session,
    gateway: RealtimeGateway,
    *,
    room_id: int,
    user_id: int,
    exclude: RealtimeConnection | None = None,
) -> int:
    """Mark the peer's messages as read and tell the room about it.

    ``exclude`` is the reader's own socket when the request came over one.
    """

    def _mark() -> int:
        get_participant_room(session, room_id=room_id, user_id=user_id)
        return ChatRepository(session).mark_read(room_id, reader_id=user_id)

    updated = await to_thread.run_sync(_mark)
    await gateway.broadcast_room(
        room_id,
        events.MESSAGES_READ,
        {"room_id": room_id, "read_by": user_id},
        exclude=exclude,
    )
    return updated


def _soft_delete(session: Session, message_id: int, user_id: int) -> ChatMessage:
    repository = ChatRepository(session)
    message = repository.get_message(message_id)
    if message is None:
        raise ChatNotFoundError("Xabar topilmadi")
    if message.sender_id != user_id:
        raise ChatPermissionError("Siz bu xabarni o'chira olmaysiz")
    return repository.soft_delete_message(message_id)


async def delete_message(
    session: Session, gateway: RealtimeGateway, *, message_id: int, user_id: int
) -> ChatMessage:
    """Soft delete a message; only its sender may do so."""

    deleted = await to_thread.run_sync(partial(_soft_delete, session, message_id, user_id))
    await gateway.broadcast_room(
        deleted.room_id,
        events.MESSAGE_DELETED,
        {"room_id": deleted.room_id, "message_id": deleted.id},
    )
    return deleted


def get_chat_unread_count(session: Session, *, user_id: int) -> int:
    return ChatRepository(session).count_unread_for_user(user_id)


__all__ = [
    "MAX_MESSAGES_PER_ROOM",
    "MessagePage",
    "delete_message",
    "get_chat_unread_count",
    "list_messages",
    "mark_room_read",
    "send_message",
]
