"""Persistence helpers for chat rooms and messages."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from vakans.domain.entities import (
    ChatMessage,
    ChatRoom,
    ChatRoomStatus,
    ChatRoomSummary,
    MessageType,
)
from vakans.infrastructure.models import (
    ChatMessageModel,
    ChatRoomModel,
    UserModel,
    chat_room_participant_table,
)
from vakans.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)

DELETED_MESSAGE_PLACEHOLDER = "Xabar o'chirildi"


def _rooms_of(user_id: int):
    return select(chat_room_participant_table.c.room_id).where(
        chat_room_participant_table.c.user_id == user_id
    )


class ChatRepository:
    """Provide storage operations for :class:`ChatRoom` and :class:`ChatMessage`."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # Rooms

    def get_room(self, room_id: int) -> ChatRoom | None:
        model = self.session.get(ChatRoomModel, room_id)
        return self._room_to_entity(model) if model else None

    def find_room_between(
        self, user_id: int, other_id: int, *, job_id: int | None = None
    ) -> ChatRoom | None:
        query = (
            self.session.query(ChatRoomModel)
            .filter(ChatRoomModel.id.in_(_rooms_of(user_id)))
            .filter(ChatRoomModel.id.in_(_rooms_of(other_id)))
        )
        if job_id is not None:
            query = query.filter(ChatRoomModel.job_id == job_id)
        model = query.order_by(ChatRoomModel.id).first()
        return self._room_to_entity(model) if model else None

    def create_room(self, participant_ids: Sequence[int], *, job_id: int | None = None) -> ChatRoom:
        participants = (
            self.session.query(UserModel).filter(UserModel.id.in_(participant_ids)).all()
        )
        model = ChatRoomModel(
            job_id=job_id,
            status=ChatRoomStatus.OPEN.value,
            participants=participants,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._room_to_entity(model)

    def list_room_ids_for_user(self, user_id: int) -> list[int]:
        return list(self.session.scalars(_rooms_of(user_id)).all())

    def list_rooms_for_user(self, user_id: int) -> list[ChatRoomSummary]:
        rooms = (
            self.session.query(ChatRoomModel)
            .filter(ChatRoomModel.id.in_(_rooms_of(user_id)))
            .order_by(ChatRoomModel.updated_at.desc(), ChatRoomModel.id.desc())
            .all()
        )
        summaries: list[ChatRoomSummary] = []
        for model in rooms:
            last = (
                self.session.query(ChatMessageModel)
                .filter(ChatMessageModel.room_id == model.id)
                .order_by(ChatMessageModel.id.desc())
                .first()
            )
            unread = (
                self.session.query(ChatMessageModel)
                .filter(
                    ChatMessageModel.room_id == model.id,
                    ChatMessageModel.sender_id != user_id,
                    ChatMessageModel.is_read.is_(False),
                )
                .count()
            )
            summaries.append(
                ChatRoomSummary(
                    room=self._room_to_entity(model),
                    last_message=self._message_to_entity(last) if last else None,
                    unread_count=unread,
                    participant_names={
                        participant.id: f"{participant.first_name} {participant.last_name}".strip()
                        for participant in model.participants
                    },
                )
            )
        return summaries

    def close_room(self, room_id: int) -> ChatRoom:
        model = self.session.get(ChatRoomModel, room_id)
        if model is None:
            msg = f"Chat room with id {room_id} not found"
            raise ValueError(msg)
        if model.status != ChatRoomStatus.CLOSED.value:
            model.status = ChatRoomStatus.CLOSED.value
            model.closed_at = ensure_app_naive_datetime(now_in_app_timezone())
            self.session.commit()
            self.session.refresh(model)
        return self._room_to_entity(model)

    # Messages

    def add_message(self, message: ChatMessage) -> ChatMessage:
        """Store ``message`` and bump the room's activity timestamp."""

        now = ensure_app_naive_datetime(now_in_app_timezone())
        model = ChatMessageModel(
            room_id=message.room_id,
            sender_id=message.sender_id,
            content=message.content,
            type=message.type.value,
            file_url=message.file_url,
            file_name=message.file_name,
            file_size=message.file_size,
            created_at=ensure_app_naive_datetime(message.created_at) or now,
        )
        self.session.add(model)
        room = self.session.get(ChatRoomModel, message.room_id)
        if room is not None:
            room.updated_at = now
        self.session.commit()
        self.session.refresh(model)
        return self._message_to_entity(model)

    def prune_messages(self, room_id: int, *, keep: int) -> int:
        """Delete the oldest messages so that at most ``keep`` remain."""

        total = (
            self.session.query(func.count(ChatMessageModel.id))
            .filter(ChatMessageModel.room_id == room_id)
            .scalar()
        )
        excess = (total or 0) - keep
        if excess <= 0:
            return 0
        stale_ids = [
            message_id
            for (message_id,) in self.session.query(ChatMessageModel.id)
            .filter(ChatMessageModel.room_id == room_id)
            .order_by(ChatMessageModel.created_at.asc(), ChatMessageModel.id.asc())
            .limit(excess)
            .all()
        ]
        self.session.query(ChatMessageModel).filter(
            ChatMessageModel.id.in_(stale_ids)
        ).delete(synchronize_session=False)
        self.session.commit()
        return len(stale_ids)

    def list_messages(
        self, room_id: int, *, skip: int = 0, limit: int = 200
    ) -> tuple[list[ChatMessage], int]:
        """Return a page of messages in chronological order and the room total."""

        query = self.session.query(ChatMessageModel).filter(
            ChatMessageModel.room_id == room_id
        )
        total = query.count()
        newest_first = (
            query.order_by(ChatMessageModel.created_at.desc(), ChatMessageModel.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return [self._message_to_entity(model) for model in reversed(newest_first)], total

    def get_message(self, message_id: int) -> ChatMessage | None:
        model = self.session.get(ChatMessageModel, message_id)
        return self._message_to_entity(model) if model else None

    def soft_delete_message(self, message_id: int) -> ChatMessage:
        model = self.session.get(ChatMessageModel, message_id)
        if model is None:
            msg = f"Chat message with id {message_id} not found"
            raise ValueError(msg)
        model.content = DELETED_MESSAGE_PLACEHOLDER
        model.is_deleted = True
        model.file_url = None
        model.file_name = None
        self.session.commit()
        self.session.refresh(model)
        return self._message_to_entity(model)

    def mark_read(self, room_id: int, *, reader_id: int) -> int:
        """Mark every message sent to ``reader_id`` in the room as read."""

        updated = (
            self.session.query(ChatMessageModel)
            .filter(
                ChatMessageModel.room_id == room_id,
                ChatMessageModel.sender_id != reader_id,
                ChatMessageModel.is_read.is_(False),
            )
            .update(
                {
                    ChatMessageModel.is_read: True,
                    ChatMessageModel.read_at: ensure_app_naive_datetime(
                        now_in_app_timezone()
                    ),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def count_unread_for_user(self, user_id: int) -> int:
        return (
            self.session.query(ChatMessageModel)
            .filter(
                ChatMessageModel.room_id.in_(_rooms_of(user_id)),
                ChatMessageModel.sender_id != user_id,
                ChatMessageModel.is_read.is_(False),
            )
            .count()
        )

    @staticmethod
    def _room_to_entity(model: ChatRoomModel) -> ChatRoom:
        return ChatRoom(
            id=model.id,
            participant_ids=sorted(participant.id for participant in model.participants),
            status=ChatRoomStatus(model.status),
            job_id=model.job_id,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
            closed_at=ensure_app_timezone(model.closed_at),
        )

    @staticmethod
    def _message_to_entity(model: ChatMessageModel) -> ChatMessage:
        return ChatMessage(
            id=model.id,
            room_id=model.room_id,
            sender_id=model.sender_id,
            content=model.content or "",
            type=MessageType(model.type),
            file_url=model.file_url,
            file_name=model.file_name,
            file_size=model.file_size,
            is_read=bool(model.is_read),
            read_at=ensure_app_timezone(model.read_at),
            is_deleted=bool(model.is_deleted),
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["ChatRepository", "DELETED_MESSAGE_PLACEHOLDER"]
