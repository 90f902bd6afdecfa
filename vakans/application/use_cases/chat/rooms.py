"""Use cases for opening, listing and closing chat rooms."""

from __future__ import annotations

import logging
from functools import partial

from anyio import to_thread
from sqlalchemy.orm import Session

from vakans.domain.entities import ChatRoom, ChatRoomSummary
from vakans.domain.exceptions import ChatNotFoundError, ChatPermissionError
from vakans.infrastructure.realtime import RealtimeGateway, events, serialize_room
from vakans.infrastructure.repositories import ChatRepository, UserRepository

logger = logging.getLogger(__name__)


def get_or_create_room(
    session: Session,
    *,
    user_id: int,
    participant_id: int,
    job_id: int | None = None,
) -> ChatRoom:
    """Return the room shared by both users, creating it when missing."""

    if participant_id == user_id:
        raise ChatNotFoundError("Foydalanuvchi topilmadi")
    if UserRepository(session).get(participant_id) is None:
        raise ChatNotFoundError("Foydalanuvchi topilmadi")

    repository = ChatRepository(session)
    existing = repository.find_room_between(user_id, participant_id, job_id=job_id)
    if existing is not None:
        return existing
    room = repository.create_room([user_id, participant_id], job_id=job_id)
    logger.info("Chat room %s opened between %s and %s", room.id, user_id, participant_id)
    return room


async def open_room(
    session: Session,
    gateway: RealtimeGateway,
    *,
    user_id: int,
    participant_id: int,
    job_id: int | None = None,
) -> ChatRoom:
    """Get or create a room and subscribe both users' live sockets to it."""

    room = await to_thread.run_sync(
        partial(
            get_or_create_room,
            session,
            user_id=user_id,
            participant_id=participant_id,
            job_id=job_id,
        )
    )
    for member_id in room.participant_ids:
        gateway.manager.join_user_to_room(member_id, room.id)
    return room


def list_rooms(session: Session, *, user_id: int) -> list[ChatRoomSummary]:
    return ChatRepository(session).list_rooms_for_user(user_id)


def list_room_ids(session: Session, *, user_id: int) -> list[int]:
    return ChatRepository(session).list_room_ids_for_user(user_id)


def get_participant_room(session: Session, *, room_id: int, user_id: int) -> ChatRoom:
    """Return the room if ``user_id`` takes part in it."""

    room = ChatRepository(session).get_room(room_id)
    if room is None or not room.has_participant(user_id):
        raise ChatPermissionError("Siz bu chatga kira olmaysiz")
    return room


def _close(session: Session, room_id: int, user_id: int, is_admin: bool) -> ChatRoom:
    repository = ChatRepository(session)
    room = repository.get_room(room_id)
    if room is None:
        raise ChatNotFoundError("Chat topilmadi")
    if not is_admin and not room.has_participant(user_id):
        raise ChatPermissionError("Siz bu chatga kira olmaysiz")
    return repository.close_room(room_id)


async def close_room(
    session: Session,
    gateway: RealtimeGateway,
    *,
    room_id: int,
    user_id: int,
    is_admin: bool = False,
) -> ChatRoom:
    """Move a room to ``CLOSED``; later sends fail with ``ChatRoomClosedError``."""

    room = await to_thread.run_sync(_close, session, room_id, user_id, is_admin)
    await gateway.broadcast_room(room.id, events.ROOM_CLOSED, serialize_room(room))
    return room


__all__ = [
    "close_room",
    "get_or_create_room",
    "get_participant_room",
    "list_room_ids",
    "list_rooms",
    "open_room",
]
