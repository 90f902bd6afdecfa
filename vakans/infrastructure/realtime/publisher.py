"""Serialization of persisted records into realtime and push payloads."""

from __future__ import annotations

from typing import Any

from vakans.domain.entities import ChatMessage, ChatRoom, Notification
from vakans.utils import isoformat_or_none

DEFAULT_PUSH_URL = "/"


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type.value,
        "title": notification.title,
        "message": notification.message,
        "data": notification.data or {},
        "link": notification.link,
        "is_read": notification.is_read,
        "read_at": isoformat_or_none(notification.read_at),
        "created_at": isoformat_or_none(notification.created_at),
    }


def serialize_message(message: ChatMessage) -> dict[str, Any]:
    return {
        "id": message.id,
        "room_id": message.room_id,
        "sender_id": message.sender_id,
        "content": message.content,
        "type": message.type.value,
        "file_url": message.file_url,
        "file_name": message.file_name,
        "file_size": message.file_size,
        "is_read": message.is_read,
        "is_deleted": message.is_deleted,
        "created_at": isoformat_or_none(message.created_at),
    }


def serialize_room(room: ChatRoom) -> dict[str, Any]:
    return {
        "id": room.id,
        "participant_ids": list(room.participant_ids),
        "status": room.status.value,
        "job_id": room.job_id,
        "created_at": isoformat_or_none(room.created_at),
        "updated_at": isoformat_or_none(room.updated_at),
        "closed_at": isoformat_or_none(room.closed_at),
    }


def build_push_payload(notification: Notification) -> dict[str, str]:
    """Build the Web Push body consumed by the client cache worker."""

    return {
        "title": notification.title,
        "body": notification.message,
        "url": notification.link or DEFAULT_PUSH_URL,
    }


__all__ = [
    "build_push_payload",
    "serialize_message",
    "serialize_notification",
    "serialize_room",
]
