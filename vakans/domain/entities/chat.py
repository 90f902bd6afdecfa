"""Domain entities for employer/candidate chat."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ChatRoomStatus(str, Enum):
    """Lifecycle of a chat room. ``CLOSED`` is terminal."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class MessageType(str, Enum):
    TEXT = "TEXT"
    IMAGE = "IMAGE"
    FILE = "FILE"


@dataclass
class ChatRoom:
    """Conversation between two participants, optionally about a job."""

    id: int | None
    participant_ids: list[int]
    status: ChatRoomStatus = ChatRoomStatus.OPEN
    job_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    closed_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status is ChatRoomStatus.OPEN

    def has_participant(self, user_id: int) -> bool:
        return user_id in self.participant_ids

    def other_participant(self, user_id: int) -> int | None:
        """Return the participant that is not ``user_id``."""

        for participant_id in self.participant_ids:
            if participant_id != user_id:
                return participant_id
        return None


@dataclass
class ChatMessage:
    """Message stored in a chat room."""

    id: int | None
    room_id: int
    sender_id: int
    content: str
    type: MessageType = MessageType.TEXT
    file_url: str | None = None
    file_name: str | None = None
    file_size: int | None = None
    is_read: bool = False
    read_at: datetime | None = None
    is_deleted: bool = False
    created_at: datetime | None = None


@dataclass
class ChatRoomSummary:
    """Room listing entry with the data the inbox view needs."""

    room: ChatRoom
    last_message: ChatMessage | None = None
    unread_count: int = 0
    participant_names: dict[int, str] = field(default_factory=dict)


__all__ = [
    "ChatMessage",
    "ChatRoom",
    "ChatRoomStatus",
    "ChatRoomSummary",
    "MessageType",
]
