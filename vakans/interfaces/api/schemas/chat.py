"""Schemas for chat rooms and messages."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from vakans.domain.entities import ChatRoomStatus, MessageType

from .websocket import MAX_DATABASE_ID


class ChatRoomCreate(BaseModel):
    participant_id: int = Field(..., ge=1)
    job_id: int | None = Field(default=None, ge=1)


class ChatRoomRead(BaseModel):
    id: int
    participant_ids: list[int]
    status: ChatRoomStatus
    job_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    closed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ChatMessageCreate(BaseModel):
    content: str = Field(default="", max_length=2000)
    type: MessageType = MessageType.TEXT
    file_url: str | None = None
    file_name: str | None = None
    file_size: int | None = Field(default=None, ge=0, le=MAX_DATABASE_ID)


class ChatMessageRead(BaseModel):
    id: int
    room_id: int
    sender_id: int
    content: str
    type: MessageType
    file_url: str | None = None
    file_name: str | None = None
    file_size: int | None = None
    is_read: bool
    read_at: datetime | None = None
    is_deleted: bool
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ChatRoomSummaryRead(BaseModel):
    """Inbox entry: the room plus its latest message and unread count."""

    room: ChatRoomRead
    last_message: ChatMessageRead | None = None
    unread_count: int = 0
    participant_names: dict[int, str] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)


class ChatMessageListResponse(BaseModel):
    messages: list[ChatMessageRead]
    page: int
    limit: int
    total: int
    total_pages: int


__all__ = [
    "ChatMessageCreate",
    "ChatMessageListResponse",
    "ChatMessageRead",
    "ChatRoomCreate",
    "ChatRoomRead",
    "ChatRoomSummaryRead",
]
