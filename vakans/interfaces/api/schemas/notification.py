"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from vakans.domain.entities import NotificationType


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    link: str | None = None
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    items: list[NotificationRead]
    unread_count: int
    page: int
    limit: int
    total: int
    total_pages: int


class UnreadCountResponse(BaseModel):
    count: int


class UpdatedCountResponse(BaseModel):
    updated: int


__all__ = [
    "NotificationListResponse",
    "NotificationRead",
    "UnreadCountResponse",
    "UpdatedCountResponse",
]
