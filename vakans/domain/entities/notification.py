"""Domain entities representing user notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    """Categories of notifications shown in the notification center."""

    APPLICATION = "APPLICATION"
    MESSAGE = "MESSAGE"
    JOB_APPROVED = "JOB_APPROVED"
    JOB = "JOB"
    SYSTEM = "SYSTEM"


@dataclass(frozen=True)
class NotificationDraft:
    """Content of a notification that has not been persisted yet."""

    type: NotificationType
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    link: str | None = None


@dataclass
class Notification:
    """Information message delivered to a specific user.

    The persisted row is the durable record; realtime pushes only hint that
    it exists.
    """

    id: int | None
    user_id: int
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    link: str | None = None
    is_read: bool = False
    read_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_draft(
        cls, user_id: int, draft: NotificationDraft, *, created_at: datetime | None = None
    ) -> "Notification":
        return cls(
            id=None,
            user_id=user_id,
            type=draft.type,
            title=draft.title,
            message=draft.message,
            data=dict(draft.data),
            link=draft.link,
            created_at=created_at,
        )


__all__ = ["Notification", "NotificationDraft", "NotificationType"]
