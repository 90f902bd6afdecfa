"""Schemas for administrator notification tooling."""

from pydantic import BaseModel, Field

from vakans.domain.entities import NotificationType


class BroadcastRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.SYSTEM
    link: str | None = None


class BroadcastResponse(BaseModel):
    sent: int


class SystemNotificationRequest(BaseModel):
    user_id: int = Field(..., ge=1)
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    link: str | None = None
