"""Schemas for frames received over the realtime websockets."""

from typing import Annotated

from pydantic import BaseModel, Field

# Largest value a signed 64-bit INTEGER column can hold.
MAX_DATABASE_ID = 2**63 - 1

DatabaseId = Annotated[int, Field(strict=True, ge=1, le=MAX_DATABASE_ID)]


class RoomFrame(BaseModel):
    room_id: DatabaseId


class MarkNotificationsReadFrame(BaseModel):
    ids: list[DatabaseId] = Field(..., max_length=500)


class OnlineStatusFrame(BaseModel):
    user_ids: list[DatabaseId] = Field(..., max_length=100)


__all__ = [
    "DatabaseId",
    "MAX_DATABASE_ID",
    "MarkNotificationsReadFrame",
    "OnlineStatusFrame",
    "RoomFrame",
]
