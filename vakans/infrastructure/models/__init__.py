"""ORM models used by the application infrastructure."""

from .user import UserModel
from .notification import NotificationModel
from .chat import ChatMessageModel, ChatRoomModel, chat_room_participant_table

__all__ = [
    "ChatMessageModel",
    "ChatRoomModel",
    "chat_room_participant_table",
    "NotificationModel",
    "UserModel",
]
