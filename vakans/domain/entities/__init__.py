"""Domain entities exposed by the application."""

from .chat import ChatMessage, ChatRoom, ChatRoomStatus, ChatRoomSummary, MessageType
from .notification import Notification, NotificationDraft, NotificationType
from .user import User, UserRole

__all__ = [
    "ChatMessage",
    "ChatRoom",
    "ChatRoomStatus",
    "ChatRoomSummary",
    "MessageType",
    "Notification",
    "NotificationDraft",
    "NotificationType",
    "User",
    "UserRole",
]
