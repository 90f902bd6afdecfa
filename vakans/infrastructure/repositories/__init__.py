"""Repository implementations for infrastructure layer."""

from .chat_repository import ChatRepository
from .notification_repository import NotificationRepository
from .user_repository import UserRepository

__all__ = [
    "ChatRepository",
    "NotificationRepository",
    "UserRepository",
]
