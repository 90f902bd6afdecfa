from .admin import BroadcastRequest, BroadcastResponse, SystemNotificationRequest
from .auth import Token, UserRead, UserRegister
from .chat import (
    ChatMessageCreate,
    ChatMessageListResponse,
    ChatMessageRead,
    ChatRoomCreate,
    ChatRoomRead,
    ChatRoomSummaryRead,
)
from .notification import (
    NotificationListResponse,
    NotificationRead,
    UnreadCountResponse,
    UpdatedCountResponse,
)
from .websocket import MarkNotificationsReadFrame, OnlineStatusFrame, RoomFrame

__all__ = [
    "BroadcastRequest",
    "BroadcastResponse",
    "ChatMessageCreate",
    "ChatMessageListResponse",
    "ChatMessageRead",
    "ChatRoomCreate",
    "ChatRoomRead",
    "ChatRoomSummaryRead",
    "MarkNotificationsReadFrame",
    "NotificationListResponse",
    "NotificationRead",
    "OnlineStatusFrame",
    "RoomFrame",
    "SystemNotificationRequest",
    "Token",
    "UnreadCountResponse",
    "UpdatedCountResponse",
    "UserRead",
    "UserRegister",
]
