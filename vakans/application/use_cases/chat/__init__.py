"""Use cases for employer/candidate chat."""

from .messages import (
    MAX_MESSAGES_PER_ROOM,
    MessagePage,
    delete_message,
    get_chat_unread_count,
    list_messages,
    mark_room_read,
    send_message,
)
from .rooms import (
    close_room,
    get_or_create_room,
    get_participant_room,
    list_room_ids,
    list_rooms,
    open_room,
)

__all__ = [
    "MAX_MESSAGES_PER_ROOM",
    "MessagePage",
    "close_room",
    "delete_message",
    "get_chat_unread_count",
    "get_or_create_room",
    "get_participant_room",
    "list_messages",
    "list_room_ids",
    "list_rooms",
    "mark_room_read",
    "open_room",
    "send_message",
]
