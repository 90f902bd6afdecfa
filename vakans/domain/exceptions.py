"""Errors raised by use cases and translated into HTTP responses by the API."""


class NotFoundError(ValueError):
    """The requested resource does not exist."""


class PermissionDeniedError(ValueError):
    """The acting user may not touch the requested resource."""


class ChatNotFoundError(NotFoundError):
    """The chat peer, room or message does not exist."""


class ChatPermissionError(PermissionDeniedError):
    """The acting user does not take part in the chat room."""


class ChatValidationError(ValueError):
    """A chat message payload is incomplete."""


class ChatRoomClosedError(ValueError):
    """A message was sent to a room that no longer accepts messages."""

    def __init__(self, room_id: int) -> None:
        super().__init__(f"Chat room {room_id} is closed")
        self.room_id = room_id


class NotificationPersistenceError(RuntimeError):
    """The durable notification write failed; nothing was emitted."""


__all__ = [
    "ChatNotFoundError",
    "ChatPermissionError",
    "ChatRoomClosedError",
    "ChatValidationError",
    "NotFoundError",
    "NotificationPersistenceError",
    "PermissionDeniedError",
]
