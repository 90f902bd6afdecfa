"""Names of the events exchanged over the realtime channel."""

from typing import Final

NOTIFICATION: Final = "notification"
NEW_MESSAGE: Final = "new_message"
JOB_UPDATE: Final = "job_update"
APPLICATION_UPDATE: Final = "application_update"

UNREAD_COUNT: Final = "unread_count"
MESSAGES_READ: Final = "messages_read"
MESSAGE_DELETED: Final = "message_deleted"
USER_TYPING: Final = "user_typing"
ROOM_CLOSED: Final = "room_closed"
ONLINE_STATUS: Final = "online_status"
CONNECTED: Final = "connected"
PONG: Final = "pong"
ERROR: Final = "error"


def envelope(event: str, payload: object) -> dict[str, object]:
    """Wrap ``payload`` in the frame every client expects."""

    return {"type": event, "data": payload}
