"""Helper utilities shared across API route handlers."""

from fastapi import HTTPException, status

from vakans.domain.exceptions import (
    ChatRoomClosedError,
    NotFoundError,
    PermissionDeniedError,
)


def http_error_for(exc: ValueError) -> HTTPException:
    """Return the HTTP error matching a domain exception."""

    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, PermissionDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, ChatRoomClosedError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Chat yopilgan")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
