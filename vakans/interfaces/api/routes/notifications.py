"""Endpoints and websocket handler for user notifications."""

from __future__ import annotations

import logging
from functools import partial

from anyio import to_thread
from fastapi import (
    APIRouter,
    Depends,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from pydantic import ValidationError
from sqlalchemy.orm import Session

from vakans.application.use_cases.notifications import (
    delete_all_notifications,
    delete_notification,
    get_unread_count,
    list_notifications,
    mark_all_notifications_read,
    mark_notification_read,
    mark_notifications_read,
)
from vakans.domain.entities import NotificationType, User
from vakans.infrastructure.database import SessionLocal, get_db
from vakans.infrastructure.realtime import RealtimeGateway, events
from vakans.interfaces.api.dependencies import get_current_user
from vakans.interfaces.api.routes_helpers import http_error_for
from vakans.interfaces.api.schemas import (
    MarkNotificationsReadFrame,
    NotificationListResponse,
    NotificationRead,
    UnreadCountResponse,
    UpdatedCountResponse,
)
from vakans.interfaces.api.websocket import (
    authenticate_websocket,
    get_websocket_gateway,
    receive_message,
    send_error,
    send_event,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=NotificationListResponse)
def read_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = False,
    type: NotificationType | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> NotificationListResponse:
    """Return a page of notifications for the authenticated user."""

    result = list_notifications(
        db,
        user_id=current_user.id,
        page=page,
        limit=limit,
        unread_only=unread_only,
        notification_type=type,
    )
    return NotificationListResponse(
        items=[NotificationRead.model_validate(item) for item in result.items],
        unread_count=result.unread_count,
        page=result.page,
        limit=result.limit,
        total=result.total,
        total_pages=result.total_pages,
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
def read_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UnreadCountResponse:
    return UnreadCountResponse(count=get_unread_count(db, user_id=current_user.id))


@router.patch("/read-all", response_model=UpdatedCountResponse)
def mark_all_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UpdatedCountResponse:
    return UpdatedCountResponse(updated=mark_all_notifications_read(db, user_id=current_user.id))


@router.patch("/{notification_id}/read", response_model=NotificationRead)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> NotificationRead:
    """Mark one of the caller's notifications as read."""

    try:
        notification = mark_notification_read(
            db, notification_id=notification_id, user_id=current_user.id
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return NotificationRead.model_validate(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    try:
        delete_notification(db, notification_id=notification_id, user_id=current_user.id)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/", response_model=UpdatedCountResponse)
def remove_all_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UpdatedCountResponse:
    return UpdatedCountResponse(updated=delete_all_notifications(db, user_id=current_user.id))


async def _push_unread_count(gateway: RealtimeGateway, user_id: int) -> None:
    with SessionLocal() as session:
        count = await to_thread.run_sync(partial(get_unread_count, session, user_id=user_id))
    await gateway.emit_to_user(user_id, events.UNREAD_COUNT, {"count": count})


async def _handle_client_message(
    websocket: WebSocket, gateway: RealtimeGateway, user: User, message: dict
) -> None:
    message_type = message["type"]

    if message_type == "ping":
        await send_event(websocket, events.PONG)
        return

    if message_type == "get_unread_count":
        with SessionLocal() as session:
            count = await to_thread.run_sync(partial(get_unread_count, session, user_id=user.id))
        await send_event(websocket, events.UNREAD_COUNT, {"count": count})
        return

    if message_type == "mark_read":
        ids = MarkNotificationsReadFrame.model_validate(message).ids
        with SessionLocal() as session:
            await to_thread.run_sync(
                partial(mark_notifications_read, session, notification_ids=ids, user_id=user.id)
            )
        await _push_unread_count(gateway, user.id)
        return

    if message_type == "mark_all_read":
        with SessionLocal() as session:
            await to_thread.run_sync(
                partial(mark_all_notifications_read, session, user_id=user.id)
            )
        await _push_unread_count(gateway, user.id)
        return

    await send_error(websocket, f"Noma'lum xabar turi: {message_type}")


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Stream notifications to the authenticated user."""

    user = await authenticate_websocket(websocket)
    if user is None:
        return

    gateway = get_websocket_gateway(websocket)
    await gateway.connect(user.id, websocket)
    try:
        with SessionLocal() as session:
            count = await to_thread.run_sync(partial(get_unread_count, session, user_id=user.id))
        await send_event(websocket, events.CONNECTED, {"user_id": user.id, "unread_count": count})
        while True:
            message = await receive_message(websocket)
            if message is None:
                continue
            try:
                await _handle_client_message(websocket, gateway, user, message)
            except ValidationError as exc:
                logger.info("Malformed notification frame from user %s: %s", user.id, exc.errors())
                await send_error(websocket, "Noto'g'ri format")
            except ValueError as exc:
                logger.info("Notification frame from user %s rejected: %s", user.id, exc)
                await send_error(websocket, str(exc))
    except WebSocketDisconnect:
        pass
    finally:
        gateway.disconnect(user.id, websocket)
