"""Administrator tooling for system-wide notifications."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from vakans.application.use_cases.notifications import (
    NotificationDispatcher,
    broadcast_notification,
    notify_system,
)
from vakans.application.use_cases.users import get_user
from vakans.domain.entities import User
from vakans.domain.exceptions import NotFoundError
from vakans.infrastructure.database import get_db
from vakans.interfaces.api.dependencies import get_dispatcher, require_admin
from vakans.interfaces.api.schemas import (
    BroadcastRequest,
    BroadcastResponse,
    NotificationRead,
    SystemNotificationRequest,
)

router = APIRouter(prefix="/admin/notifications", tags=["admin"])
logger = logging.getLogger(__name__)


@router.post("/broadcast", response_model=BroadcastResponse)
async def broadcast(
    payload: BroadcastRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> BroadcastResponse:
    """Store a notification for every non-blocked user and push it to those online."""

    sent = await broadcast_notification(
        db,
        dispatcher,
        title=payload.title,
        message=payload.message,
        notification_type=payload.type,
        link=payload.link,
    )
    logger.info("Admin %s broadcast %r to %s users", current_user.id, payload.title, sent)
    return BroadcastResponse(sent=sent)


@router.post(
    "/system",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
)
async def send_system_notification(
    payload: SystemNotificationRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> NotificationRead:
    try:
        get_user(db, payload.user_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    result = await notify_system(
        db,
        dispatcher,
        user_id=payload.user_id,
        title=payload.title,
        message=payload.message,
        link=payload.link,
    )
    return NotificationRead.model_validate(result.notification)
