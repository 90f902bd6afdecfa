"""Translate domain events into notifications and realtime updates."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from anyio import to_thread
from sqlalchemy.orm import Session

from vakans.domain.entities import NotificationDraft, NotificationType
from vakans.infrastructure.realtime import events
from vakans.infrastructure.repositories import UserRepository

from .dispatcher import DispatchResult, NotificationDispatcher

logger = logging.getLogger(__name__)

BROADCAST_BATCH_SIZE = 100
MESSAGE_PREVIEW_LENGTH = 50

_APPLICATION_STATUS_TEXT = {
    "VIEWED": (
        "Ariza ko'rib chiqildi",
        "\"{job}\" ishiga topshirgan arizangiz ko'rib chiqildi",
    ),
    "ACCEPTED": (
        "Tabriklaymiz!",
        "\"{job}\" ishiga arizangiz qabul qilindi",
    ),
    "REJECTED": (
        "Ariza rad etildi",
        "\"{job}\" ishiga arizangiz rad etildi",
    ),
}

_JOB_STATUS_TEXT = {
    "APPROVED": (
        "Ish tasdiqlandi",
        "\"{job}\" ish e'loni tasdiqlandi va faol holatga o'tdi",
    ),
    "REJECTED": (
        "Ish rad etildi",
        "\"{job}\" ish e'loni rad etildi",
    ),
    "EXPIRED": (
        "Ish muddati tugadi",
        "\"{job}\" ish e'lonining muddati tugadi",
    ),
}


async def notify_application_submitted(
    session: Session,
    dispatcher: NotificationDispatcher,
    *,
    employer_id: int,
    worker_name: str,
    job_title: str,
    application_id: int,
    job_id: int,
) -> DispatchResult:
    """Tell an employer that a candidate applied to one of their jobs."""

    draft = NotificationDraft(
        type=NotificationType.APPLICATION,
        title="Yangi ariza",
        message=f'{worker_name} "{job_title}" ishiga ariza topshirdi',
        data={"application_id": application_id, "job_id": job_id},
        link=f"/employer/applications/{application_id}",
    )
    return await dispatcher.dispatch(session, employer_id, draft)


async def notify_application_status_changed(
    session: Session,
    dispatcher: NotificationDispatcher,
    *,
    worker_id: int,
    job_title: str,
    status: str,
    application_id: int,
    job_id: int,
) -> DispatchResult | None:
    """Tell a candidate that the employer moved their application."""

    status = status.upper()
    text = _APPLICATION_STATUS_TEXT.get(status)
    if text is None:
        logger.debug("No notification for application status %s", status)
        return None

    title, template = text
    data = {"application_id": application_id, "job_id": job_id, "status": status}
    result = await dispatcher.dispatch(
        session,
        worker_id,
        NotificationDraft(
            type=NotificationType.APPLICATION,
            title=title,
            message=template.format(job=job_title),
            data=data,
            link=f"/worker/applications/{application_id}",
        ),
    )
    await dispatcher.gateway.emit_to_user(worker_id, events.APPLICATION_UPDATE, data)
    return result


async def notify_new_message(
    session: Session,
    dispatcher: NotificationDispatcher,
    *,
    user_id: int,
    sender_name: str,
    room_id: int,
    preview: str,
) -> DispatchResult:
    """Leave a trace of an incoming chat message in the notification center."""

    snippet = preview[:MESSAGE_PREVIEW_LENGTH]
    if len(preview) > MESSAGE_PREVIEW_LENGTH:
        snippet += "..."
    draft = NotificationDraft(
        type=NotificationType.MESSAGE,
        title="Yangi xabar",
        message=f"{sender_name}: {snippet}",
        data={"room_id": room_id},
        link=f"/chat/{room_id}",
    )
    return await dispatcher.dispatch(session, user_id, draft)


async def notify_job_status_changed(
    session: Session,
    dispatcher: NotificationDispatcher,
    *,
    employer_id: int,
    job_title: str,
    status: str,
    job_id: int,
    reason: str | None = None,
) -> DispatchResult | None:
    """Tell an employer that moderation changed the state of a job posting."""

    status = status.upper()
    text = _JOB_STATUS_TEXT.get(status)
    if text is None:
        logger.debug("No notification for job status %s", status)
        return None

    title, template = text
    message = template.format(job=job_title)
    if status == "REJECTED" and reason:
        message = f"{message}: {reason}"
    data = {"job_id": job_id, "status": status, "reason": reason}
    result = await dispatcher.dispatch(
        session,
        employer_id,
        NotificationDraft(
            type=NotificationType.JOB_APPROVED,
            title=title,
            message=message,
            data=data,
            link=f"/employer/jobs/{job_id}",
        ),
    )
    await dispatcher.gateway.emit_to_user(employer_id, events.JOB_UPDATE, data)
    return result


async def notify_job_posted_in_category(
    session: Session,
    dispatcher: NotificationDispatcher,
    *,
    follower_ids: Sequence[int],
    job_id: int,
    job_title: str,
    category_name: str,
) -> list[DispatchResult]:
    """Tell everyone following a category about a newly published job."""

    data = {"job_id": job_id, "category": category_name}
    results = await dispatcher.dispatch_many(
        session,
        follower_ids,
        NotificationDraft(
            type=NotificationType.JOB,
            title="Yangi ish e'loni",
            message=f'"{category_name}" bo\'limida yangi ish: "{job_title}"',
            data=data,
            link=f"/jobs/{job_id}",
        ),
    )
    await dispatcher.gateway.emit_to_users(
        [result.notification.user_id for result in results], events.JOB_UPDATE, data
    )
    return results


async def notify_system(
    session: Session,
    dispatcher: NotificationDispatcher,
    *,
    user_id: int,
    title: str,
    message: str,
    link: str | None = None,
    data: dict | None = None,
) -> DispatchResult:
    draft = NotificationDraft(
        type=NotificationType.SYSTEM,
        title=title,
        message=message,
        data=data or {},
        link=link,
    )
    return await dispatcher.dispatch(session, user_id, draft)


async def broadcast_notification(
    session: Session,
    dispatcher: NotificationDispatcher,
    *,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.SYSTEM,
    link: str | None = None,
) -> int:
    """Notify every user that is not blocked; return how many rows were stored."""

    user_ids = await to_thread.run_sync(UserRepository(session).list_active_ids)
    draft = NotificationDraft(
        type=notification_type, title=title, message=message, link=link
    )
    stored = 0
    for start in range(0, len(user_ids), BROADCAST_BATCH_SIZE):
        batch = user_ids[start : start + BROADCAST_BATCH_SIZE]
        stored += len(await dispatcher.dispatch_many(session, batch, draft))
    logger.info("Broadcast notification %r stored for %s users", title, stored)
    return stored


__all__ = [
    "BROADCAST_BATCH_SIZE",
    "broadcast_notification",
    "notify_application_status_changed",
    "notify_application_submitted",
    "notify_job_posted_in_category",
    "notify_job_status_changed",
    "notify_new_message",
    "notify_system",
]
