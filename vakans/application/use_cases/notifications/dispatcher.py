"""Durable-then-realtime notification delivery."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from anyio import to_thread
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vakans.domain.entities import Notification, NotificationDraft
from vakans.domain.exceptions import NotificationPersistenceError
from vakans.infrastructure.realtime import (
    DeliveryReport,
    RealtimeGateway,
    events,
    serialize_notification,
)
from vakans.infrastructure.repositories import NotificationRepository
from vakans.utils import now_in_app_timezone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchResult:
    """Persisted notification plus what happened to its realtime push."""

    notification: Notification
    delivery: DeliveryReport

    @property
    def delivered(self) -> bool:
        return self.delivery.delivered_any


class NotificationDispatcher:
    """Persist notifications, then hint connected clients about them.

    The row is committed before :meth:`RealtimeGateway.emit_to_user` is
    called, so a client that receives a ``notification`` event can always
    find it through the listing endpoint. Missing connections and failed
    sends are not errors and are never retried.
    """

    def __init__(self, gateway: RealtimeGateway) -> None:
        self._gateway = gateway

    @property
    def gateway(self) -> RealtimeGateway:
        return self._gateway

    async def dispatch(
        self, session: Session, user_id: int, draft: NotificationDraft
    ) -> DispatchResult:
        """Store ``draft`` for ``user_id`` and push it if the user is online."""

        (saved,) = await self._persist(session, [self._build(user_id, draft)])
        return await self._emit(saved)

    async def dispatch_many(
        self, session: Session, user_ids: Sequence[int], draft: NotificationDraft
    ) -> list[DispatchResult]:
        """Store one copy of ``draft`` per user in a single transaction, then push."""

        unique_ids = list(dict.fromkeys(user_id for user_id in user_ids if user_id))
        if not unique_ids:
            return []
        saved = await self._persist(
            session, [self._build(user_id, draft) for user_id in unique_ids]
        )
        return [await self._emit(notification) for notification in saved]

    @staticmethod
    def _build(user_id: int, draft: NotificationDraft) -> Notification:
        return Notification.from_draft(user_id, draft, created_at=now_in_app_timezone())

    async def _persist(
        self, session: Session, notifications: list[Notification]
    ) -> list[Notification]:
        # The worker thread is not abandoned on cancellation, so a started
        # write always runs to completion.
        return await to_thread.run_sync(_write_notifications, session, notifications)

    async def _emit(self, notification: Notification) -> DispatchResult:
        delivery = await self._gateway.emit_to_user(
            notification.user_id,
            events.NOTIFICATION,
            serialize_notification(notification),
        )
        if not delivery.has_connection:
            logger.debug(
                "Notification %s stored for offline user %s",
                notification.id,
                notification.user_id,
            )
        return DispatchResult(notification=notification, delivery=delivery)


def _write_notifications(
    session: Session, notifications: list[Notification]
) -> list[Notification]:
    repository = NotificationRepository(session)
    try:
        return repository.create_many(notifications)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error(
            "Could not persist %s notification(s) for users %s: %s",
            len(notifications),
            sorted({notification.user_id for notification in notifications}),
            exc,
        )
        raise NotificationPersistenceError("Notification could not be stored") from exc


__all__ = ["DispatchResult", "NotificationDispatcher"]
