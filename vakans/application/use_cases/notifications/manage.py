"""Pull-based access to a user's notifications."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.orm import Session

from vakans.domain.entities import Notification, NotificationType
from vakans.domain.exceptions import NotFoundError, PermissionDeniedError
from vakans.infrastructure.repositories import NotificationRepository

MAX_PAGE_SIZE = 100


@dataclass
class NotificationPage:
    items: Sequence[Notification]
    unread_count: int
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def list_notifications(
    session: Session,
    *,
    user_id: int,
    page: int = 1,
    limit: int = 20,
    unread_only: bool = False,
    notification_type: NotificationType | None = None,
) -> NotificationPage:
    """Return a page of the user's notifications together with the unread count."""

    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    repository = NotificationRepository(session)
    items, total = repository.list_for_user(
        user_id,
        skip=(page - 1) * limit,
        limit=limit,
        unread_only=unread_only,
        notification_type=notification_type,
    )
    return NotificationPage(
        items=items,
        unread_count=repository.count_unread(user_id),
        page=page,
        limit=limit,
        total=total,
    )


def get_unread_count(session: Session, *, user_id: int) -> int:
    return NotificationRepository(session).count_unread(user_id)


def _get_owned(repository: NotificationRepository, notification_id: int, user_id: int) -> Notification:
    notification = repository.get(notification_id)
    if notification is None:
        raise NotFoundError("Bildirishnoma topilmadi")
    if notification.user_id != user_id:
        raise PermissionDeniedError("Bu bildirishnomaga kirish huquqi yo'q")
    return notification


def mark_notification_read(
    session: Session, *, notification_id: int, user_id: int
) -> Notification:
    """Mark one notification as read; only its owner may do so."""

    repository = NotificationRepository(session)
    notification = _get_owned(repository, notification_id, user_id)
    if notification.is_read:
        return notification
    repository.mark_as_read([notification_id], user_id=user_id)
    return repository.get(notification_id) or notification


def mark_notifications_read(
    session: Session, *, notification_ids: Sequence[int], user_id: int
) -> int:
    """Mark a batch of the user's notifications as read, ignoring foreign ids."""

    return NotificationRepository(session).mark_as_read(notification_ids, user_id=user_id)


def mark_all_notifications_read(session: Session, *, user_id: int) -> int:
    return NotificationRepository(session).mark_all_as_read(user_id)


def delete_notification(session: Session, *, notification_id: int, user_id: int) -> None:
    repository = NotificationRepository(session)
    _get_owned(repository, notification_id, user_id)
    repository.delete(notification_id)


def delete_all_notifications(session: Session, *, user_id: int) -> int:
    return NotificationRepository(session).delete_all(user_id)


__all__ = [
    "NotificationPage",
    "delete_all_notifications",
    "delete_notification",
    "get_unread_count",
    "list_notifications",
    "mark_all_notifications_read",
    "mark_notification_read",
    "mark_notifications_read",
]
