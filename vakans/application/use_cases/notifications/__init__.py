"""Public helpers for emitting and reading domain notifications."""

from .dispatcher import DispatchResult, NotificationDispatcher
from .events import (
    broadcast_notification,
    notify_application_status_changed,
    notify_application_submitted,
    notify_job_posted_in_category,
    notify_job_status_changed,
    notify_new_message,
    notify_system,
)
from .manage import (
    NotificationPage,
    delete_all_notifications,
    delete_notification,
    get_unread_count,
    list_notifications,
    mark_all_notifications_read,
    mark_notification_read,
    mark_notifications_read,
)

__all__ = [
    "DispatchResult",
    "NotificationDispatcher",
    "NotificationPage",
    "broadcast_notification",
    "delete_all_notifications",
    "delete_notification",
    "get_unread_count",
    "list_notifications",
    "mark_all_notifications_read",
    "mark_notification_read",
    "mark_notifications_read",
    "notify_application_status_changed",
    "notify_application_submitted",
    "notify_job_posted_in_category",
    "notify_job_status_changed",
    "notify_new_message",
    "notify_system",
]
