"""Tests for durable-then-realtime notification delivery."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from vakans.application.use_cases.notifications import (
    NotificationDispatcher,
    broadcast_notification,
    notify_application_status_changed,
    notify_application_submitted,
    notify_job_posted_in_category,
    notify_job_status_changed,
    notify_new_message,
)
from vakans.domain.entities import NotificationDraft, NotificationType, UserRole
from vakans.domain.exceptions import NotificationPersistenceError
from vakans.infrastructure.database import SessionLocal
from vakans.infrastructure.models import NotificationModel
from vakans.infrastructure.realtime import ConnectionManager, RealtimeGateway
from vakans.infrastructure.repositories import NotificationRepository


@pytest.fixture
def dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(RealtimeGateway(ConnectionManager()))


def _draft(title: str = "Yangi ariza") -> NotificationDraft:
    return NotificationDraft(
        type=NotificationType.APPLICATION,
        title=title,
        message="Aziz ariza topshirdi",
        data={"application_id": 1},
        link="/employer/applications/1",
    )


def _stored_count(user_id: int) -> int:
    with SessionLocal() as other_session:
        return (
            other_session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .count()
        )


@pytest.mark.anyio
async def test_row_is_committed_before_the_push(session, dispatcher, make_user, connection_factory):
    user = make_user(role=UserRole.EMPLOYER)
    seen_rows: list[int] = []

    class ProbingConnection(connection_factory):
        async def send_json(self, data, mode="text"):
            seen_rows.append(_stored_count(user.id))
            await super().send_json(data, mode)

    connection = ProbingConnection()
    await dispatcher.gateway.connect(user.id, connection)

    result = await dispatcher.dispatch(session, user.id, _draft())

    assert seen_rows == [1]
    assert result.delivered
    assert connection.sent[0]["type"] == "notification"
    assert connection.sent[0]["data"]["id"] == result.notification.id


@pytest.mark.anyio
async def test_dispatch_to_offline_user_still_stores_the_row(session, dispatcher, make_user):
    user = make_user()

    result = await dispatcher.dispatch(session, user.id, _draft())

    assert result.notification.id is not None
    assert result.delivered is False
    assert result.delivery.has_connection is False
    assert _stored_count(user.id) == 1


@pytest.mark.anyio
async def test_persistence_failure_raises_and_emits_nothing(
    session, dispatcher, make_user, connection_factory, monkeypatch
):
    user = make_user()
    connection = connection_factory()
    await dispatcher.gateway.connect(user.id, connection)

    def failing_create_many(self, notifications):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(NotificationRepository, "create_many", failing_create_many)

    with pytest.raises(NotificationPersistenceError):
        await dispatcher.dispatch(session, user.id, _draft())

    assert connection.sent == []
    assert _stored_count(user.id) == 0


@pytest.mark.anyio
async def test_dispatch_many_deduplicates_recipients(session, dispatcher, make_user, connection_factory):
    first, second = make_user(), make_user()
    connection = connection_factory()
    await dispatcher.gateway.connect(first.id, connection)

    results = await dispatcher.dispatch_many(
        session, [first.id, second.id, first.id], _draft("Yangi ish e'loni")
    )

    assert [result.notification.user_id for result in results] == [first.id, second.id]
    assert [result.delivered for result in results] == [True, False]
    assert len(connection.sent) == 1


@pytest.mark.anyio
async def test_application_submitted_notifies_the_employer(
    session, dispatcher, make_user, connection_factory
):
    employer = make_user(role=UserRole.EMPLOYER)
    connection = connection_factory()
    await dispatcher.gateway.connect(employer.id, connection)

    result = await notify_application_submitted(
        session,
        dispatcher,
        employer_id=employer.id,
        worker_name="Aziz Karimov",
        job_title="Python dasturchi",
        application_id=7,
        job_id=4,
    )

    assert result.delivered
    assert result.notification.type is NotificationType.APPLICATION
    assert result.notification.title == "Yangi ariza"
    assert result.notification.message == 'Aziz Karimov "Python dasturchi" ishiga ariza topshirdi'
    assert result.notification.data == {"application_id": 7, "job_id": 4}
    assert result.notification.link == "/employer/applications/7"
    assert connection.events() == ["notification"]
    assert _stored_count(employer.id) == 1


@pytest.mark.anyio
async def test_application_status_change_notifies_and_updates(
    session, dispatcher, make_user, connection_factory
):
    worker = make_user()
    connection = connection_factory()
    await dispatcher.gateway.connect(worker.id, connection)

    result = await notify_application_status_changed(
        session,
        dispatcher,
        worker_id=worker.id,
        job_title="Python dasturchi",
        status="accepted",
        application_id=11,
        job_id=4,
    )

    assert result.notification.title == "Tabriklaymiz!"
    assert "Python dasturchi" in result.notification.message
    assert connection.events() == ["notification", "application_update"]
    assert connection.sent[1]["data"]["status"] == "ACCEPTED"


@pytest.mark.anyio
async def test_unknown_application_status_is_ignored(session, dispatcher, make_user):
    worker = make_user()

    result = await notify_application_status_changed(
        session,
        dispatcher,
        worker_id=worker.id,
        job_title="Python dasturchi",
        status="PENDING",
        application_id=11,
        job_id=4,
    )

    assert result is None
    assert _stored_count(worker.id) == 0


@pytest.mark.anyio
async def test_rejected_job_message_carries_the_reason(session, dispatcher, make_user):
    employer = make_user(role=UserRole.EMPLOYER)

    result = await notify_job_status_changed(
        session,
        dispatcher,
        employer_id=employer.id,
        job_title="Oshpaz",
        status="REJECTED",
        job_id=3,
        reason="Maosh ko'rsatilmagan",
    )

    assert result.notification.type is NotificationType.JOB_APPROVED
    assert result.notification.message.endswith(": Maosh ko'rsatilmagan")


@pytest.mark.anyio
async def test_new_message_preview_is_truncated(session, dispatcher, make_user):
    receiver = make_user()

    result = await notify_new_message(
        session,
        dispatcher,
        user_id=receiver.id,
        sender_name="Texnopark MChJ",
        room_id=2,
        preview="x" * 80,
    )

    assert result.notification.message == "Texnopark MChJ: " + "x" * 50 + "..."
    assert result.notification.link == "/chat/2"


@pytest.mark.anyio
async def test_broadcast_skips_blocked_users(session, dispatcher, make_user):
    active = make_user()
    blocked = make_user(is_blocked=True)

    stored = await broadcast_notification(
        session, dispatcher, title="Texnik ishlar", message="Sayt 22:00 da yangilanadi"
    )

    assert stored == 1
    assert _stored_count(active.id) == 1
    assert _stored_count(blocked.id) == 0


@pytest.mark.anyio
async def test_job_in_followed_category_reaches_every_follower(
    session, dispatcher, make_user, connection_factory
):
    online, offline = make_user(), make_user()
    connection = connection_factory()
    await dispatcher.gateway.connect(online.id, connection)

    results = await notify_job_posted_in_category(
        session,
        dispatcher,
        follower_ids=[online.id, offline.id, online.id],
        job_id=9,
        job_title="Haydovchi",
        category_name="Transport",
    )

    assert [result.notification.user_id for result in results] == [online.id, offline.id]
    assert all(result.notification.type is NotificationType.JOB for result in results)
    assert results[0].notification.link == "/jobs/9"
    assert _stored_count(online.id) == 1
    assert _stored_count(offline.id) == 1
    assert connection.events() == ["notification", "job_update"]
    assert connection.sent[1]["data"] == {"job_id": 9, "category": "Transport"}


@pytest.mark.anyio
async def test_job_in_category_without_followers_stores_nothing(session, dispatcher):
    results = await notify_job_posted_in_category(
        session,
        dispatcher,
        follower_ids=[],
        job_id=9,
        job_title="Haydovchi",
        category_name="Transport",
    )

    assert results == []
