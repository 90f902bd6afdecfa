"""Tests for chat room lifecycle and message delivery."""

from __future__ import annotations

import pytest

from vakans.application.use_cases import chat
from vakans.application.use_cases.notifications import NotificationDispatcher
from vakans.domain.entities import (
    ChatMessage,
    ChatRoomStatus,
    MessageType,
    NotificationType,
    UserRole,
)
from vakans.domain.exceptions import (
    ChatNotFoundError,
    ChatPermissionError,
    ChatRoomClosedError,
    ChatValidationError,
)
from vakans.infrastructure.database import SessionLocal
from vakans.infrastructure.models import ChatMessageModel
from vakans.infrastructure.realtime import ConnectionManager, RealtimeGateway
from vakans.infrastructure.repositories import ChatRepository, NotificationRepository


@pytest.fixture
def gateway() -> RealtimeGateway:
    return RealtimeGateway(ConnectionManager())


@pytest.fixture
def dispatcher(gateway) -> NotificationDispatcher:
    return NotificationDispatcher(gateway)


@pytest.fixture
def participants(make_user):
    employer = make_user(role=UserRole.EMPLOYER, company_name="Texnopark MChJ")
    candidate = make_user(first_name="Dilnoza", last_name="Rahimova")
    return employer, candidate


@pytest.fixture
def room(session, participants):
    employer, candidate = participants
    return chat.get_or_create_room(session, user_id=employer.id, participant_id=candidate.id)


def test_get_or_create_room_reuses_the_existing_room(session, participants, room):
    employer, candidate = participants

    again = chat.get_or_create_room(session, user_id=candidate.id, participant_id=employer.id)

    assert again.id == room.id
    assert again.status is ChatRoomStatus.OPEN
    assert again.participant_ids == sorted([employer.id, candidate.id])


def test_rooms_are_separate_per_job(session, participants, room):
    employer, candidate = participants

    job_room = chat.get_or_create_room(
        session, user_id=employer.id, participant_id=candidate.id, job_id=42
    )

    assert job_room.id != room.id
    assert job_room.job_id == 42


def test_room_with_yourself_or_unknown_user_is_rejected(session, participants):
    employer, _ = participants

    with pytest.raises(ChatNotFoundError):
        chat.get_or_create_room(session, user_id=employer.id, participant_id=employer.id)
    with pytest.raises(ChatNotFoundError):
        chat.get_or_create_room(session, user_id=employer.id, participant_id=9999)


@pytest.mark.anyio
async def test_message_is_stored_before_it_is_relayed(
    session, gateway, dispatcher, participants, room, connection_factory
):
    employer, candidate = participants
    stored_when_relayed: list[int] = []

    class ProbingConnection(connection_factory):
        async def send_json(self, data, mode="text"):
            if data["type"] == "new_message":
                with SessionLocal() as other_session:
                    stored_when_relayed.append(
                        other_session.query(ChatMessageModel)
                        .filter(ChatMessageModel.room_id == room.id)
                        .count()
                    )
            await super().send_json(data, mode)

    employer_socket = ProbingConnection()
    await gateway.connect(employer.id, employer_socket)
    gateway.manager.join_room(room.id, employer_socket)

    message = await chat.send_message(
        session,
        gateway,
        dispatcher,
        sender_id=candidate.id,
        room_id=room.id,
        content="Assalomu alaykum, vakansiya hali ochiqmi?",
    )

    assert stored_when_relayed == [1]
    assert employer_socket.events() == ["new_message", "notification"]
    assert employer_socket.sent[0]["data"]["message"]["id"] == message.id

    notifications, _ = NotificationRepository(session).list_for_user(employer.id)
    assert [item.type for item in notifications] == [NotificationType.MESSAGE]
    assert notifications[0].message.startswith("Dilnoza Rahimova: ")


@pytest.mark.anyio
async def test_closed_room_rejects_new_messages(session, gateway, dispatcher, participants, room):
    employer, candidate = participants

    closed = await chat.close_room(session, gateway, room_id=room.id, user_id=employer.id)
    assert closed.status is ChatRoomStatus.CLOSED
    assert closed.closed_at is not None

    with pytest.raises(ChatRoomClosedError):
        await chat.send_message(
            session,
            gateway,
            dispatcher,
            sender_id=candidate.id,
            room_id=room.id,
            content="Salom",
        )
    assert ChatRepository(session).list_messages(room.id)[1] == 0


@pytest.mark.anyio
async def test_outsider_cannot_send_or_close(session, gateway, dispatcher, make_user, room):
    outsider = make_user()

    with pytest.raises(ChatPermissionError):
        await chat.send_message(
            session, gateway, dispatcher, sender_id=outsider.id, room_id=room.id, content="Hi"
        )
    with pytest.raises(ChatPermissionError):
        await chat.close_room(session, gateway, room_id=room.id, user_id=outsider.id)


@pytest.mark.anyio
async def test_admin_may_close_any_room(session, gateway, make_user, room):
    admin = make_user(role=UserRole.ADMIN)

    closed = await chat.close_room(
        session, gateway, room_id=room.id, user_id=admin.id, is_admin=True
    )

    assert closed.is_open is False


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("content", "message_type", "file_url"),
    [
        ("   ", MessageType.TEXT, None),
        ("", MessageType.FILE, None),
        ("x" * 2001, MessageType.TEXT, None),
    ],
)
async def test_invalid_payloads_are_rejected(
    session, gateway, dispatcher, participants, room, content, message_type, file_url
):
    _, candidate = participants

    with pytest.raises(ChatValidationError):
        await chat.send_message(
            session,
            gateway,
            dispatcher,
            sender_id=candidate.id,
            room_id=room.id,
            content=content,
            message_type=message_type,
            file_url=file_url,
        )


@pytest.mark.anyio
async def test_room_keeps_only_the_newest_messages(
    session, gateway, dispatcher, participants, room, monkeypatch
):
    from vakans.application.use_cases.chat import messages as chat_messages

    monkeypatch.setattr(chat_messages, "MAX_MESSAGES_PER_ROOM", 3)
    _, candidate = participants

    for index in range(5):
        await chat.send_message(
            session,
            gateway,
            dispatcher,
            sender_id=candidate.id,
            room_id=room.id,
            content=f"xabar {index}",
        )

    stored, total = ChatRepository(session).list_messages(room.id)
    assert total == 3
    assert [message.content for message in stored] == ["xabar 2", "xabar 3", "xabar 4"]


def test_listing_messages_marks_peer_messages_read(session, participants, room):
    employer, candidate = participants
    repository = ChatRepository(session)
    for text in ("Salom", "Rezyumeni yubordim"):
        repository.add_message(
            ChatMessage(id=None, room_id=room.id, sender_id=candidate.id, content=text)
        )

    assert chat.get_chat_unread_count(session, user_id=employer.id) == 2

    page = chat.list_messages(session, room_id=room.id, user_id=employer.id)

    assert [message.content for message in page.messages] == ["Salom", "Rezyumeni yubordim"]
    assert chat.get_chat_unread_count(session, user_id=employer.id) == 0
    assert chat.get_chat_unread_count(session, user_id=candidate.id) == 0


@pytest.mark.anyio
async def test_only_the_sender_may_delete_a_message(
    session, gateway, dispatcher, participants, room, connection_factory
):
    employer, candidate = participants
    message = await chat.send_message(
        session, gateway, dispatcher, sender_id=candidate.id, room_id=room.id, content="Salom"
    )
    socket = connection_factory()
    await gateway.connect(employer.id, socket)
    gateway.manager.join_room(room.id, socket)

    with pytest.raises(ChatPermissionError):
        await chat.delete_message(session, gateway, message_id=message.id, user_id=employer.id)

    deleted = await chat.delete_message(
        session, gateway, message_id=message.id, user_id=candidate.id
    )

    assert deleted.is_deleted
    assert deleted.content == "Xabar o'chirildi"
    assert socket.events() == ["message_deleted"]
