"""Endpoints and websocket handler for employer/candidate chat."""

from __future__ import annotations

import logging
from functools import partial

from anyio import to_thread
from fastapi import (
    APIRouter,
    Depends,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from pydantic import ValidationError
from sqlalchemy.orm import Session

from vakans.application.use_cases.chat import (
    MAX_MESSAGES_PER_ROOM,
    close_room,
    delete_message,
    get_chat_unread_count,
    list_messages,
    list_room_ids,
    list_rooms,
    mark_room_read,
    open_room,
    send_message,
)
from vakans.application.use_cases.notifications import NotificationDispatcher
from vakans.domain.entities import MessageType, User
from vakans.domain.exceptions import ChatRoomClosedError, NotificationPersistenceError
from vakans.infrastructure.database import SessionLocal, get_db
from vakans.infrastructure.realtime import RealtimeGateway, events
from vakans.interfaces.api.dependencies import (
    get_current_user,
    get_dispatcher,
    get_gateway,
)
from vakans.interfaces.api.routes_helpers import http_error_for
from vakans.interfaces.api.schemas import (
    ChatMessageCreate,
    ChatMessageListResponse,
    ChatMessageRead,
    ChatRoomCreate,
    ChatRoomRead,
    ChatRoomSummaryRead,
    OnlineStatusFrame,
    RoomFrame,
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

router = APIRouter(prefix="/chat", tags=["chat"])
logger = logging.getLogger(__name__)


@router.get("/rooms", response_model=list[ChatRoomSummaryRead])
def read_rooms(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[ChatRoomSummaryRead]:
    """Return the caller's rooms, most recently active first."""

    return [
        ChatRoomSummaryRead.model_validate(summary)
        for summary in list_rooms(db, user_id=current_user.id)
    ]


@router.post("/rooms", response_model=ChatRoomRead)
async def create_room(
    payload: ChatRoomCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: RealtimeGateway = Depends(get_gateway),
) -> ChatRoomRead:
    """Open the room shared with ``participant_id``, reusing an existing one."""

    try:
        room = await open_room(
            db,
            gateway,
            user_id=current_user.id,
            participant_id=payload.participant_id,
            job_id=payload.job_id,
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return ChatRoomRead.model_validate(room)


@router.get("/rooms/{room_id}/messages", response_model=ChatMessageListResponse)
def read_messages(
    room_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=MAX_MESSAGES_PER_ROOM),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ChatMessageListResponse:
    try:
        result = list_messages(
            db, room_id=room_id, user_id=current_user.id, page=page, limit=limit
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return ChatMessageListResponse(
        messages=[ChatMessageRead.model_validate(message) for message in result.messages],
        page=result.page,
        limit=result.limit,
        total=result.total,
        total_pages=result.total_pages,
    )


@router.post(
    "/rooms/{room_id}/messages",
    response_model=ChatMessageRead,
    status_code=status.HTTP_201_CREATED,
)
async def post_message(
    room_id: int,
    payload: ChatMessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: RealtimeGateway = Depends(get_gateway),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> ChatMessageRead:
    """Store a message and relay it to the room."""

    try:
        message = await send_message(
            db,
            gateway,
            dispatcher,
            sender_id=current_user.id,
            room_id=room_id,
            content=payload.content,
            message_type=payload.type,
            file_url=payload.file_url,
            file_name=payload.file_name,
            file_size=payload.file_size,
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return ChatMessageRead.model_validate(message)


@router.post("/rooms/{room_id}/read", response_model=UpdatedCountResponse)
async def read_room(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: RealtimeGateway = Depends(get_gateway),
) -> UpdatedCountResponse:
    try:
        updated = await mark_room_read(db, gateway, room_id=room_id, user_id=current_user.id)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return UpdatedCountResponse(updated=updated)


@router.post("/rooms/{room_id}/close", response_model=ChatRoomRead)
async def close_chat_room(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: RealtimeGateway = Depends(get_gateway),
) -> ChatRoomRead:
    """Close a room; only its participants or an administrator may do so."""

    try:
        room = await close_room(
            db,
            gateway,
            room_id=room_id,
            user_id=current_user.id,
            is_admin=current_user.is_admin(),
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return ChatRoomRead.model_validate(room)


@router.delete("/messages/{message_id}", response_model=ChatMessageRead)
async def remove_message(
    message_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: RealtimeGateway = Depends(get_gateway),
) -> ChatMessageRead:
    try:
        message = await delete_message(
            db, gateway, message_id=message_id, user_id=current_user.id
        )
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return ChatMessageRead.model_validate(message)


@router.get("/unread-count", response_model=UnreadCountResponse)
def read_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UnreadCountResponse:
    return UnreadCountResponse(count=get_chat_unread_count(db, user_id=current_user.id))


def _message_payload(message: dict) -> ChatMessageCreate:
    return ChatMessageCreate.model_validate(
        {
            "content": message.get("content") or "",
            "type": message.get("message_type", MessageType.TEXT.value),
            "file_url": message.get("file_url"),
            "file_name": message.get("file_name"),
            "file_size": message.get("file_size"),
        }
    )


async def _join_room(
    websocket: WebSocket, gateway: RealtimeGateway, user: User, room_id: int
) -> None:
    # Opening a room reads it; the peer learns through ``messages_read``.
    with SessionLocal() as session:
        await mark_room_read(
            session, gateway, room_id=room_id, user_id=user.id, exclude=websocket
        )
    gateway.manager.join_room(room_id, websocket)


async def _send_online_status(
    websocket: WebSocket, gateway: RealtimeGateway, message: dict
) -> None:
    frame = OnlineStatusFrame.model_validate(message)
    await send_event(
        websocket,
        events.ONLINE_STATUS,
        {
            "online_status": {
                user_id: gateway.is_user_online(user_id) for user_id in frame.user_ids
            }
        },
    )


async def _handle_client_message(
    websocket: WebSocket,
    gateway: RealtimeGateway,
    dispatcher: NotificationDispatcher,
    user: User,
    message: dict,
) -> None:
    message_type = message["type"]

    if message_type == "ping":
        await send_event(websocket, events.PONG)
        return

    if message_type == "get_online_status":
        await _send_online_status(websocket, gateway, message)
        return

    try:
        room_id = RoomFrame.model_validate(message).room_id
    except ValidationError:
        await send_error(websocket, "room_id kiritilishi shart")
        return

    if message_type == "join_room":
        await _join_room(websocket, gateway, user, room_id)
    elif message_type == "leave_room":
        gateway.manager.leave_room(room_id, websocket)
    elif message_type == "typing":
        await gateway.broadcast_room(
            room_id,
            events.USER_TYPING,
            {
                "room_id": room_id,
                "user_id": user.id,
                "is_typing": bool(message.get("is_typing", True)),
            },
            exclude=websocket,
        )
    elif message_type == "send_message":
        payload = _message_payload(message)
        with SessionLocal() as session:
            await send_message(
                session,
                gateway,
                dispatcher,
                sender_id=user.id,
                room_id=room_id,
                content=payload.content,
                message_type=payload.type,
                file_url=payload.file_url,
                file_name=payload.file_name,
                file_size=payload.file_size,
            )
    elif message_type == "mark_read":
        with SessionLocal() as session:
            await mark_room_read(
                session, gateway, room_id=room_id, user_id=user.id, exclude=websocket
            )
    else:
        await send_error(websocket, f"Noma'lum xabar turi: {message_type}")


@router.websocket("/ws")
async def chat_websocket(websocket: WebSocket) -> None:
    """Relay chat traffic for every room the authenticated user takes part in."""

    user = await authenticate_websocket(websocket)
    if user is None:
        return

    gateway = get_websocket_gateway(websocket)
    dispatcher: NotificationDispatcher = websocket.app.state.dispatcher
    await gateway.connect(user.id, websocket)
    try:
        with SessionLocal() as session:
            room_ids = await to_thread.run_sync(partial(list_room_ids, session, user_id=user.id))
        for room_id in room_ids:
            gateway.manager.join_room(room_id, websocket)
        await send_event(websocket, events.CONNECTED, {"user_id": user.id, "rooms": room_ids})

        while True:
            message = await receive_message(websocket)
            if message is None:
                continue
            try:
                await _handle_client_message(websocket, gateway, dispatcher, user, message)
            except ValidationError as exc:
                logger.info("Malformed chat frame from user %s: %s", user.id, exc.errors())
                await send_error(websocket, "Noto'g'ri format")
            except ChatRoomClosedError:
                await send_error(websocket, "Chat yopilgan")
            except (ValueError, NotificationPersistenceError) as exc:
                logger.info("Chat message from user %s rejected: %s", user.id, exc)
                await send_error(websocket, str(exc))
    except WebSocketDisconnect:
        pass
    finally:
        gateway.disconnect(user.id, websocket)
