"""Helpers shared by the websocket endpoints."""

from __future__ import annotations

import logging
from typing import Any

from anyio import to_thread
from fastapi import WebSocket, status

from vakans.domain.entities import User
from vakans.infrastructure.database import SessionLocal
from vakans.infrastructure.realtime import RealtimeGateway, events
from vakans.infrastructure.realtime.events import envelope
from vakans.interfaces.api.dependencies import resolve_user_from_token, websocket_token

logger = logging.getLogger(__name__)


def _resolve(token: str | None) -> User:
    with SessionLocal() as session:
        return resolve_user_from_token(token, session)


async def authenticate_websocket(websocket: WebSocket) -> User | None:
    """Resolve the socket's user or close it with 1008 before accepting."""

    try:
        return await to_thread.run_sync(_resolve, websocket_token(websocket))
    except ValueError as exc:
        logger.info("Rejected websocket on %s: %s", websocket.url.path, exc)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None


def get_websocket_gateway(websocket: WebSocket) -> RealtimeGateway:
    return websocket.app.state.gateway


async def send_event(websocket: WebSocket, event: str, payload: Any = None) -> None:
    await websocket.send_json(envelope(event, payload))


async def send_error(websocket: WebSocket, message: str) -> None:
    await send_event(websocket, events.ERROR, {"message": message})


async def receive_message(websocket: WebSocket) -> dict[str, Any] | None:
    """Return the next client frame, or ``None`` when it is not a JSON object.

    ``WebSocketDisconnect`` propagates to the caller.
    """

    try:
        message = await websocket.receive_json()
    except ValueError:
        await send_error(websocket, "Noto'g'ri format")
        return None
    if not isinstance(message, dict) or not isinstance(message.get("type"), str):
        await send_error(websocket, "Noto'g'ri format")
        return None
    return message
