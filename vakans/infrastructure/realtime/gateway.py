"""Best-effort delivery of realtime events to connected clients."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Iterable

from fastapi import WebSocket

from .events import envelope
from .manager import ConnectionManager, RealtimeConnection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryReport:
    """Outcome of a single emission.

    ``attempted`` counts the connections the event was addressed to and
    ``delivered`` the sends that completed.
    """

    target: str
    event: str
    attempted: int
    delivered: int

    @property
    def has_connection(self) -> bool:
        return self.attempted > 0

    @property
    def delivered_any(self) -> bool:
        return self.delivered > 0


class RealtimeGateway:
    """Emit events to users and chat rooms through a :class:`ConnectionManager`.

    Sends are never retried. A connection whose send fails is dropped from the
    table; the persisted record it was about stays available through the
    listing endpoints.
    """

    def __init__(self, manager: ConnectionManager) -> None:
        self._manager = manager

    @property
    def manager(self) -> ConnectionManager:
        return self._manager

    async def connect(self, user_id: int, websocket: WebSocket) -> None:
        """Accept the websocket connection and register it for ``user_id``."""

        await websocket.accept()
        self._manager.register(user_id, websocket)
        logger.info(
            "User %s connected (%s live connections)",
            user_id,
            len(self._manager.connections_for(user_id)),
        )

    def disconnect(self, user_id: int, websocket: RealtimeConnection) -> None:
        went_offline = self._manager.unregister(user_id, websocket)
        logger.info("User %s disconnected%s", user_id, " (offline)" if went_offline else "")

    def is_user_online(self, user_id: int) -> bool:
        return self._manager.is_connected(user_id)

    async def emit_to_user(self, user_id: int, event: str, payload: Any) -> DeliveryReport:
        """Send ``event`` to every live connection of ``user_id``."""

        connections = self._manager.connections_for(user_id)
        if not connections:
            logger.debug("No active connection for user %s; %s not pushed", user_id, event)
            return DeliveryReport(target=f"user:{user_id}", event=event, attempted=0, delivered=0)
        delivered = await self._send_all(connections, envelope(event, copy.deepcopy(payload)))
        return DeliveryReport(
            target=f"user:{user_id}", event=event, attempted=len(connections), delivered=delivered
        )

    async def broadcast_room(
        self,
        room_id: int,
        event: str,
        payload: Any,
        *,
        exclude: RealtimeConnection | None = None,
    ) -> DeliveryReport:
        """Send ``event`` to every connection joined to ``room_id``."""

        connections = [
            connection
            for connection in self._manager.room_members(room_id)
            if connection is not exclude
        ]
        delivered = await self._send_all(connections, envelope(event, copy.deepcopy(payload)))
        return DeliveryReport(
            target=f"room:{room_id}", event=event, attempted=len(connections), delivered=delivered
        )

    async def emit_to_users(
        self, user_ids: Iterable[int], event: str, payload: Any
    ) -> list[DeliveryReport]:
        seen: set[int] = set()
        reports: list[DeliveryReport] = []
        for user_id in user_ids:
            if not user_id or user_id in seen:
                continue
            seen.add(user_id)
            reports.append(await self.emit_to_user(user_id, event, payload))
        return reports

    async def _send_all(
        self, connections: list[RealtimeConnection], message: dict[str, Any]
    ) -> int:
        delivered = 0
        for connection in connections:
            try:
                await connection.send_json(message)
            except Exception as exc:
                owner = self._manager.owner_of(connection)
                logger.warning(
                    "Dropping stale connection of user %s after failed %s send: %s",
                    owner,
                    message.get("type"),
                    exc,
                )
                if owner is not None:
                    self._manager.unregister(owner, connection)
                continue
            delivered += 1
        return delivered


__all__ = ["DeliveryReport", "RealtimeGateway"]
