"""Connection table for realtime websocket clients."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, DefaultDict, Protocol, Set


class RealtimeConnection(Protocol):
    """Anything that can push JSON to a client (a Starlette ``WebSocket``)."""

    async def send_json(self, data: Any, mode: str = "text") -> None: ...


class ConnectionManager:
    """Track live connections per user and per chat room.

    One instance is owned by each application (``app.state``); mutations only
    happen on the event loop thread, so no locking is involved.
    """

    def __init__(self) -> None:
        self._by_user: DefaultDict[int, Set[RealtimeConnection]] = defaultdict(set)
        self._by_room: DefaultDict[int, Set[RealtimeConnection]] = defaultdict(set)
        self._owners: dict[RealtimeConnection, int] = {}

    def register(self, user_id: int, connection: RealtimeConnection) -> None:
        """Add ``connection`` to the pool for ``user_id``."""

        self._by_user[user_id].add(connection)
        self._owners[connection] = user_id

    def unregister(self, user_id: int, connection: RealtimeConnection) -> bool:
        """Drop exactly ``connection``; return ``True`` if the user went offline."""

        self._owners.pop(connection, None)
        for room_id in [room for room, members in self._by_room.items() if connection in members]:
            self.leave_room(room_id, connection)

        connections = self._by_user.get(user_id)
        if connections is None:
            return False
        connections.discard(connection)
        if connections:
            return False
        self._by_user.pop(user_id, None)
        return True

    def owner_of(self, connection: RealtimeConnection) -> int | None:
        return self._owners.get(connection)

    def connections_for(self, user_id: int) -> list[RealtimeConnection]:
        return list(self._by_user.get(user_id, ()))

    def is_connected(self, user_id: int) -> bool:
        return bool(self._by_user.get(user_id))

    def online_users_count(self) -> int:
        return len(self._by_user)

    def join_room(self, room_id: int, connection: RealtimeConnection) -> None:
        self._by_room[room_id].add(connection)

    def join_user_to_room(self, user_id: int, room_id: int) -> int:
        """Join every live connection of ``user_id`` to ``room_id``."""

        connections = self.connections_for(user_id)
        for connection in connections:
            self.join_room(room_id, connection)
        return len(connections)

    def leave_room(self, room_id: int, connection: RealtimeConnection) -> None:
        members = self._by_room.get(room_id)
        if members is None:
            return
        members.discard(connection)
        if not members:
            self._by_room.pop(room_id, None)

    def room_members(self, room_id: int) -> list[RealtimeConnection]:
        return list(self._by_room.get(room_id, ()))

    def clear(self) -> None:
        """Forget every connection (application shutdown)."""

        self._by_user.clear()
        self._by_room.clear()
        self._owners.clear()


__all__ = ["ConnectionManager", "RealtimeConnection"]
