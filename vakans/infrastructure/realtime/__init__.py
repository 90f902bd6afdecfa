"""Realtime delivery helpers for the infrastructure layer."""

from . import events
from .gateway import DeliveryReport, RealtimeGateway
from .manager import ConnectionManager, RealtimeConnection
from .publisher import (
    build_push_payload,
    serialize_message,
    serialize_notification,
    serialize_room,
)

__all__ = [
    "ConnectionManager",
    "DeliveryReport",
    "RealtimeConnection",
    "RealtimeGateway",
    "build_push_payload",
    "events",
    "serialize_message",
    "serialize_notification",
    "serialize_room",
]
