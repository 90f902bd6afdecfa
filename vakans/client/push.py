"""Push payload handling for the client cache worker."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Vakans.uz"
DEFAULT_BODY = "Yangi xabar mavjud"
DEFAULT_BADGE = "/favicon.svg"
DEFAULT_VIBRATE = (200, 100, 200)
DEFAULT_URL = "/"


@dataclass(frozen=True)
class PushMessage:
    """Decoded push payload with every optional field resolved."""

    title: str = DEFAULT_TITLE
    body: str = DEFAULT_BODY
    url: str = DEFAULT_URL

    @classmethod
    def parse(cls, data: bytes | str | Mapping[str, Any] | None) -> PushMessage:
        """Build a message from raw push data.

        Missing or empty fields fall back to the defaults. Data that is not
        a JSON object is logged and treated as an empty payload.
        """

        if data is None:
            return cls()
        if isinstance(data, Mapping):
            payload: Any = data
        else:
            try:
                payload = json.loads(data)
            except ValueError:
                logger.warning("Ignoring push payload that is not JSON")
                return cls()
        if not isinstance(payload, Mapping):
            logger.warning("Ignoring push payload of type %s", type(payload).__name__)
            return cls()
        return cls(
            title=str(payload.get("title") or DEFAULT_TITLE),
            body=str(payload.get("body") or DEFAULT_BODY),
            url=str(payload.get("url") or DEFAULT_URL),
        )


@dataclass(frozen=True)
class NotificationOptions:
    body: str
    badge: str = DEFAULT_BADGE
    vibrate: tuple[int, ...] = DEFAULT_VIBRATE
    data: dict[str, str] = field(default_factory=dict)

    @property
    def url(self) -> str:
        return self.data.get("url", DEFAULT_URL)


class NotificationSurface(Protocol):
    """Where OS-level notifications are shown."""

    async def show_notification(self, title: str, options: NotificationOptions) -> None: ...


class ShownNotification(Protocol):
    data: Mapping[str, Any]

    def close(self) -> None: ...


class WindowClient(Protocol):
    url: str

    async def focus(self) -> WindowClient: ...


class WindowClients(Protocol):
    """Open application windows controlled by the worker."""

    async def match_all(self, *, type: str = "window") -> list[WindowClient]: ...

    async def open_window(self, url: str) -> WindowClient | None: ...


async def show_push_notification(
    data: bytes | str | Mapping[str, Any] | None, surface: NotificationSurface
) -> NotificationOptions:
    message = PushMessage.parse(data)
    options = NotificationOptions(body=message.body, data={"url": message.url})
    await surface.show_notification(message.title, options)
    return options


async def open_notification_target(
    notification: ShownNotification, clients: WindowClients
) -> WindowClient | None:
    """Close ``notification`` and bring its target window to the front.

    An open window whose URL equals the target is focused; otherwise a new
    window is opened.
    """

    notification.close()
    target = str((notification.data or {}).get("url") or DEFAULT_URL)
    for client in await clients.match_all(type="window"):
        if client.url == target:
            return await client.focus()
    return await clients.open_window(target)


__all__ = [
    "DEFAULT_BADGE",
    "DEFAULT_BODY",
    "DEFAULT_TITLE",
    "DEFAULT_URL",
    "DEFAULT_VIBRATE",
    "NotificationOptions",
    "NotificationSurface",
    "PushMessage",
    "ShownNotification",
    "WindowClient",
    "WindowClients",
    "open_notification_target",
    "show_push_notification",
]
