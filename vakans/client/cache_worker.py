"""Network-first offline cache for the web client.

``CacheWorker`` mirrors the browser worker lifecycle as an explicit state
machine::

    INSTALLING --install()--> ACTIVE_STALE --activate()--> ACTIVE_CURRENT
         \\                        \\                          \\
          `------------------------`--------------------------`--> TERMINATED

Only active workers intercept requests. Old cache generations stay readable
until :meth:`CacheWorker.activate` removes them.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from .push import (
    NotificationOptions,
    NotificationSurface,
    ShownNotification,
    WindowClient,
    WindowClients,
    open_notification_target,
    show_push_notification,
)

logger = logging.getLogger(__name__)

CACHE_NAME = "vakans-v1"
STATIC_ASSETS = ("/", "/index.html", "/manifest.json")
DEV_BYPASS_MARKERS = ("?t=", "/@", "/node_modules/", "hot-update", ".map")
OFFLINE_BODY = "Offline"

SyncHandler = Callable[[], Awaitable[Any]]


class WorkerState(str, Enum):
    INSTALLING = "installing"
    ACTIVE_STALE = "active_stale"
    ACTIVE_CURRENT = "active_current"
    TERMINATED = "terminated"


class CacheInstallError(RuntimeError):
    """A static asset could not be pre-cached; the worker was terminated."""


class WorkerStateError(RuntimeError):
    """A lifecycle method was called in a state that does not allow it."""


@dataclass(frozen=True)
class CachedResponse:
    """Stored copy of a successful GET response."""

    url: str
    status_code: int
    headers: tuple[tuple[str, str], ...]
    content: bytes

    @classmethod
    def from_response(cls, url: str, response: httpx.Response) -> CachedResponse:
        return cls(
            url=url,
            status_code=response.status_code,
            headers=tuple(
                (name, value)
                for name, value in response.headers.items()
                if name.lower() not in ("content-encoding", "transfer-encoding")
            ),
            content=response.content,
        )

    def to_response(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            self.status_code,
            headers=list(self.headers),
            content=self.content,
            request=request,
        )


def cache_key(url: httpx.URL | str) -> str:
    return str(httpx.URL(url).copy_with(fragment=None))


class CacheBucket:
    """One named cache generation."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: dict[str, CachedResponse] = {}

    def put(self, entry: CachedResponse) -> None:
        self._entries[cache_key(entry.url)] = entry

    def match(self, url: httpx.URL | str) -> CachedResponse | None:
        return self._entries.get(cache_key(url))

    def delete(self, url: httpx.URL | str) -> bool:
        return self._entries.pop(cache_key(url), None) is not None

    def keys(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class CacheStorage:
    """Named cache buckets keyed by request URL."""

    def __init__(self) -> None:
        self._buckets: dict[str, CacheBucket] = {}

    def open(self, name: str) -> CacheBucket:
        bucket = self._buckets.get(name)
        if bucket is None:
            bucket = self._buckets[name] = CacheBucket(name)
        return bucket

    def keys(self) -> list[str]:
        return list(self._buckets)

    def delete(self, name: str) -> bool:
        return self._buckets.pop(name, None) is not None

    def match(self, url: httpx.URL | str) -> CachedResponse | None:
        """Return the first stored response for ``url`` across every bucket."""

        for bucket in self._buckets.values():
            entry = bucket.match(url)
            if entry is not None:
                return entry
        return None


class CacheWorker:
    """Intercept same-origin GET requests with a network-first cache policy."""

    def __init__(
        self,
        origin: str,
        network: httpx.AsyncBaseTransport,
        storage: CacheStorage | None = None,
        *,
        cache_name: str = CACHE_NAME,
        static_assets: Iterable[str] = STATIC_ASSETS,
    ) -> None:
        self.origin = httpx.URL(origin)
        self.cache_name = cache_name
        self.static_assets = tuple(static_assets)
        self.storage = storage if storage is not None else CacheStorage()
        self._network = network
        self._state = WorkerState.INSTALLING
        self._sync_handlers: dict[str, SyncHandler] = {}

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state in (WorkerState.ACTIVE_STALE, WorkerState.ACTIVE_CURRENT)

    # Lifecycle

    async def install(self) -> None:
        """Pre-cache every static asset; all of them or none are stored."""

        self._require(WorkerState.INSTALLING, "install")
        entries: list[CachedResponse] = []
        for path in self.static_assets:
            request = httpx.Request("GET", self.origin.join(path))
            try:
                response = await self._send(request)
            except httpx.TransportError as exc:
                self._state = WorkerState.TERMINATED
                raise CacheInstallError(f"Could not fetch {request.url}") from exc
            if not response.is_success:
                self._state = WorkerState.TERMINATED
                raise CacheInstallError(
                    f"Could not cache {request.url}: HTTP {response.status_code}"
                )
            entries.append(CachedResponse.from_response(cache_key(request.url), response))

        bucket = self.storage.open(self.cache_name)
        for entry in entries:
            bucket.put(entry)
        self._state = WorkerState.ACTIVE_STALE
        logger.info("Cache %s installed with %s assets", self.cache_name, len(entries))

    def activate(self) -> list[str]:
        """Delete every cache generation but the current one."""

        if self._state is WorkerState.ACTIVE_CURRENT:
            return []
        self._require(WorkerState.ACTIVE_STALE, "activate")
        removed = [name for name in self.storage.keys() if name != self.cache_name]
        for name in removed:
            self.storage.delete(name)
        self._state = WorkerState.ACTIVE_CURRENT
        if removed:
            logger.info("Removed stale caches: %s", ", ".join(removed))
        return removed

    def terminate(self) -> None:
        self._state = WorkerState.TERMINATED

    def _require(self, expected: WorkerState, action: str) -> None:
        if self._state is not expected:
            raise WorkerStateError(f"Cannot {action} a worker in state {self._state.value}")

    # Fetch

    def intercepts(self, request: httpx.Request) -> bool:
        """Return whether ``request`` goes through the cache policy."""

        if not self.is_active or request.method != "GET":
            return False
        url = request.url
        if (url.scheme, url.host, url.port) != (
            self.origin.scheme,
            self.origin.host,
            self.origin.port,
        ):
            return False
        raw = str(url)
        return not any(marker in raw for marker in DEV_BYPASS_MARKERS)

    async def handle_fetch(self, request: httpx.Request) -> httpx.Response | None:
        """Answer an intercepted request, or return ``None`` to let it through.

        The network is tried first and status 200 responses are stored. On a
        transport failure the cached copy is served, else a plain-text 503.
        """

        if not self.intercepts(request):
            return None
        try:
            response = await self._send(request)
        except httpx.TransportError as exc:
            cached = self.storage.match(request.url)
            if cached is not None:
                logger.debug("Serving %s from cache after %s", request.url, exc)
                return cached.to_response(request)
            logger.debug("Offline and no cached copy of %s", request.url)
            return httpx.Response(
                503,
                headers={"Content-Type": "text/plain; charset=utf-8"},
                text=OFFLINE_BODY,
                request=request,
            )

        if response.status_code == 200:
            self.storage.open(self.cache_name).put(
                CachedResponse.from_response(cache_key(request.url), response)
            )
        return response

    async def fetch(self, request: httpx.Request) -> httpx.Response:
        response = await self.handle_fetch(request)
        if response is not None:
            return response
        return await self._network.handle_async_request(request)

    async def _send(self, request: httpx.Request) -> httpx.Response:
        response = await self._network.handle_async_request(request)
        await response.aread()
        return response

    # Push

    async def handle_push(
        self, data: bytes | str | Mapping[str, Any] | None, surface: NotificationSurface
    ) -> NotificationOptions | None:
        if self._state is WorkerState.TERMINATED:
            return None
        return await show_push_notification(data, surface)

    async def handle_notification_click(
        self, notification: ShownNotification, clients: WindowClients
    ) -> WindowClient | None:
        return await open_notification_target(notification, clients)

    # Background sync

    def register_sync_handler(self, tag: str, handler: SyncHandler) -> None:
        self._sync_handlers[tag] = handler

    async def handle_sync(self, tag: str) -> bool:
        """Run the handler registered for ``tag``.

        Offline form submissions are not queued anywhere yet, so tags
        without a handler, ``sync-applications`` included, are only logged.
        """

        handler = self._sync_handlers.get(tag)
        if handler is None:
            logger.info("No background sync handler for %s", tag)
            return False
        await handler()
        return True


class OfflineCacheTransport(httpx.AsyncBaseTransport):
    """Route an ``httpx.AsyncClient`` through a :class:`CacheWorker`."""

    def __init__(self, worker: CacheWorker) -> None:
        self.worker = worker

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self.worker.fetch(request)


__all__ = [
    "CACHE_NAME",
    "CacheBucket",
    "CacheInstallError",
    "CacheStorage",
    "CacheWorker",
    "CachedResponse",
    "DEV_BYPASS_MARKERS",
    "OFFLINE_BODY",
    "OfflineCacheTransport",
    "STATIC_ASSETS",
    "WorkerState",
    "WorkerStateError",
    "cache_key",
]
