"""Tests for the network-first offline cache worker."""

from __future__ import annotations

import httpx
import pytest

from vakans.client import (
    CacheInstallError,
    CacheStorage,
    CacheWorker,
    OfflineCacheTransport,
    WorkerState,
    WorkerStateError,
)

ORIGIN = "https://vakans.uz"


class FakeNetwork:
    """Programmable origin server behind an ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.online = True
        self.pages: dict[str, tuple[int, str]] = {
            "/": (200, "<html>home</html>"),
            "/index.html": (200, "<html>index</html>"),
            "/manifest.json": (200, '{"name": "Vakans.uz"}'),
        }
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.online:
            raise httpx.ConnectError("network is down", request=request)
        status_code, body = self.pages.get(request.url.path, (404, "Not Found"))
        return httpx.Response(status_code, text=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
async def worker(network) -> CacheWorker:
    worker = CacheWorker(ORIGIN, network.transport)
    await worker.install()
    worker.activate()
    return worker


def _get(path: str, origin: str = ORIGIN) -> httpx.Request:
    return httpx.Request("GET", f"{origin}{path}")


@pytest.mark.anyio
async def test_lifecycle_moves_through_every_state(network):
    storage = CacheStorage()
    storage.open("vakans-v0")
    worker = CacheWorker(ORIGIN, network.transport, storage)
    assert worker.state is WorkerState.INSTALLING
    assert await worker.handle_fetch(_get("/jobs")) is None

    await worker.install()
    assert worker.state is WorkerState.ACTIVE_STALE
    assert storage.keys() == ["vakans-v0", "vakans-v1"]

    assert worker.activate() == ["vakans-v0"]
    assert worker.state is WorkerState.ACTIVE_CURRENT

    worker.terminate()
    assert worker.state is WorkerState.TERMINATED
    assert await worker.handle_fetch(_get("/jobs")) is None


@pytest.mark.anyio
async def test_install_precaches_static_assets(worker):
    bucket = worker.storage.open("vakans-v1")

    assert sorted(bucket.keys()) == [
        "https://vakans.uz/",
        "https://vakans.uz/index.html",
        "https://vakans.uz/manifest.json",
    ]


@pytest.mark.anyio
async def test_install_is_all_or_nothing(network):
    network.pages["/manifest.json"] = (500, "boom")
    worker = CacheWorker(ORIGIN, network.transport)

    with pytest.raises(CacheInstallError):
        await worker.install()

    assert worker.state is WorkerState.TERMINATED
    assert worker.storage.keys() == []


@pytest.mark.anyio
async def test_install_twice_is_rejected(worker):
    with pytest.raises(WorkerStateError):
        await worker.install()


@pytest.mark.anyio
async def test_cached_body_is_served_when_offline(worker, network):
    network.pages["/jobs"] = (200, "job list")
    first = await worker.handle_fetch(_get("/jobs"))
    assert first.status_code == 200

    network.online = False
    offline = await worker.handle_fetch(_get("/jobs"))

    assert offline.status_code == 200
    assert offline.text == "job list"


@pytest.mark.anyio
async def test_offline_without_cached_copy_is_503(worker, network):
    network.online = False

    response = await worker.handle_fetch(_get("/never-seen"))

    assert response.status_code == 503
    assert response.text == "Offline"
    assert response.headers["content-type"].startswith("text/plain")


@pytest.mark.anyio
async def test_network_is_preferred_over_cache(worker, network):
    network.pages["/jobs"] = (200, "old")
    await worker.handle_fetch(_get("/jobs"))
    network.pages["/jobs"] = (200, "new")

    response = await worker.handle_fetch(_get("/jobs"))

    assert response.text == "new"
    assert worker.storage.match("https://vakans.uz/jobs").content == b"new"


@pytest.mark.anyio
async def test_non_200_responses_are_not_cached(worker, network):
    response = await worker.handle_fetch(_get("/missing"))

    assert response.status_code == 404
    assert worker.storage.match("https://vakans.uz/missing") is None


@pytest.mark.anyio
@pytest.mark.parametrize(
    "request_",
    [
        httpx.Request("POST", f"{ORIGIN}/api/applications", json={"job_id": 1}),
        httpx.Request("GET", "https://cdn.example.com/logo.png"),
        httpx.Request("GET", f"{ORIGIN}/src/main.tsx?t=1700000000"),
        httpx.Request("GET", f"{ORIGIN}/@vite/client"),
        httpx.Request("GET", f"{ORIGIN}/node_modules/react/index.js"),
        httpx.Request("GET", f"{ORIGIN}/main.hot-update.json"),
        httpx.Request("GET", f"{ORIGIN}/assets/index.js.map"),
    ],
)
async def test_bypassed_requests_are_never_intercepted_or_cached(worker, network, request_):
    network.pages[request_.url.path] = (200, "payload")

    assert await worker.handle_fetch(request_) is None

    response = await worker.fetch(request_)
    assert response.status_code == 200
    assert worker.storage.match(request_.url) is None


@pytest.mark.anyio
async def test_activation_removes_previous_generation(network):
    storage = CacheStorage()
    old = CacheWorker(ORIGIN, network.transport, storage, cache_name="vakans-v0")
    await old.install()
    old.activate()
    network.pages["/jobs"] = (200, "v0 jobs")
    await old.handle_fetch(_get("/jobs"))
    old.terminate()

    new = CacheWorker(ORIGIN, network.transport, storage, cache_name="vakans-v1")
    await new.install()
    new.activate()
    network.online = False

    assert storage.keys() == ["vakans-v1"]
    response = await new.handle_fetch(_get("/jobs"))
    assert response.status_code == 503


@pytest.mark.anyio
async def test_sync_without_handler_is_logged_and_skipped(worker):
    assert await worker.handle_sync("sync-applications") is False


@pytest.mark.anyio
async def test_registered_sync_handler_runs(worker):
    calls: list[str] = []

    async def replay() -> None:
        calls.append("replayed")

    worker.register_sync_handler("sync-applications", replay)

    assert await worker.handle_sync("sync-applications") is True
    assert calls == ["replayed"]


@pytest.mark.anyio
async def test_async_client_goes_through_the_worker(worker, network):
    network.pages["/api/jobs"] = (200, '{"items": []}')
    async with httpx.AsyncClient(transport=OfflineCacheTransport(worker)) as client:
        online = await client.get(f"{ORIGIN}/api/jobs")
        network.online = False
        offline = await client.get(f"{ORIGIN}/api/jobs")
        missing = await client.get(f"{ORIGIN}/api/profile")

    assert online.json() == {"items": []}
    assert offline.json() == {"items": []}
    assert missing.status_code == 503
