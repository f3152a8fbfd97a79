import asyncio
import logging
import socket
import time
import types
from typing import Callable, List, Optional, Tuple

import pytest
from aiohttp import web

from status_checker.health.probe import ProbeResult
from status_checker.logging_setup import LOGGER_NAME


class FakeProbe:
    """Scriptable probe that records every call.

    ``decide(endpoint, attempt)`` returns True for success. ``delay`` is how
    long each probe takes.
    """

    def __init__(self, decide: Optional[Callable[[str, int], bool]] = None, delay: float = 0.0,
                 status_code: int = 200):
        self.decide = decide or (lambda endpoint, attempt: True)
        self.delay = delay
        self.status_code = status_code
        self.calls: List[Tuple[str, int]] = []
        self.call_times: List[float] = []
        self.in_flight = 0
        self.peak_in_flight = 0

    async def check(self, endpoint: str, attempt: int = 0) -> ProbeResult:
        self.calls.append((endpoint, attempt))
        self.call_times.append(time.monotonic())
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

        if self.decide(endpoint, attempt):
            return ProbeResult(endpoint=endpoint, ok=True, attempt=attempt,
                               status_code=self.status_code)
        return ProbeResult(endpoint=endpoint, ok=False, attempt=attempt,
                           error="connection refused")

    def attempts_for(self, endpoint: str) -> List[int]:
        return [attempt for ep, attempt in self.calls if ep == endpoint]


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0,
                     interval: float = 0.005) -> None:
    """Poll ``predicate`` until it is true or fail the test."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            pytest.fail("condition not met within %.1fs" % timeout)
        await asyncio.sleep(interval)


@pytest.fixture
def make_probe():
    return FakeProbe


@pytest.fixture(name="wait_until")
def wait_until_fixture():
    return wait_until


@pytest.fixture(autouse=True)
def _restore_package_logger():
    logger = logging.getLogger(LOGGER_NAME)
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
async def http_server():
    """Local aiohttp server with a few canned endpoints.

    Yields the base URL and a per-path request counter.
    """
    app = web.Application()
    hits = {}

    def _count(request):
        hits[request.path] = hits.get(request.path, 0) + 1

    async def ok(request):
        _count(request)
        return web.Response(text="ok")

    async def missing(request):
        _count(request)
        return web.Response(status=404, text="missing")

    async def broken(request):
        _count(request)
        return web.Response(status=503, text="unavailable")

    async def slow(request):
        _count(request)
        await asyncio.sleep(1.0)
        return web.Response(text="late")

    async def stalled_body(request):
        _count(request)
        response = web.StreamResponse(headers={"Content-Length": "1024"})
        await response.prepare(request)
        await response.write(b"x")
        try:
            await asyncio.sleep(1.0)
            await response.write(b"x" * 1023)
        except ConnectionResetError:
            pass
        return response

    app.router.add_get("/ok", ok)
    app.router.add_get("/missing", missing)
    app.router.add_get("/broken", broken)
    app.router.add_get("/slow", slow)
    app.router.add_get("/stalled-body", stalled_body)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    port = runner.addresses[0][1]

    yield types.SimpleNamespace(url=f"http://127.0.0.1:{port}", hits=hits)

    await runner.cleanup()


@pytest.fixture
def closed_port_url():
    """URL on a local port that refuses connections."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return f"http://127.0.0.1:{port}/"
