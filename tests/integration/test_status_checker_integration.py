"""Integration tests for StatusChecker.

These tests run the full checker with the real aiohttp probe against a
local HTTP server, and deliver real OS signals to request shutdown.
"""

import asyncio
import os
import signal
import sys

import pytest

from status_checker.config import CheckerConfig
from status_checker.core.coordinator import StatusChecker
from status_checker.core.signals import install_signal_handlers, remove_signal_handlers
from status_checker.logging_setup import configure_logging


def checker_config(endpoints, **overrides):
    values = dict(
        endpoints=endpoints,
        max_concurrency=2,
        max_retries=1,
        retry_interval=0.01,
        cooldown=0.05,
        request_timeout=1.0,
        log_file=None,
    )
    values.update(overrides)
    return CheckerConfig(**values)


class TestStatusCheckerIntegration:
    """End-to-end runs with the HTTP probe."""

    @pytest.mark.asyncio
    async def test_recurring_rounds_against_live_server(self, http_server, closed_port_url,
                                                        wait_until, tmp_path):
        """Up endpoints recur, down endpoints give up, everything is logged."""
        log_file = tmp_path / "status_checker.log"
        logger = configure_logging("INFO", str(log_file), console=False)
        up = f"{http_server.url}/ok"
        checker = StatusChecker(checker_config([up, f"{http_server.url}/missing", closed_port_url]))

        task = asyncio.create_task(checker.run())
        await wait_until(lambda: http_server.hits.get("/ok", 0) >= 3
                         and checker.metrics.get("retries_exhausted") >= 1)
        checker.request_shutdown()
        summary = await asyncio.wait_for(task, timeout=3.0)
        for handler in logger.handlers:
            handler.flush()

        assert summary.rounds_succeeded >= 3
        assert summary.rounds_exhausted >= 1
        assert summary.peak_in_flight <= 2
        assert checker.outstanding == 0

        content = log_file.read_text()
        assert f"{up} is up, status code: 200" in content
        assert f"{http_server.url}/missing is up, status code: 404" in content
        assert f"Error checking link {closed_port_url}" in content
        assert f"Retrying {closed_port_url} in 0.01s (retry 1/1)" in content
        assert f"Max retries reached for {closed_port_url}, giving up." in content
        assert "Received shutdown signal, cancelling..." in content
        assert content.rstrip().endswith("All work drained, exiting.")

    @pytest.mark.asyncio
    async def test_in_flight_probe_completes_after_shutdown(self, http_server, wait_until):
        """Shutdown does not abort a probe that is already running."""
        checker = StatusChecker(checker_config([f"{http_server.url}/slow"], request_timeout=2.0))

        task = asyncio.create_task(checker.run())
        await wait_until(lambda: http_server.hits.get("/slow", 0) == 1)
        checker.request_shutdown()
        summary = await asyncio.wait_for(task, timeout=3.0)

        assert summary.probes == 1
        assert summary.rounds_succeeded == 1
        assert http_server.hits["/slow"] == 1


@pytest.mark.skipif(sys.platform == "win32", reason="loop signal handlers need a POSIX platform")
class TestSignalHandling:
    """OS signals reach the checker's shutdown request."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sig", [signal.SIGTERM, signal.SIGINT])
    async def test_signal_triggers_drain(self, make_probe, wait_until, sig):
        probe = make_probe()
        checker = StatusChecker(checker_config(["http://b1", "http://b2"]), probe=probe)
        installed = install_signal_handlers(checker)
        try:
            task = asyncio.create_task(checker.run())
            await wait_until(lambda: len(probe.calls) >= 2)

            os.kill(os.getpid(), sig)
            await asyncio.wait_for(task, timeout=2.0)
        finally:
            remove_signal_handlers(installed)

        assert checker.token.cancelled
        assert checker.outstanding == 0
