"""Prometheus-compatible metrics for StatusChecker.

Counters are process-wide aggregates of the observability events the checker
emits. No per-endpoint history is kept. An optional aiohttp server exposes
them on ``/metrics``.
"""

import time
from typing import Any, Callable, Dict, Optional

from aiohttp import web
import logging

logger = logging.getLogger(__name__)

COUNTERS = (
    "probe_success",
    "probe_failure",
    "retries_scheduled",
    "retries_exhausted",
    "rounds_started",
    "rounds_succeeded",
    "rounds_aborted",
    "recurrences_declined",
)

_HELP = {
    "probe_success": "Probes that got an HTTP response",
    "probe_failure": "Probes that failed with an error",
    "retries_scheduled": "Retries scheduled after a failed probe",
    "retries_exhausted": "Rounds that gave up after the last retry",
    "rounds_started": "Rounds started, initial and recurring",
    "rounds_succeeded": "Rounds that ended with a successful probe",
    "rounds_aborted": "Rounds stopped by shutdown",
    "recurrences_declined": "Recurrences not started because of shutdown",
}


class CheckerMetrics:
    """Aggregate counters for one checker run."""

    def __init__(self) -> None:
        self._counters: Dict[str, int] = {name: 0 for name in COUNTERS}
        self.shutdown_requested = False
        self._start_time = time.time()

    def inc(self, name: str, n: int = 1) -> None:
        """Increment a counter.

        Args:
            name: One of ``COUNTERS``
            n: Amount to add
        """
        if name not in self._counters:
            raise KeyError(f"Unknown counter: {name}")
        self._counters[name] += n

    def get(self, name: str) -> int:
        return self._counters[name]

    def reset(self) -> None:
        for name in self._counters:
            self._counters[name] = 0
        self.shutdown_requested = False
        self._start_time = time.time()

    def snapshot(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self._counters)
        data["shutdown_requested"] = self.shutdown_requested
        data["uptime"] = time.time() - self._start_time
        return data

    def render_prometheus(self, limiter=None, tracker=None) -> str:
        """Render counters and optional gauges in Prometheus text format.

        Args:
            limiter: ConcurrencyLimiter to report in-flight probes from
            tracker: WorkTracker to report outstanding rounds from

        Returns:
            Prometheus exposition text
        """
        lines = []
        for name in COUNTERS:
            metric = f"status_checker_{name}_total"
            lines.append(f"# HELP {metric} {_HELP[name]}")
            lines.append(f"# TYPE {metric} counter")
            lines.append(f"{metric} {self._counters[name]}")

        gauges = [
            ("shutdown_requested", "1 once shutdown was requested",
             1 if self.shutdown_requested else 0),
            ("uptime_seconds", "Seconds since the run started",
             f"{time.time() - self._start_time:.2f}"),
        ]
        if limiter is not None:
            gauges.append(("probes_in_flight", "Probes currently running", limiter.in_flight))
        if tracker is not None:
            gauges.append(("outstanding_rounds", "Rounds launched or pending", tracker.count))

        for name, help_text, value in gauges:
            metric = f"status_checker_{name}"
            lines.append(f"# HELP {metric} {help_text}")
            lines.append(f"# TYPE {metric} gauge")
            lines.append(f"{metric} {value}")

        return "\n".join(lines) + "\n"


class MetricsExporter:
    """Async HTTP server exposing checker metrics.

    Serves ``/metrics`` in Prometheus format and ``/health`` as JSON.
    """

    def __init__(self, metrics: CheckerMetrics, host: str = '127.0.0.1', port: int = 9090,
                 state_getter: Optional[Callable[[], Dict[str, Any]]] = None):
        """Initialize the metrics exporter.

        Args:
            metrics: Counters to expose
            host: Host address to bind the metrics server
            port: Port number for the metrics endpoint; 0 picks a free port
            state_getter: Returns ``{"limiter": ..., "tracker": ...}`` for
                the live gauges of the current run
        """
        self.metrics = metrics
        self.host = host
        self.port = port
        self.state_getter = state_getter
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None

        self.app.router.add_get('/metrics', self.handle_metrics)
        self.app.router.add_get('/health', self.handle_health)

    def _state(self) -> Dict[str, Any]:
        return self.state_getter() if self.state_getter else {}

    async def handle_metrics(self, request: web.Request) -> web.Response:
        state = self._state()
        text = self.metrics.render_prometheus(
            limiter=state.get("limiter"), tracker=state.get("tracker")
        )
        return web.Response(text=text, content_type='text/plain', charset='utf-8')

    async def handle_health(self, request: web.Request) -> web.Response:
        snapshot = self.metrics.snapshot()
        return web.json_response({
            "status": "draining" if snapshot["shutdown_requested"] else "running",
            "uptime": snapshot["uptime"],
            "probes": snapshot["probe_success"] + snapshot["probe_failure"],
        })

    @property
    def bound_port(self) -> Optional[int]:
        """Actual listening port once started."""
        if self.runner is None:
            return None
        for address in self.runner.addresses:
            if isinstance(address, tuple) and len(address) >= 2:
                return address[1]
        return None

    async def start(self):
        """Start the metrics HTTP server."""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()

            self.site = web.TCPSite(self.runner, self.host, self.port)
            await self.site.start()

            logger.info("Metrics exporter started at http://%s:%s/metrics", self.host, self.bound_port)

        except OSError as e:
            logger.error("Failed to start metrics exporter: %s", e)
            if self.runner is not None:
                await self.runner.cleanup()
                self.runner = None
            raise

    async def stop(self):
        """Stop the metrics HTTP server."""
        if self.site:
            await self.site.stop()
            self.site = None
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
        logger.info("Metrics exporter stopped")

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
