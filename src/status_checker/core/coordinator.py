"""Lifecycle Coordinator for StatusChecker.

Starts one round per configured endpoint, keeps count of every round that is
running or pending, and returns once that count drains to zero after a
shutdown request. Without a shutdown request the recurring rounds keep the
run alive indefinitely.

Author: StatusChecker Team
Version: 1.0.0
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Set

from status_checker.config import CheckerConfig
from status_checker.core.cancellation import CancellationToken
from status_checker.core.scheduler import RecurrenceScheduler
from status_checker.core.work_tracker import WorkTracker
from status_checker.health.probe import HttpProbe, Probe
from status_checker.health.retrying_task import RetryPolicy, RoundOutcome, run_round
from status_checker.metrics.metrics_exporter import CheckerMetrics
from status_checker.reliability.concurrency_limiter import ConcurrencyLimiter

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Totals for a finished run."""
    rounds_started: int = 0
    rounds_succeeded: int = 0
    rounds_exhausted: int = 0
    rounds_aborted: int = 0
    recurrences_declined: int = 0
    probes: int = 0
    peak_in_flight: int = 0


class StatusChecker:
    """Runs recurring liveness rounds for a fixed set of endpoints."""

    def __init__(self, config: CheckerConfig, probe: Optional[Probe] = None,
                 token: Optional[CancellationToken] = None,
                 metrics: Optional[CheckerMetrics] = None):
        """Initialize the checker.

        Args:
            config: Run configuration
            probe: Probe to use; an HttpProbe is created for the run when omitted
            token: Shutdown signal; a fresh one is created when omitted
            metrics: Counters to record into
        """
        self.config = config.validate()
        self.token = token or CancellationToken()
        self.metrics = metrics or CheckerMetrics()
        self.limiter = ConcurrencyLimiter(config.max_concurrency)
        self.tracker = WorkTracker()
        self.policy = RetryPolicy(
            max_retries=config.max_retries,
            retry_interval=config.retry_interval,
        )
        self.scheduler = RecurrenceScheduler(
            self.tracker, self.token, config.cooldown,
            start_round=self._run_tracked_round,
            metrics=self.metrics,
        )
        self._probe = probe
        self._active_probe: Optional[Probe] = None
        self._rounds: Set[asyncio.Task] = set()
        self._running = False

    @property
    def outstanding(self) -> int:
        """Rounds running or waiting on their cool-down."""
        return self.tracker.count

    @property
    def running(self) -> bool:
        return self._running

    def request_shutdown(self) -> bool:
        """Ask every task to wind down.

        Nothing is killed: rounds stop at their next checkpoint and no new
        round is started.

        Returns:
            True on the first request, False afterwards
        """
        first = self.token.cancel()
        if first:
            logger.warning("Received shutdown signal, cancelling...")
            self.metrics.shutdown_requested = True
        return first

    async def run(self) -> RunSummary:
        """Run until shutdown is requested and all work has drained."""
        if self._running:
            raise RuntimeError("StatusChecker is already running")
        self._running = True

        owned_probe = None
        if self._probe is None:
            owned_probe = HttpProbe(timeout=self.config.request_timeout)
        self._active_probe = self._probe or owned_probe

        logger.info(
            "Checking %d endpoint(s), max concurrency %d, max retries %d",
            len(self.config.endpoints), self.config.max_concurrency, self.config.max_retries,
        )
        try:
            self.tracker.add(len(self.config.endpoints))
            for endpoint in self.config.endpoints:
                task = asyncio.create_task(self._run_tracked_round(endpoint), name=f"round-{endpoint}")
                self._rounds.add(task)
                task.add_done_callback(self._rounds.discard)
            self.scheduler.start()

            await self.tracker.wait()
        finally:
            await self.scheduler.stop()
            unfinished = [task for task in self._rounds if not task.done()]
            if unfinished:
                # run() itself was cancelled before draining
                for task in unfinished:
                    task.cancel()
                await asyncio.gather(*unfinished, return_exceptions=True)
            if owned_probe is not None:
                await owned_probe.close()
            self._running = False

        logger.info("All work drained, exiting.")
        return self.summary()

    async def _run_tracked_round(self, endpoint: str) -> None:
        """Run one round and release its unit of outstanding work."""
        self.metrics.inc("rounds_started")
        outcome: Optional[RoundOutcome] = None
        try:
            try:
                outcome = await run_round(
                    endpoint, self._active_probe, self.limiter, self.token,
                    self.policy, self.metrics,
                )
            except Exception:
                logger.exception("Unexpected error while checking %s", endpoint)

            # a round cut short by shutdown ends its endpoint's line of work
            if outcome is not RoundOutcome.ABORTED and not self.token.cancelled:
                self.scheduler.forward(endpoint)
        finally:
            self.tracker.done()

    def summary(self) -> RunSummary:
        snapshot = self.metrics.snapshot()
        return RunSummary(
            rounds_started=snapshot["rounds_started"],
            rounds_succeeded=snapshot["rounds_succeeded"],
            rounds_exhausted=snapshot["retries_exhausted"],
            rounds_aborted=snapshot["rounds_aborted"],
            recurrences_declined=snapshot["recurrences_declined"],
            probes=snapshot["probe_success"] + snapshot["probe_failure"],
            peak_in_flight=self.limiter.peak_in_flight,
        )
