"""Recurrence Scheduler.

Finished rounds hand their endpoint over a queue. A single consuming loop
turns every handoff into a fresh round after the cool-down, which keeps the
checker running until shutdown.

Author: StatusChecker Team
Version: 1.0.0
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from status_checker.core.cancellation import CancellationToken
from status_checker.core.work_tracker import WorkTracker
from status_checker.metrics.metrics_exporter import CheckerMetrics

logger = logging.getLogger(__name__)

StartRound = Callable[[str], Awaitable[None]]


class RecurrenceScheduler:
    """Schedules the next round for every endpoint that finished one.

    Every forwarded endpoint carries one unit of outstanding work, reserved
    in ``forward``. That unit is either handed to the new round (which
    releases it when it finishes) or released here when the recurrence is
    declined because of shutdown.
    """

    def __init__(self, tracker: WorkTracker, token: CancellationToken, cooldown: float,
                 start_round: StartRound, metrics: Optional[CheckerMetrics] = None):
        """Initialize the scheduler.

        Args:
            tracker: Outstanding work count shared with the coordinator
            token: Shutdown signal
            cooldown: Seconds to wait before starting the next round
            start_round: Runs a full round for an endpoint and releases its
                unit of outstanding work when done
            metrics: Optional counters
        """
        self.tracker = tracker
        self.token = token
        self.cooldown = cooldown
        self._start_round = start_round
        self.metrics = metrics
        self.queue: "asyncio.Queue[str]" = asyncio.Queue()
        self._tasks: Set[asyncio.Task] = set()
        self._cooling = 0
        self._loop_task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> int:
        """Recurrences waiting on their cool-down."""
        return self._cooling

    def forward(self, endpoint: str) -> None:
        """Hand a finished endpoint over for its next round.

        The unit of work is reserved before the endpoint is queued, so the
        outstanding count cannot reach zero while a handoff is in the queue.
        """
        self.tracker.add()
        self.queue.put_nowait(endpoint)

    def start(self) -> None:
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self.run(), name="recurrence-scheduler")

    async def run(self) -> None:
        """Consume handoffs until stopped."""
        while True:
            endpoint = await self.queue.get()
            try:
                if self.token.cancelled:
                    self._decline(endpoint)
                    continue
                task = asyncio.create_task(self._recur(endpoint), name=f"recur-{endpoint}")
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
            finally:
                self.queue.task_done()

    async def _recur(self, endpoint: str) -> None:
        self._cooling += 1
        try:
            cancelled = await self.token.sleep(self.cooldown)
        finally:
            self._cooling -= 1
        if cancelled or self.token.cancelled:
            self._decline(endpoint)
            return
        await self._start_round(endpoint)

    def _decline(self, endpoint: str) -> None:
        logger.info("Shutdown requested, not scheduling another round for %s", endpoint)
        if self.metrics is not None:
            self.metrics.inc("recurrences_declined")
        self.tracker.done()

    async def stop(self) -> None:
        """Stop the consuming loop and any recurrence still running."""
        tasks = list(self._tasks)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._loop_task = None
