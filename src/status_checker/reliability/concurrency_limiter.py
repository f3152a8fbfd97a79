"""Concurrency Limiter.

Bounds how many probes run at the same time across the whole checker. Each
probe holds one admission slot for exactly the duration of its request.
Waiters are woken in FIFO order, so every waiting round is eventually
admitted.

Author: StatusChecker Team
Version: 1.0.0
"""

import asyncio
import time
from typing import Dict


class ConcurrencyLimiter:
    """Counting admission gate for probe calls."""

    def __init__(self, max_concurrency: int = 5):
        """Initialize the limiter.

        Args:
            max_concurrency: Maximum number of slots held at once
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._in_flight = 0
        self._peak_in_flight = 0

        # Statistics
        self.stats = {
            "acquisitions": 0,
            "total_wait_time": 0.0,
        }

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    @property
    def in_flight(self) -> int:
        """Slots currently held."""
        return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        """Highest number of slots ever held at once."""
        return self._peak_in_flight

    @property
    def available(self) -> int:
        return self._max_concurrency - self._in_flight

    async def acquire(self) -> None:
        """Wait for a free slot and take it."""
        start = time.monotonic()
        await self._semaphore.acquire()
        self._in_flight += 1
        self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
        self.stats["acquisitions"] += 1
        self.stats["total_wait_time"] += time.monotonic() - start

    def release(self) -> None:
        """Free one slot, waking at most one waiter."""
        if self._in_flight == 0:
            raise RuntimeError("release() called without a matching acquire()")
        self._in_flight -= 1
        self._semaphore.release()

    async def __aenter__(self) -> "ConcurrencyLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def get_stats(self) -> Dict:
        """Get limiter statistics."""
        acquisitions = self.stats["acquisitions"]
        average_wait = (
            self.stats["total_wait_time"] / acquisitions
            if acquisitions > 0 else 0.0
        )
        return {
            "max_concurrency": self._max_concurrency,
            "in_flight": self._in_flight,
            "peak_in_flight": self._peak_in_flight,
            "available": self.available,
            "acquisitions": acquisitions,
            "average_wait_time": f"{average_wait:.3f}s",
        }
