"""One-shot cancellation token shared by every task of a run."""

import asyncio


class CancellationToken:
    """Process-wide shutdown signal.

    Set exactly once and never reset. Tasks observe it at their checkpoints;
    it never interrupts work that is already running.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> bool:
        """Set the signal.

        Returns:
            True on the first call, False if it was already set
        """
        if self._event.is_set():
            return False
        self._event.set()
        return True

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds, waking early on cancellation.

        Args:
            delay: Seconds to sleep

        Returns:
            True if cancellation was observed, False if the full delay elapsed
        """
        if self._event.is_set():
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"
