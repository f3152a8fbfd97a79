"""Outstanding work count.

Counts every round that has been launched or reserved but not yet finished.
The run is drained exactly when the count returns to zero.
"""

import asyncio


class WorkTracker:
    """Wait-group style counter for outstanding rounds."""

    def __init__(self) -> None:
        self._count = 0
        self._zero = asyncio.Event()
        self._zero.set()

    @property
    def count(self) -> int:
        return self._count

    @property
    def drained(self) -> bool:
        return self._count == 0

    def add(self, n: int = 1) -> None:
        """Reserve ``n`` units of work before launching it.

        Args:
            n: Units to add; must be positive
        """
        if n < 1:
            raise ValueError(f"add() needs a positive count, got {n}")
        self._count += n
        self._zero.clear()

    def done(self) -> None:
        """Release one unit once its work has fully completed."""
        if self._count == 0:
            raise RuntimeError("done() called more times than add()")
        self._count -= 1
        if self._count == 0:
            self._zero.set()

    async def wait(self) -> None:
        """Block until the count is zero."""
        await self._zero.wait()
