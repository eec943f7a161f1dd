"""
Lottery-gated garbage collection for session handlers.

Expiry sweeps are amortized over traffic: every closed session draws a
ticket, and only winning draws run the handler's gc.
"""

import asyncio
import random
from typing import Optional, Sequence, Set

from pysession.handlers.base import SessionHandler
from pysession.utils.logging_config import setup_logging

logger = setup_logging("garbage_collector")


class GarbageCollector:
    """
    Decide when to sweep and run the sweep.

    Sweeps are detached by default: ``trigger`` schedules the handler's gc
    as a task and returns without joining it. Pass ``wait=True`` (or build
    the collector with ``wait=True``) to join the sweep instead.

    Example:
        collector = GarbageCollector(lottery=(2, 100), lifetime=300)
        await collector.trigger(handler)
    """

    def __init__(
        self,
        lottery: Sequence[int] = (2, 100),
        lifetime: float = 300,
        wait: bool = False,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize the collector.

        Args:
            lottery: Odds as ``(numerator, denominator)``
            lifetime: Max idle seconds passed to ``handler.gc``
            wait: Join sweeps instead of detaching them
            rng: Random source, injectable for tests
        """
        self.lottery = tuple(lottery)
        self.lifetime = lifetime
        self.wait = wait
        self._rng = rng or random.Random()
        self._tasks: Set[asyncio.Task] = set()

    def hits_lottery(self) -> bool:
        """Draw from [1, denominator]; win when the draw is <= numerator."""
        numerator, denominator = self.lottery
        return self._rng.randint(1, denominator) <= numerator

    async def collect(self, handler: SessionHandler) -> int:
        """Run one sweep. Errors are logged and swallowed."""
        try:
            removed = await handler.gc(self.lifetime)
        except Exception as e:
            logger.warning(f"Session gc failed on {type(handler).__name__}: {e}")
            return 0

        logger.debug(f"Session gc removed {removed} record(s)")
        return removed

    async def trigger(
        self,
        handler: SessionHandler,
        wait: Optional[bool] = None
    ) -> Optional[asyncio.Task]:
        """
        Draw a ticket and, on a win, start a sweep.

        Args:
            handler: Handler to sweep
            wait: Override the collector's join behavior for this call

        Returns:
            The sweep task, or None when the draw lost
        """
        if not self.hits_lottery():
            return None

        logger.debug("Session gc lottery hit")
        task = asyncio.ensure_future(self.collect(handler))

        if self.wait if wait is None else wait:
            await task
            return task

        # Hold a strong reference until the detached sweep finishes
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        """Number of detached sweeps still running."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every detached sweep to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks))
