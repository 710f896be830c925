"""Tick sources for the debounce loop."""

import asyncio
import logging
from datetime import timedelta
from typing import Protocol

logger = logging.getLogger(__name__)


class Ticker(Protocol):
    """Anything the debounce loop can wait on for the next tick."""

    async def wait(self) -> None:
        """Return when the next tick is due."""
        ...


class IntervalTicker:
    """Free-running ticker on the event loop clock.

    Ticks fall on fixed multiples of the interval from the first ``wait()``
    call and are never reset by other activity. Ticks missed while the caller
    was busy are dropped, not replayed.
    """

    def __init__(self, interval: timedelta | float):
        seconds = interval.total_seconds() if isinstance(interval, timedelta) else float(interval)
        if seconds <= 0:
            raise ValueError(f"Tick interval must be positive, got {seconds}")
        self.interval = seconds
        self._next: float | None = None

    async def wait(self) -> None:
        loop = asyncio.get_running_loop()
        if self._next is None:
            self._next = loop.time() + self.interval

        delay = self._next - loop.time()
        if delay > 0:
            await asyncio.sleep(delay)

        now = loop.time()
        self._next += self.interval
        if self._next <= now:
            skipped = int((now - self._next) // self.interval) + 1
            self._next += skipped * self.interval
            logger.debug(f"Dropped {skipped} missed tick(s)")
