"""The debounced watch loop.

Three signal sources are multiplexed with ``asyncio.wait``: change
notifications, fatal errors, and a free-running tick. Exactly one signal is
handled per iteration. Any number of changes between two ticks collapses into
a single pending flag, and the next tick runs build then reload once.
"""

import asyncio
import logging
from typing import Protocol

from nightswatch.actions import Action
from nightswatch.models import ActionResult, ChangeEvent
from nightswatch.ticker import Ticker

logger = logging.getLogger(__name__)

_ERROR = "error"
_CHANGE = "change"
_TICK = "tick"

# When several signals are ready at once they are serviced in this order.
_PRIORITY = (_ERROR, _CHANGE, _TICK)


class SignalSource(Protocol):
    changes: asyncio.Queue
    errors: asyncio.Queue


def matches(change: ChangeEvent, pattern: str) -> bool:
    """Check whether a change is relevant for a glob pattern.

    Patterns match from the right, so ``*.py`` matches any Python file and
    ``src/*.py`` matches Python files directly inside any ``src`` directory.
    An empty pattern matches everything.
    """
    if not pattern:
        return True
    if change.path.match(pattern):
        return True
    return change.dest_path is not None and change.dest_path.match(pattern)


class DebounceLoop:
    """Consumes changes and ticks, dispatching build and reload.

    The loop has no terminal state: ``run()`` returns only by raising the
    first error taken from the source's error queue.
    """

    def __init__(
        self,
        source: SignalSource,
        build: Action,
        reload: Action,
        ticker: Ticker,
        match: str = "",
        strict: bool = False,
    ):
        """Initialize loop.

        Args:
            source: Provides the ``changes`` and ``errors`` queues
            build: Action run first on a dispatch
            reload: Action run after build
            ticker: Tick source
            match: Optional glob pattern changes must match
            strict: Skip reload when build fails
        """
        self.source = source
        self.build = build
        self.reload = reload
        self.ticker = ticker
        self.match = match
        self.strict = strict

        self.pending = False
        self.dispatches = 0

    async def run(self) -> None:
        """Run until the event source reports an error, then raise it."""
        waiters: dict[str, asyncio.Task] = {}
        try:
            while True:
                logger.debug("loop")
                self._arm(waiters)
                await asyncio.wait(waiters.values(), return_when=asyncio.FIRST_COMPLETED)

                kind = next(k for k in _PRIORITY if k in waiters and waiters[k].done())
                value = waiters.pop(kind).result()

                if kind == _ERROR:
                    logger.error(f"Event source failed: {value}")
                    raise value
                elif kind == _CHANGE:
                    self.on_change(value)
                else:
                    await self.on_tick()
        finally:
            for task in waiters.values():
                task.cancel()
            await asyncio.gather(*waiters.values(), return_exceptions=True)

    def _arm(self, waiters: dict[str, asyncio.Task]) -> None:
        if _ERROR not in waiters:
            waiters[_ERROR] = asyncio.create_task(self.source.errors.get())
        if _CHANGE not in waiters:
            waiters[_CHANGE] = asyncio.create_task(self.source.changes.get())
        if _TICK not in waiters:
            waiters[_TICK] = asyncio.create_task(self.ticker.wait())

    def on_change(self, change: ChangeEvent) -> None:
        """Record a change notification."""
        if not matches(change, self.match):
            logger.debug(f"Ignored {change} (does not match '{self.match}')")
            return
        logger.info(str(change))
        self.pending = True

    async def on_tick(self) -> None:
        """Dispatch if anything changed since the last tick."""
        if not self.pending:
            return
        await self.dispatch()

    async def dispatch(self) -> None:
        """Run build then reload, and clear the pending flag."""
        built = await self._invoke(self.build)
        if self.strict and not built.success:
            logger.warning(f"Skipping {self.reload.name}: {self.build.name} failed")
        else:
            await self._invoke(self.reload)
        self.pending = False
        self.dispatches += 1

    async def _invoke(self, action: Action) -> ActionResult:
        try:
            return await action()
        except Exception as e:
            logger.exception(f"Error in {action.name}: {e}")
            return ActionResult(name=action.name, success=False, output=str(e))
