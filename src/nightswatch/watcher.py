"""Wires configuration, traversal, event source and loop together."""

import logging
from collections.abc import Callable
from contextlib import AsyncExitStack

from nightswatch.actions import Action, create_actions, create_orchestrator
from nightswatch.event_source import EventSource
from nightswatch.loop import DebounceLoop
from nightswatch.models import WatchConfiguration
from nightswatch.paths import load
from nightswatch.ticker import IntervalTicker, Ticker

logger = logging.getLogger(__name__)


class Watcher:
    """Runs one watch session for a configuration.

    The event source and the command orchestrator are acquired for the whole
    session and released on every exit path, including startup failures.
    """

    def __init__(
        self,
        config: WatchConfiguration,
        source_factory: Callable[[], EventSource] = EventSource,
        ticker: Ticker | None = None,
        actions: tuple[Action, Action] | None = None,
    ):
        self.config = config
        self.source_factory = source_factory
        self.ticker = ticker
        self.actions = actions
        self.source: EventSource | None = None
        self.loop: DebounceLoop | None = None

    async def run(self) -> None:
        """Register the tree and run the debounce loop until it fails."""
        config = self.config
        ticker = self.ticker or IntervalTicker(config.interval)

        async with AsyncExitStack() as stack:
            source = await stack.enter_async_context(self.source_factory())
            self.source = source

            if self.actions:
                build, reload = self.actions
            else:
                orchestrator = create_orchestrator(config)
                if orchestrator is not None:
                    await stack.enter_async_context(orchestrator)
                build, reload = create_actions(config, orchestrator)

            load(config.root_path, source.watch_set)

            self.loop = DebounceLoop(
                source,
                build=build,
                reload=reload,
                ticker=ticker,
                match=config.match,
                strict=config.strict,
            )
            logger.info(
                f"Watching {config.root_path} every {config.interval.total_seconds():g}s"
                + (f" for '{config.match}'" if config.match else "")
            )
            await self.loop.run()
