"""Build and reload actions.

An action is an async callable returning an ActionResult. Failures are
reported through the result, never raised to the watch loop.

``CommandAction`` runs a shell command through cmdorc's CommandOrchestrator;
``LogAction`` is used when no command is configured and only logs.
"""

import asyncio
import logging
import math
import time
from typing import Protocol

from cmdorc import CommandConfig, CommandOrchestrator, RunnerConfig, RunState

from nightswatch.errors import ActionError
from nightswatch.models import ActionResult, WatchConfiguration

logger = logging.getLogger(__name__)

BUILD = "build"
RELOAD = "reload"


class Action(Protocol):
    """A side-effecting step invoked by the watch loop."""

    name: str

    async def __call__(self) -> ActionResult: ...


class LogAction:
    """Placeholder action: logs its name and succeeds."""

    def __init__(self, name: str):
        self.name = name

    async def __call__(self) -> ActionResult:
        logger.info(self.name.capitalize())
        return ActionResult(name=self.name, success=True)


class CommandAction:
    """Runs a configured command through a CommandOrchestrator.

    The per-run timeout is enforced by the orchestrator (``timeout_secs`` on
    the command); a run that hits it ends as a failed result.
    """

    def __init__(self, name: str, orchestrator: CommandOrchestrator):
        """Initialize action.

        Args:
            name: Command name registered with the orchestrator
            orchestrator: CommandOrchestrator that owns the command
        """
        self.name = name
        self.orchestrator = orchestrator

    async def __call__(self) -> ActionResult:
        logger.info(f"{self.name.capitalize()}: starting")
        started = time.monotonic()
        try:
            success, output = await self._run()
        except ActionError as e:
            logger.error(f"{self.name.capitalize()} failed: {e}")
            return ActionResult(self.name, False, str(e), time.monotonic() - started)

        result = ActionResult(self.name, success, output, time.monotonic() - started)
        if success:
            logger.info(f"{self.name.capitalize()} succeeded ({result.duration_str})")
        else:
            logger.warning(f"{self.name.capitalize()} failed ({result.duration_str})")
            if output:
                logger.warning(output.rstrip())
        return result

    async def _run(self) -> tuple[bool, str]:
        try:
            handle = await self.orchestrator.run_command(self.name)
        except Exception as e:
            raise ActionError(f"could not start '{self.name}': {e}") from e

        try:
            await handle.wait()
        except asyncio.CancelledError:
            await self.orchestrator.cancel_command(self.name)
            raise

        output = getattr(handle, "output", None) or ""
        return handle.state == RunState.SUCCESS, str(output)


def _command_config(name: str, command: str, config: WatchConfiguration) -> CommandConfig:
    options = {}
    if config.timeout:
        options["timeout_secs"] = max(1, math.ceil(config.timeout.total_seconds()))
    if config.config_path is not None:
        options["cwd"] = str(config.config_path.parent)
    return CommandConfig(name=name, command=command, triggers=[], **options)


def create_orchestrator(config: WatchConfiguration) -> CommandOrchestrator | None:
    """Create the orchestrator owning the configured build and reload commands.

    Commands run from the config file's directory, so relative paths in them
    resolve the same way as the watch ``path``.

    Returns:
        CommandOrchestrator, or None when neither command is configured
    """
    commands = [
        _command_config(name, command, config)
        for name, command in ((BUILD, config.build), (RELOAD, config.reload))
        if command
    ]
    if not commands:
        return None
    return CommandOrchestrator(RunnerConfig(commands=commands))


def create_actions(
    config: WatchConfiguration,
    orchestrator: CommandOrchestrator | None = None,
) -> tuple[Action, Action]:
    """Create the build and reload actions for a configuration.

    Commands left empty in the configuration become LogActions. Configured
    commands run through ``orchestrator``.

    Returns:
        Tuple of (build, reload)
    """

    def make(name: str, command: str) -> Action:
        if not command or orchestrator is None:
            return LogAction(name)
        return CommandAction(name, orchestrator)

    return make(BUILD, config.build), make(RELOAD, config.reload)
