"""Shared data models for nightswatch."""

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from pathlib import Path

DEFAULT_INTERVAL = timedelta(seconds=3)
DEFAULT_TIMEOUT = timedelta(minutes=5)


class Operation(Enum):
    """Kind of filesystem change reported for a path."""

    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"
    RENAME = "rename"
    CHMOD = "chmod"

    @classmethod
    def from_watchdog(cls, event_type: str) -> "Operation | None":
        """Map a watchdog ``event_type`` string to an operation.

        Open/close notifications are not changes and map to ``None``.
        """
        return _WATCHDOG_OPERATIONS.get(event_type)


_WATCHDOG_OPERATIONS = {
    "created": Operation.CREATE,
    "modified": Operation.WRITE,
    "deleted": Operation.REMOVE,
    "moved": Operation.RENAME,
}


@dataclass(frozen=True)
class ChangeEvent:
    """A single change notification delivered by the event source."""

    path: Path
    """Path the change was reported for."""

    operation: Operation
    """What happened to the path."""

    dest_path: Path | None = None
    """Destination of a rename, if known."""

    def __str__(self) -> str:
        if self.dest_path:
            return f"{self.operation.value.upper()}: {self.path} -> {self.dest_path}"
        return f"{self.operation.value.upper()}: {self.path}"


@dataclass
class WatchConfiguration:
    """Everything the watch loop needs, loaded once at startup."""

    root_path: Path
    """Directory tree to watch."""

    match: str = ""
    """Glob pattern a changed path must match to count as a change (empty matches everything)."""

    build: str = ""
    """Shell command run on change (empty only logs)."""

    reload: str = ""
    """Shell command run after build (empty only logs)."""

    interval: timedelta = DEFAULT_INTERVAL
    """Period of the free-running tick."""

    timeout: timedelta | None = DEFAULT_TIMEOUT
    """Upper bound on a single build or reload run (None disables)."""

    strict: bool = False
    """Skip reload when build fails."""

    config_path: Path | None = None
    """File this configuration was loaded from."""


@dataclass
class ActionResult:
    """Outcome of one build or reload invocation."""

    name: str
    success: bool
    output: str = ""
    duration: float = 0.0

    @property
    def duration_str(self) -> str:
        return f"{self.duration:.2f}s"
