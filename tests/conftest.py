"""Pytest configuration and fixtures."""

import asyncio
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from nightswatch.event_source import EventSource  # noqa: E402
from nightswatch.models import ActionResult  # noqa: E402


class ManualTicker:
    """Ticker driven by the test instead of the clock."""

    def __init__(self):
        self._ticks: asyncio.Queue = asyncio.Queue()

    def tick(self) -> None:
        self._ticks.put_nowait(None)

    async def wait(self) -> None:
        await self._ticks.get()


class RecordingAction:
    """Action that records each call in a shared log."""

    def __init__(self, name: str, calls: list, success: bool = True, error: Exception | None = None):
        self.name = name
        self.calls = calls
        self.success = success
        self.error = error

    async def __call__(self) -> ActionResult:
        self.calls.append(self.name)
        if self.error:
            raise self.error
        return ActionResult(name=self.name, success=self.success)


class FakeSource:
    """Bare pair of queues standing in for an EventSource."""

    def __init__(self):
        self.changes: asyncio.Queue = asyncio.Queue()
        self.errors: asyncio.Queue = asyncio.Queue()


async def settle(rounds: int = 20) -> None:
    """Let pending callbacks and tasks on the event loop run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def calls():
    return []


@pytest.fixture
def actions(calls):
    return RecordingAction("build", calls), RecordingAction("reload", calls)


@pytest.fixture
def ticker():
    return ManualTicker()


@pytest.fixture
def fake_source():
    return FakeSource()


@pytest.fixture
def mock_observer():
    observer = MagicMock()
    observer.emitters = []
    observer.is_alive.return_value = True
    return observer


@pytest.fixture
def mock_source(mock_observer):
    """EventSource over a mocked watchdog observer."""
    return EventSource(observer=mock_observer)


@pytest.fixture
def project_tree(tmp_path):
    """Root with 3 files and 2 subdirectories."""
    root = tmp_path / "proj"
    root.mkdir()
    (root / "a.txt").write_text("a")
    (root / "b.txt").write_text("b")
    (root / "src").mkdir()
    (root / "src" / "main.py").write_text("print('hi')")
    (root / "src" / "empty").mkdir()
    return root
