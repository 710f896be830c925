"""Filesystem event source backed by watchdog.

Watchdog delivers events on its own observer threads. They are marshalled
onto the asyncio event loop with ``call_soon_threadsafe`` and exposed as two
queues: ``changes`` for change notifications and ``errors`` for the single
fatal error that ends the watch loop.
"""

import asyncio
import logging
import os
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from nightswatch.errors import NotificationFacilityError, WatchRegistrationError
from nightswatch.models import ChangeEvent, Operation

logger = logging.getLogger(__name__)

HEALTH_CHECK_INTERVAL = 1.0


class _ForwardingHandler(FileSystemEventHandler):
    """Converts watchdog events to ChangeEvents and hands them to the source."""

    def __init__(self, source: "EventSource", only: Path | None = None):
        """Initialize handler.

        Args:
            source: EventSource receiving the changes
            only: Forward only events for this path (used for a file root)
        """
        self.source = source
        self.only = Path(os.path.abspath(only)) if only is not None else None

    def restricted_to(self, path: Path) -> "_ForwardingHandler":
        """Handler for the same source that ignores every other path."""
        return _ForwardingHandler(self.source, only=path)

    def _wanted(self, *paths: Path | None) -> bool:
        if self.only is None:
            return True
        return any(p is not None and Path(os.path.abspath(p)) == self.only for p in paths)

    def on_any_event(self, event: FileSystemEvent) -> None:
        operation = Operation.from_watchdog(event.event_type)
        if operation is None:
            return

        try:
            dest = getattr(event, "dest_path", "") or None
            change = ChangeEvent(
                path=Path(os.fsdecode(event.src_path)),
                operation=operation,
                dest_path=Path(os.fsdecode(dest)) if dest else None,
            )
        except Exception as e:
            self.source.fail(NotificationFacilityError(f"Could not decode event {event!r}: {e}"))
            return

        if self._wanted(change.path, change.dest_path):
            self.source.emit(change)


class WatchSet:
    """Paths registered with the observer.

    Directories get their own non-recursive watch; files are observed through
    the watch on their parent directory. A path whose parent is not watched
    (the root) is always given a watch: a symlink root watches the directory
    it points to, and a file root watches its parent directory for events on
    that file only. Paths are never unregistered.
    """

    def __init__(self, observer: BaseObserver, handler: _ForwardingHandler):
        self._observer = observer
        self._handler = handler
        self._paths: list[Path] = []
        self._watched_dirs: set[Path] = set()

    def register(self, path: str | Path) -> None:
        """Add a path to the watch list.

        Raises:
            WatchRegistrationError: If the path is missing or the observer rejects it
        """
        path = Path(path)
        try:
            os.lstat(path)
        except OSError as e:
            raise WatchRegistrationError(path, e.strerror or str(e)) from e

        if path.is_dir() and not path.is_symlink():
            self._schedule(path, path, self._handler)
        elif path.parent not in self._watched_dirs:
            self._schedule_root(path)

        self._paths.append(path)
        logger.debug(f"Registered {path}")

    def _schedule_root(self, path: Path) -> None:
        target = path.resolve() if path.is_symlink() else path
        if target.is_dir():
            self._schedule(path, target, self._handler)
            return
        if not target.exists():
            target = path
        self._schedule(path, target.parent, self._handler.restricted_to(target))

    def _schedule(self, path: Path, directory: Path, handler: FileSystemEventHandler) -> None:
        try:
            self._observer.schedule(handler, str(directory), recursive=False)
        except OSError as e:
            raise WatchRegistrationError(path, e.strerror or str(e)) from e
        if directory == path:
            self._watched_dirs.add(path)

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, path: object) -> bool:
        return Path(path) in self._paths if isinstance(path, (str, Path)) else False

    def __iter__(self):
        return iter(self._paths)


class EventSource:
    """Async producer of change notifications and fatal errors.

    Usage:
        async with EventSource() as source:
            source.watch_set.register(path)
            change = await source.changes.get()
    """

    def __init__(self, observer: BaseObserver | None = None):
        """Initialize the event source.

        Args:
            observer: watchdog observer to use (default: platform Observer)
        """
        self._observer = observer if observer is not None else Observer()
        self._handler = _ForwardingHandler(self)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._monitor: asyncio.Task | None = None
        self._started = False
        self._closed = False

        self.changes: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        self.errors: asyncio.Queue[BaseException] = asyncio.Queue()
        self.watch_set = WatchSet(self._observer, self._handler)

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "EventSource":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        monitor = self._monitor
        if self._release() and self._observer.is_alive():
            await asyncio.to_thread(self._observer.join, 2.0)
        if monitor:
            await asyncio.gather(monitor, return_exceptions=True)

    def start(self) -> None:
        """Start the observer. Must be called from within the event loop."""
        if self._started:
            return
        self._loop = asyncio.get_running_loop()
        try:
            self._observer.start()
        except OSError as e:
            raise NotificationFacilityError(f"Failed to start file observer: {e}") from e
        self._started = True
        self._monitor = self._loop.create_task(self._supervise())
        logger.debug("File observer started")

    def emit(self, change: ChangeEvent) -> None:
        """Queue a change notification (safe from any thread)."""
        self._put(self.changes, change)

    def fail(self, error: BaseException) -> None:
        """Queue a fatal error (safe from any thread)."""
        self._put(self.errors, error)

    def _put(self, queue: asyncio.Queue, item) -> None:
        if self._closed:
            return
        if self._loop is None:
            queue.put_nowait(item)
            return
        try:
            self._loop.call_soon_threadsafe(queue.put_nowait, item)
        except RuntimeError:
            logger.debug(f"Event loop closed, dropping {item}")

    async def _supervise(self) -> None:
        """Report a dead observer or emitter thread as a fatal error."""
        while not self._closed:
            await asyncio.sleep(HEALTH_CHECK_INTERVAL)
            if self._closed:
                return
            if not self._observer.is_alive():
                self.fail(NotificationFacilityError("File observer stopped unexpectedly"))
                return
            for emitter in list(self._observer.emitters):
                if not emitter.is_alive():
                    self.fail(NotificationFacilityError(f"Watch on {emitter.watch.path} stopped unexpectedly"))
                    return

    def close(self) -> None:
        """Release the observer and its OS resources. Only the first call has any effect."""
        if self._release() and self._observer.is_alive():
            self._observer.join(timeout=2.0)

    def _release(self) -> bool:
        """Stop the observer without waiting for its threads. False if already closed."""
        if self._closed:
            return False
        self._closed = True

        if self._monitor:
            self._monitor.cancel()
            self._monitor = None

        self._observer.stop()
        logger.info("Stopped file observer")
        return True
