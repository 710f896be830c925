"""Directory traversal that feeds the watch set."""

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

from nightswatch.errors import ConfigurationError, TraversalError

logger = logging.getLogger(__name__)


class PathRegistry(Protocol):
    """Anything paths can be registered with (the watch set)."""

    def register(self, path: Path) -> None: ...


def walk(root: str | Path) -> Iterator[Path]:
    """Yield ``root`` and every file and directory below it, depth first.

    Entries are visited in name order. Symlinked directories are yielded but
    not descended into.

    Raises:
        ConfigurationError: If no root is given
        TraversalError: On the first path that cannot be visited
    """
    if not root:
        raise ConfigurationError("Paths must not be empty.")
    root = Path(root)
    try:
        os.lstat(root)
    except OSError as e:
        raise TraversalError(root, e.strerror or str(e)) from e

    yield root
    if root.is_dir() and not root.is_symlink():
        yield from _walk_dir(root)


def _walk_dir(directory: Path) -> Iterator[Path]:
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        raise TraversalError(directory, e.strerror or str(e)) from e

    for entry in entries:
        path = Path(entry.path)
        yield path
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError as e:
            raise TraversalError(path, e.strerror or str(e)) from e
        if is_dir:
            yield from _walk_dir(path)


def load(root: str | Path, registry: PathRegistry) -> int:
    """Register every path under ``root`` as it is discovered.

    Returns:
        Number of paths registered

    Raises:
        TraversalError: If a path cannot be visited
        WatchRegistrationError: If the registry rejects a path
    """
    count = 0
    for path in walk(root):
        registry.register(path)
        count += 1
    logger.info(f"Watching {count} path(s) under {root}")
    return count
