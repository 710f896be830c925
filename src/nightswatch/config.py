"""Configuration loading for nightswatch."""

import logging
import re
from datetime import timedelta
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from nightswatch.errors import ConfigurationError
from nightswatch.models import DEFAULT_INTERVAL, DEFAULT_TIMEOUT, WatchConfiguration

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "./nightswatch.toml"

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_STRING_KEYS = ("path", "match", "build", "reload", "interval", "timeout")


def parse_duration(text: str) -> timedelta:
    """Parse a duration string such as ``"3s"``, ``"250ms"`` or ``"1m30s"``.

    A bare ``"0"`` is accepted. Negative durations are rejected.

    Raises:
        ConfigurationError: If the string is not a valid duration
    """
    value = text.strip()
    if value == "0":
        return timedelta(0)
    if not value:
        raise ConfigurationError("Duration must not be empty")

    seconds = 0.0
    position = 0
    for part in _DURATION_PART.finditer(value):
        if part.start() != position:
            break
        number, unit = part.groups()
        seconds += float(number) * _DURATION_UNITS[unit]
        position = part.end()

    if position == 0 or position != len(value):
        raise ConfigurationError(f"Invalid duration: {text!r}")
    return timedelta(seconds=seconds)


def load_config(path: str | Path) -> WatchConfiguration:
    """Load the watch configuration from a TOML file.

    Args:
        path: Path to TOML config file

    Returns:
        Fully populated WatchConfiguration

    Raises:
        ConfigurationError: If the file is missing, malformed, or has no watch path
    """
    path = Path(path)

    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Failed to parse config file {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}") from e

    for key in _STRING_KEYS:
        if key in raw and not isinstance(raw[key], str):
            raise ConfigurationError(f"'{key}' must be a string in {path}")

    root = raw.get("path", "")
    if not root:
        raise ConfigurationError("Paths must not be empty.")

    strict = raw.get("strict", False)
    if not isinstance(strict, bool):
        raise ConfigurationError(f"'strict' must be a boolean in {path}")

    interval = DEFAULT_INTERVAL
    if raw.get("interval"):
        interval = parse_duration(raw["interval"])
        if interval <= timedelta(0):
            raise ConfigurationError(f"Interval must be positive, got {raw['interval']!r}")

    timeout: timedelta | None = DEFAULT_TIMEOUT
    if raw.get("timeout"):
        timeout = parse_duration(raw["timeout"]) or None

    unknown = set(raw) - set(_STRING_KEYS) - {"strict"}
    for key in sorted(unknown):
        logger.warning(f"Ignoring unknown config key '{key}' in {path}")

    config = WatchConfiguration(
        root_path=path.parent / Path(root),
        match=raw.get("match", ""),
        build=raw.get("build", ""),
        reload=raw.get("reload", ""),
        interval=interval,
        timeout=timeout,
        strict=strict,
        config_path=path,
    )
    logger.debug(f"Loaded config from {path}: {config}")
    return config
