"""nightswatch: a configurable file watcher that rebuilds and reloads on change."""

__version__ = "0.1.0"

from nightswatch.config import load_config, parse_duration
from nightswatch.errors import (
    ActionError,
    ConfigurationError,
    NightswatchError,
    NotificationFacilityError,
    TraversalError,
    WatchRegistrationError,
)
from nightswatch.event_source import EventSource, WatchSet
from nightswatch.loop import DebounceLoop
from nightswatch.models import ActionResult, ChangeEvent, Operation, WatchConfiguration
from nightswatch.watcher import Watcher

__all__ = [
    "__version__",
    # Models
    "WatchConfiguration",
    "ChangeEvent",
    "Operation",
    "ActionResult",
    # Core
    "EventSource",
    "WatchSet",
    "DebounceLoop",
    "Watcher",
    # Config
    "load_config",
    "parse_duration",
    # Errors
    "NightswatchError",
    "ConfigurationError",
    "TraversalError",
    "WatchRegistrationError",
    "NotificationFacilityError",
    "ActionError",
]
