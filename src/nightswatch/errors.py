"""Exception hierarchy for nightswatch.

Startup errors (configuration, traversal, registration) abort before any
watching begins. Runtime errors from the notification facility end the watch
loop. Action errors are only ever logged.
"""


class NightswatchError(Exception):
    """Base class for every error raised by nightswatch."""


class ConfigurationError(NightswatchError):
    """The configuration file is missing, malformed, or incomplete."""


class TraversalError(NightswatchError):
    """A path under the watch root could not be visited."""

    def __init__(self, path, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


class WatchRegistrationError(NightswatchError):
    """The notification facility rejected a path."""

    def __init__(self, path, message: str):
        super().__init__(f"cannot watch {path}: {message}")
        self.path = path


class NotificationFacilityError(NightswatchError):
    """The event source failed while the loop was running."""


class ActionError(NightswatchError):
    """A build or reload action failed."""
