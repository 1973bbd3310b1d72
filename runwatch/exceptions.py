"""Custom exceptions for runwatch."""


class RunWatchError(Exception):
    """Base exception for runwatch."""

    pass


class ConfigurationError(RunWatchError):
    """Configuration-related errors."""

    pass


class RemoteQueryError(RunWatchError):
    """Remote GraphQL errors (transport failure, bad payload, query errors)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PollerError(RunWatchError):
    """Poller lifecycle errors."""

    def __init__(self, poller_name: str, message: str):
        super().__init__(f"Poller '{poller_name}': {message}")
        self.poller_name = poller_name
