"""Exception hierarchy shared by generation, layout, export and relay code.

Generation and layout errors are raised before any result is produced, so
a failed run never replaces or corrupts the previous one.  Relay errors are
always surfaced to the caller and never retried.
"""

from __future__ import annotations


class HashtikError(Exception):
    """Base exception for all HashTik errors."""

    pass


class ConfigError(HashtikError):
    """Raised when application configuration validation fails."""

    pass


class ValidationError(HashtikError):
    """Malformed generation or layout parameters."""

    pass


class RetryExhaustedError(HashtikError):
    """Username uniqueness could not be satisfied within the attempt budget.

    Parameters
    ----------
    message : str
        Human-readable description.
    generated : int
        Number of unique usernames produced before giving up.
    requested : int
        Number of usernames that were requested.
    """

    def __init__(self, message: str, generated: int = 0, requested: int = 0) -> None:
        super().__init__(message)
        self.generated = generated
        self.requested = requested


class RelayError(HashtikError):
    """Any failure talking to the device relay (network, timeout, rejection)."""

    def __init__(self, message: str, action: str | None = None) -> None:
        super().__init__(message)
        self.action = action


class ExportError(HashtikError):
    """The card document could not be assembled or written."""

    pass
