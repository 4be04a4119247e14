"""Error taxonomy for the metrics dashboard."""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for every failure surfaced to the dashboard user."""


class ConfigError(DashboardError):
    """Remote configuration is missing or malformed."""


class AuthError(DashboardError):
    """Identity acquisition failed."""


class SubscriptionError(DashboardError):
    """The live record stream failed and was torn down."""


class PersistenceError(DashboardError):
    """A create or delete request against the store failed."""


class NotReadyError(DashboardError):
    """An operation was attempted before the session was subscribed."""

    def __init__(self, message: str = "Dashboard is not connected yet. Please wait or reload.") -> None:
        super().__init__(message)


class ValidationError(DashboardError):
    code = "ValidationError"


class AllZeroError(ValidationError):
    code = "AllZero"

    def __init__(self, message: str = "Please enter at least one non-zero value.") -> None:
        super().__init__(message)


class NegativeCountError(ValidationError):
    code = "NegativeCount"

    def __init__(self, message: str = "DM count and sales count cannot be negative.") -> None:
        super().__init__(message)
