"""
Typed errors raised by the discovery core and the store.

Callers can tell a fatal failure (an exception) from a degraded result
(see MetricsReport.degraded_sources) without inspecting log output.
"""


class DiscoveryError(Exception):
    """Base class for discovery errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UpstreamQueryError(DiscoveryError):
    """A backing-store query failed. Carries the original error message."""

    def __init__(self, message: str, source: str | None = None, retryable: bool = False):
        super().__init__(message)
        self.source = source
        self.retryable = retryable


class StoreTimeoutError(UpstreamQueryError):
    """A store call exceeded its timeout or hit a lock. Safe to retry."""

    def __init__(self, message: str, source: str | None = None):
        super().__init__(message, source=source, retryable=True)


class StoryNotFoundError(DiscoveryError):
    """No published story matches the requested key."""

    def __init__(self, key: str):
        super().__init__(f"Story not found: {key}")
        self.key = key


class InvalidActionError(DiscoveryError):
    """A feed action or engagement event payload was malformed."""


class AuthenticationRequiredError(InvalidActionError):
    """The action needs an authenticated viewer."""


def is_retryable(error: BaseException) -> bool:
    """Return True for store failures worth retrying."""
    return isinstance(error, UpstreamQueryError) and error.retryable
