"""Exception hierarchy for the aggregation engine."""

from __future__ import annotations


class AggregatorError(Exception):
    """Base class for every error raised by the aggregator."""


class FetchError(AggregatorError):
    """A provider request failed. Retried by the source adapter."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class FetchTimeout(FetchError):
    def __init__(self, provider: str, timeout: float) -> None:
        super().__init__(provider, f"timed out after {timeout:.1f}s")
        self.timeout = timeout


class RateLimited(FetchError):
    def __init__(self, provider: str) -> None:
        super().__init__(provider, "rate limited (HTTP 429)")
        self.status = 429


class HTTPStatusError(FetchError):
    def __init__(self, provider: str, status: int) -> None:
        super().__init__(provider, f"HTTP {status}")
        self.status = status


class NetworkError(FetchError):
    """Connection-level failure or an unreadable response body."""


class AggregationFailure(AggregatorError):
    """No usable snapshot could be produced by a refresh cycle."""


class CacheUnavailable(AggregatorError):
    """The external key-value store could not be reached."""


class InvalidCursor(AggregatorError, ValueError):
    """A pagination cursor that is not a non-negative integer."""
