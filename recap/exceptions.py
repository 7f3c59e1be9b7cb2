"""Exception hierarchy shared by the client, the cache layer and the API."""

from typing import Optional


class RecapError(Exception):
    """Base class for every error raised by recap."""


class UpstreamError(RecapError):
    """A call to the Riot API failed."""

    def __init__(self, message: str, status: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.url = url


class UpstreamRateLimited(UpstreamError):
    """429 responses kept coming after the retry budget was spent."""

    def __init__(self, message: str, retry_after: Optional[float] = None, url: Optional[str] = None):
        super().__init__(message, status=429, url=url)
        self.retry_after = retry_after


class UpstreamTransientNetwork(UpstreamError):
    """Connection-level failure that outlived the retry budget."""


class UpstreamClientError(UpstreamError):
    """Non-retriable 4xx response."""


class UpstreamServerError(UpstreamError):
    """Non-retriable 5xx response."""


class NotFound(RecapError):
    """The requested resource does not exist (or has no data)."""


class PlayerNotFound(NotFound):
    """Account or summoner lookup came back 404."""


class NoMatchesFound(NotFound):
    """No match falls inside the requested date range."""


class CacheIOError(RecapError):
    """Storage operation failed. Never escapes the store."""


class InvalidRegion(RecapError, ValueError):
    """Region is not one of the known Riot platform routes."""
