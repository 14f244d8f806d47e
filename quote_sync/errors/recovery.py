"""
Recoverable error classifications for quote acquisition.

Transport and fetch failures heal themselves through failover or retry on
the next interval, so the engine logs them and keeps running on stale data.
"""

from typing import Optional, Dict, Any


class RecoverableError(Exception):
    """Base for errors that are recovered from automatically."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 retry_count: int = 0):
        super().__init__(message)
        self.context = context or {}
        self.retry_count = retry_count
        self.recoverable = True


class TransportError(RecoverableError):
    """Push channel failed to open or closed unexpectedly."""

    def __init__(self, message: str, url: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.url = url


class PollFetchError(RecoverableError):
    """A single poll cycle failed; the next interval retries."""

    def __init__(self, message: str, url: Optional[str] = None,
                 status: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.url = url
        self.status = status
