"""
Error classification for quote synchronization and session operations.

Errors are grouped by how they propagate: recoverable transport and fetch
errors are absorbed by the engine, data quality errors drop the offending
record, and surfaced errors reach the caller unchanged.
"""

from .data_quality import (
    DataQualityError,
    MalformedQuoteError,
)
from .recovery import (
    RecoverableError,
    TransportError,
    PollFetchError,
)
from .surfaced import (
    SurfacedError,
    TradeRejected,
    AuthRequired,
)
from .configuration import ConfigurationError

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "MalformedQuoteError",
    # Recoverable Errors
    "RecoverableError",
    "TransportError",
    "PollFetchError",
    # Surfaced Errors
    "SurfacedError",
    "TradeRejected",
    "AuthRequired",
    # Configuration
    "ConfigurationError",
]
