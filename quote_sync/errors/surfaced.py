"""
Errors that are propagated unchanged to the caller.

Trade rejections carry the server's reason verbatim so the presentation
layer can show it. Authorization failures are handed to whoever owns the
login flow.
"""

from typing import Optional, Dict, Any


class SurfacedError(Exception):
    """Base class for errors the engine does not absorb."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class TradeRejected(SurfacedError):
    """Server-reported business error for a trade request."""

    def __init__(self, reason: str, kind: Optional[str] = None,
                 symbol: Optional[str] = None, status: Optional[int] = None, **kwargs):
        super().__init__(reason, **kwargs)
        self.reason = reason
        self.kind = kind
        self.symbol = symbol
        self.status = status


class AuthRequired(SurfacedError):
    """Session credential is missing or was refused by the server."""

    def __init__(self, message: str = "Authentication required",
                 status: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status = status
