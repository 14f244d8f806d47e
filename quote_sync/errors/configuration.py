"""Configuration error raised when merged settings fail validation."""

from typing import Any, Optional


class ConfigurationError(Exception):
    """Merged configuration did not pass validation."""

    def __init__(self, message: str, errors: Optional[list[Any]] = None):
        super().__init__(message)
        self.errors = errors or []
        self.recoverable = False
