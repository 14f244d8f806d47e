"""
Logging configuration and utilities for the quote sync engine.
"""
from .config import configure_logging, get_logger, get_transport_logger, log_transport_transition

__all__ = ["configure_logging", "get_logger", "get_transport_logger", "log_transport_transition"]
