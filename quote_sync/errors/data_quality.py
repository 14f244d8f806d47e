"""
Data quality error classifications for inbound quote payloads.

These exceptions describe records that cannot be turned into a canonical
quote. They never abort a batch: the offending record is dropped.
"""

from typing import Optional, Dict, Any


class DataQualityError(Exception):
    """Base class for data quality issues that can be handled gracefully."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class MalformedQuoteError(DataQualityError):
    """Quote record is missing its symbol or carries a non-numeric price."""

    def __init__(self, message: str, raw_record: Optional[str] = None,
                 field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_record = raw_record
        self.field = field
