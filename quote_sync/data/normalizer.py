"""
Quote normalization pipeline for converting raw transport payloads to quotes.

This module provides the QuoteNormalizer class that decodes poll batches and
push messages, parses each record, and drops malformed records without
aborting the rest of the batch.
"""

import logging
from typing import Any, Union

from ..errors import MalformedQuoteError
from .models import InstrumentQuote, NormalizerStats
from .parsers import PayloadDecodeError, parse_json_payload, parse_quote_record

logger = logging.getLogger(__name__)

RawPayload = Union[str, bytes, bytearray, dict, list]


class QuoteNormalizer:
    """
    Converts heterogeneous quote payloads into canonical InstrumentQuote records.

    Has no side effects beyond its own counters; state mutation happens
    downstream in the engine.
    """

    def __init__(self) -> None:
        self.stats = NormalizerStats()

    def normalize(self, payload: RawPayload) -> list[InstrumentQuote]:
        """
        Normalize either payload shape.

        A list is treated as a poll batch, an object as a single push message.
        """
        try:
            decoded = parse_json_payload(payload)
        except PayloadDecodeError as e:
            logger.warning(f"Dropping undecodable payload: {e}")
            self.stats.record_drop(str(e))
            return []

        if isinstance(decoded, list):
            return self._normalize_records(decoded)
        if isinstance(decoded, dict):
            return self._normalize_records([decoded])

        logger.warning(f"Dropping payload of unsupported type {type(decoded).__name__}")
        self.stats.record_drop(f"unsupported payload type {type(decoded).__name__}")
        return []

    def normalize_batch(self, payload: RawPayload) -> list[InstrumentQuote]:
        """Normalize a poll response (array of quote records)."""
        return self.normalize(payload)

    def normalize_message(self, payload: RawPayload) -> list[InstrumentQuote]:
        """Normalize a single push-channel message."""
        return self.normalize(payload)

    def _normalize_records(self, records: list[Any]) -> list[InstrumentQuote]:
        self.stats.batches += 1
        quotes = []

        for record in records:
            try:
                quotes.append(parse_quote_record(record))
            except MalformedQuoteError as e:
                # Drop the record, keep the batch
                logger.debug(f"Dropping malformed quote record: {e} ({e.raw_record})")
                self.stats.record_drop(str(e))
                continue

        self.stats.accepted += len(quotes)
        return quotes

    def get_stats(self) -> dict[str, Any]:
        return self.stats.get_stats()
