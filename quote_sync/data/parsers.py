"""
Quote payload parsers for converting raw transport records to canonical quotes.

Both the poll endpoint and the push channel use the same record shape,
``{"symbol": ..., "current_price": ...}``, optionally with an observation
timestamp. Parsing failures raise MalformedQuoteError for the single record.
"""

import json
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from ..errors import MalformedQuoteError
from ..utils.time import get_observed_time
from .models import InstrumentQuote

PRICE_KEYS = ("current_price", "price")
TIMESTAMP_KEYS = ("observed_at", "timestamp", "time")


class PayloadDecodeError(Exception):
    """Raised when a transport payload is not valid JSON."""
    pass


def parse_json_payload(raw: Union[str, bytes, bytearray, dict, list]) -> Any:
    """
    Decode a raw payload into Python structures.

    Already-decoded dicts and lists are returned unchanged.
    """
    if isinstance(raw, (dict, list)):
        return raw

    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise PayloadDecodeError(f"Payload is not UTF-8: {e}") from e

    if not isinstance(raw, str):
        raise PayloadDecodeError(f"Unsupported payload type: {type(raw).__name__}")

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise PayloadDecodeError(f"Invalid JSON payload: {e}") from e


def parse_symbol(record: dict[str, Any]) -> str:
    """Extract a non-empty symbol from a quote record."""
    symbol = record.get("symbol")
    if not isinstance(symbol, str) or not symbol.strip():
        raise MalformedQuoteError(
            "Quote record missing symbol",
            raw_record=str(record)[:100],
            field="symbol"
        )
    return symbol.strip()


def parse_price(value: Any) -> Decimal:
    """
    Convert a raw price to Decimal.

    Floats are converted via ``str`` so 123.45 stays 123.45 rather than its
    binary expansion.
    """
    if value is None or isinstance(value, bool):
        raise MalformedQuoteError(f"Non-numeric price: {value!r}", field="price")

    if isinstance(value, float):
        if not math.isfinite(value):
            raise MalformedQuoteError(f"Non-finite price: {value!r}", field="price")
        value = str(value)

    try:
        price = Decimal(value) if not isinstance(value, Decimal) else value
    except (InvalidOperation, TypeError, ValueError):
        raise MalformedQuoteError(f"Non-numeric price: {value!r}", field="price")

    if not price.is_finite():
        raise MalformedQuoteError(f"Non-finite price: {value!r}", field="price")
    if price < 0:
        raise MalformedQuoteError(f"Negative price: {value!r}", field="price")

    return price


def parse_quote_record(record: Any) -> InstrumentQuote:
    """Parse one raw record into an InstrumentQuote."""
    if not isinstance(record, dict):
        raise MalformedQuoteError(
            f"Quote record must be an object, got {type(record).__name__}",
            raw_record=str(record)[:100]
        )

    symbol = parse_symbol(record)

    raw_price = next((record[key] for key in PRICE_KEYS if key in record), None)
    try:
        price = parse_price(raw_price)
    except MalformedQuoteError as e:
        e.context = {"symbol": symbol}
        e.raw_record = str(record)[:100]
        raise

    raw_ts = next((record[key] for key in TIMESTAMP_KEYS if record.get(key) is not None), None)
    observed_at, source_timed = get_observed_time(raw_ts)

    return InstrumentQuote(
        symbol=symbol,
        price=price,
        observed_at=observed_at,
        source_timed=source_timed,
    )
