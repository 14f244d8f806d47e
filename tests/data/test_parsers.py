"""Tests for quote record parsers."""

import math
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from quote_sync.data.parsers import (
    PayloadDecodeError,
    parse_json_payload,
    parse_price,
    parse_quote_record,
    parse_symbol,
)
from quote_sync.errors import MalformedQuoteError


class TestParseJsonPayload:
    """Test suite for payload decoding."""

    def test_decoded_structures_pass_through(self) -> None:
        records = [{"symbol": "AAPL"}]
        assert parse_json_payload(records) is records

    def test_decodes_text_and_bytes(self) -> None:
        assert parse_json_payload('{"symbol": "AAPL"}') == {"symbol": "AAPL"}
        assert parse_json_payload(b'[{"symbol": "AAPL"}]') == [{"symbol": "AAPL"}]

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(PayloadDecodeError):
            parse_json_payload("{not json")

    def test_unsupported_type_raises(self) -> None:
        with pytest.raises(PayloadDecodeError):
            parse_json_payload(42)  # type: ignore[arg-type]


class TestParsePrice:
    """Test suite for price conversion."""

    def test_float_keeps_decimal_representation(self) -> None:
        assert parse_price(123.45) == Decimal("123.45")

    def test_numeric_string_and_int(self) -> None:
        assert parse_price("99.5") == Decimal("99.5")
        assert parse_price(100) == Decimal(100)

    def test_zero_is_allowed(self) -> None:
        assert parse_price(0) == Decimal(0)

    @pytest.mark.parametrize("value", [None, True, "abc", "", [], math.nan, math.inf, "NaN", -1])
    def test_rejects_invalid_values(self, value) -> None:
        with pytest.raises(MalformedQuoteError) as exc_info:
            parse_price(value)
        assert exc_info.value.field == "price"


class TestParseQuoteRecord:
    """Test suite for whole-record parsing."""

    def test_current_price_record(self) -> None:
        quote = parse_quote_record({"symbol": "AAPL", "current_price": 150.0})

        assert quote.symbol == "AAPL"
        assert quote.price == Decimal("150.0")
        assert quote.source_timed is False

    def test_price_key_alias(self) -> None:
        quote = parse_quote_record({"symbol": "MSFT", "price": "310.5"})
        assert quote.price == Decimal("310.5")

    def test_symbol_is_stripped(self) -> None:
        assert parse_symbol({"symbol": "  AAPL "}) == "AAPL"

    def test_payload_timestamp_marks_source_timed(self) -> None:
        quote = parse_quote_record({
            "symbol": "AAPL",
            "current_price": 150,
            "timestamp": "2024-01-02T10:00:00Z",
        })

        assert quote.source_timed is True
        assert quote.observed_at == datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc)

    def test_missing_symbol_raises(self) -> None:
        with pytest.raises(MalformedQuoteError) as exc_info:
            parse_quote_record({"current_price": 150})
        assert exc_info.value.field == "symbol"

    def test_non_numeric_price_carries_symbol_context(self) -> None:
        with pytest.raises(MalformedQuoteError) as exc_info:
            parse_quote_record({"symbol": "AAPL", "current_price": "n/a"})

        assert exc_info.value.context == {"symbol": "AAPL"}
        assert "AAPL" in exc_info.value.raw_record

    def test_non_object_record_raises(self) -> None:
        with pytest.raises(MalformedQuoteError):
            parse_quote_record(["AAPL", 150])
