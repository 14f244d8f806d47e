"""Tests for the current quote set."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from conftest import make_quote
from quote_sync.state.quotes import QuoteBook

T0 = datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc)


class TestQuoteBook:
    """Test suite for QuoteBook."""

    def test_last_write_wins(self) -> None:
        book = QuoteBook()

        assert book.apply(make_quote("AAPL", 150))
        assert book.apply(make_quote("AAPL", 165))

        assert book.get("AAPL").price == Decimal("165")
        assert len(book) == 1

    def test_stale_source_timed_quote_is_rejected(self) -> None:
        book = QuoteBook()
        book.apply(make_quote("AAPL", 165, ts=T0))

        accepted = book.apply(make_quote("AAPL", 150, ts=T0 - timedelta(seconds=5)))

        assert accepted is False
        assert book.get("AAPL").price == Decimal("165")
        assert book.stale_rejections == 1

    def test_untimed_quote_always_wins(self) -> None:
        book = QuoteBook()
        book.apply(make_quote("AAPL", 165, ts=T0))

        assert book.apply(make_quote("AAPL", 150))
        assert book.get("AAPL").price == Decimal("150")

    def test_first_seen_order_is_kept(self) -> None:
        book = QuoteBook()
        for symbol in ("TSLA", "AAPL", "MSFT"):
            book.apply(make_quote(symbol, 1))
        book.apply(make_quote("TSLA", 2))

        assert [q.symbol for q in book.snapshot()] == ["TSLA", "AAPL", "MSFT"]

    def test_prune_removes_missing_symbols(self) -> None:
        book = QuoteBook()
        for symbol in ("AAPL", "MSFT", "TSLA"):
            book.apply(make_quote(symbol, 1))

        removed = book.prune(["AAPL", "TSLA"])

        assert removed == ["MSFT"]
        assert "MSFT" not in book
        assert set(book.as_mapping()) == {"AAPL", "TSLA"}
