"""Tests for the error taxonomy."""

from quote_sync.errors import (
    AuthRequired,
    ConfigurationError,
    DataQualityError,
    MalformedQuoteError,
    PollFetchError,
    RecoverableError,
    SurfacedError,
    TradeRejected,
    TransportError,
)


class TestErrorClassification:
    """Test suite for error hierarchy and recoverability flags."""

    def test_recoverable_errors(self) -> None:
        for error in (TransportError("closed", url="ws://x"), PollFetchError("503", status=503)):
            assert isinstance(error, RecoverableError)
            assert error.recoverable

    def test_data_quality_errors(self) -> None:
        error = MalformedQuoteError("bad price", raw_record="{...}", field="price", context={"symbol": "AAPL"})

        assert isinstance(error, DataQualityError)
        assert error.recoverable
        assert error.field == "price"
        assert error.context == {"symbol": "AAPL"}

    def test_surfaced_errors(self) -> None:
        rejected = TradeRejected("Insufficient funds", kind="buy", symbol="AAPL", status=400)
        auth = AuthRequired(status=401)

        assert isinstance(rejected, SurfacedError)
        assert isinstance(auth, SurfacedError)
        assert not rejected.recoverable
        assert str(rejected) == "Insufficient funds"
        assert rejected.reason == "Insufficient funds"
        assert str(auth) == "Authentication required"

    def test_configuration_error(self) -> None:
        error = ConfigurationError("invalid", errors=["x"])

        assert error.errors == ["x"]
        assert not error.recoverable

    def test_retry_count(self) -> None:
        error = PollFetchError("timeout")
        error.retry_count = 3

        assert error.retry_count == 3
        assert error.context == {}
