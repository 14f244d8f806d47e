"""Default configuration parameters for the quote sync engine."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class ApiParams:
    """REST API connection parameters."""
    base_url: str = "http://localhost:8000/api"
    request_timeout_seconds: float = 10.0


@dataclass(frozen=True)
class EndpointParams:
    """REST endpoint paths relative to the API base URL."""
    prices: str = "/instruments/prices"
    portfolio: str = "/portfolio"
    candles: str = "/candles/{symbol}"
    trade: str = "/trade/{kind}"
    system: str = "/system"
    leaderboard: str = "/admin/leaderboard"


@dataclass(frozen=True)
class PushParams:
    """Push channel parameters. An empty url disables the push channel."""
    url: Optional[str] = None
    subscribe_message: Optional[dict[str, Any]] = None   # Sent once at channel open
    connect_timeout_seconds: float = 10.0
    heartbeat_seconds: Optional[float] = 20.0


@dataclass(frozen=True)
class PollParams:
    """Polling fallback parameters."""
    interval_seconds: float = 4.0                    # Fixed interval between snapshot fetches
    timeout_seconds: float = 3.0                     # Fetch slower than this counts as failed
    prune_missing: bool = True                       # Snapshot drops symbols it no longer lists


@dataclass(frozen=True)
class HistoryParams:
    """Rolling price history parameters."""
    window_size: int = 20


@dataclass(frozen=True)
class ViewParams:
    """Derived view parameters."""
    default_sort_key: str = "symbol"
    default_sort_direction: str = "asc"
    toggle_default_direction: str = "desc"           # Direction applied when switching keys
    percent_places: int = 2


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    api: ApiParams = field(default_factory=ApiParams)
    endpoints: EndpointParams = field(default_factory=EndpointParams)
    push: PushParams = field(default_factory=PushParams)
    poll: PollParams = field(default_factory=PollParams)
    history: HistoryParams = field(default_factory=HistoryParams)
    view: ViewParams = field(default_factory=ViewParams)


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        api=ApiParams(),
        endpoints=EndpointParams(),
        push=PushParams(),
        poll=PollParams(),
        history=HistoryParams(),
        view=ViewParams(),
    )
