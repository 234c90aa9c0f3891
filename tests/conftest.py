"""Shared test fixtures and utilities."""

import random
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from engine.config.loader import ChartConfig
from engine.config.timeframes import TimeframeConfig, TimeframeRegistry
from schemas.market_data import Candle, PriceHistory, PriceSample, SpotPrice

# 2025-01-01 12:00:00 UTC, aligned to minute and hour buckets
BASE_MS = 1735732800000
MINUTE_MS = 60_000


class FakeClock:
    """Manually advanced clock returning epoch milliseconds."""

    def __init__(self, now_ms: int = BASE_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


class FakeMonotonic:
    """Manually advanced monotonic clock in seconds."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_candle(
    timestamp: int,
    open_price: float,
    high: float,
    low: float,
    close: float,
) -> Candle:
    """Helper to create a candle with positional prices."""
    return Candle(timestamp=timestamp, open=open_price, high=high, low=low, close=close)


def make_samples(points: List[tuple]) -> List[PriceSample]:
    """Helper to create samples from (timestamp, price) tuples."""
    return [PriceSample(timestamp=ts, price=price) for ts, price in points]


def make_view() -> MagicMock:
    """Create a mock ChartView recording every call."""
    view = MagicMock()
    view.render = AsyncMock()
    view.update_status = AsyncMock()
    view.update_price = AsyncMock()
    return view


def make_gateway(
    history: Optional[PriceHistory] = None,
    spot: Optional[SpotPrice] = None,
) -> MagicMock:
    """Create a mock PriceSourceGateway."""
    gateway = MagicMock()
    gateway.fetch_history = AsyncMock(return_value=history)
    gateway.fetch_spot = AsyncMock(return_value=spot)
    return gateway


def coingecko_range_payload(points: List[tuple]) -> dict:
    """Mimic a CoinGecko market_chart/range response."""
    return {
        "prices": [[ts, price] for ts, price in points],
        "market_caps": [],
        "total_volumes": [],
    }


def coingecko_spot_payload(price: float, change: float = 1.25, volume: float = 3.2e10) -> dict:
    """Mimic a CoinGecko simple/price response."""
    return {"bitcoin": {"usd": price, "usd_24h_change": change, "usd_24h_vol": volume}}


def binance_klines_payload(candles: List[tuple]) -> list:
    """Mimic a Binance klines response from (open_time, o, h, l, c) tuples."""
    return [
        [ts, f"{o:.2f}", f"{h:.2f}", f"{l:.2f}", f"{c:.2f}", "12.5", ts + MINUTE_MS - 1,
         "0", 100, "0", "0", "0"]
        for ts, o, h, l, c in candles
    ]


@pytest.fixture
def registry() -> TimeframeRegistry:
    """Default timeframe registry."""
    return TimeframeRegistry()


@pytest.fixture
def one_minute(registry) -> TimeframeConfig:
    return registry.get("1m")


@pytest.fixture
def small_timeframe() -> TimeframeConfig:
    """1-minute buckets with a 3-candle window, for eviction tests."""
    return TimeframeConfig(id="1m", bucket_minutes=1, max_candles=3, provider_interval="1m")


@pytest.fixture
def chart_config() -> ChartConfig:
    return ChartConfig(update_frequency=10.0, resize_debounce=0.25)


@pytest.fixture
def sample_history() -> PriceHistory:
    """Primary-provider history spanning three 1-minute buckets."""
    return PriceHistory(
        source="coingecko",
        samples=tuple(make_samples([
            (BASE_MS, 64000.0),
            (BASE_MS + 20_000, 64100.0),
            (BASE_MS + 40_000, 63950.0),
            (BASE_MS + MINUTE_MS, 63990.0),
            (BASE_MS + MINUTE_MS + 30_000, 64050.0),
            (BASE_MS + 2 * MINUTE_MS, 64020.0),
        ])),
    )


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(42)
