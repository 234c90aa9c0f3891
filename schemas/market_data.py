"""
Market Data Types

Core market data types used throughout the chart service.
These types travel from the price providers through the aggregation
engine to the view layer (NATS snapshots, HTTP responses).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple
import json


def round_price(price: float) -> float:
    """Round a price to 2 decimals for display/storage consistency"""
    return round(float(price), 2)


def ms_to_datetime(timestamp_ms: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime"""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)


@dataclass(frozen=True)
class PriceSample:
    """Raw timestamped price point from a provider"""
    timestamp: int  # ms since epoch
    price: float


@dataclass
class Candle:
    """OHLC candle data for one fixed time bucket"""
    timestamp: int  # ms since epoch, start of the bucket
    open: float
    high: float
    low: float
    close: float

    @property
    def time(self) -> datetime:
        """Bucket start as UTC datetime"""
        return ms_to_datetime(self.timestamp)

    def copy(self) -> "Candle":
        return Candle(
            timestamp=self.timestamp,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.close,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "timestamp": self.timestamp,
            "time": self.time.isoformat(),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
        }

    def to_json(self) -> str:
        """Serialize to JSON string"""
        return json.dumps(self.to_dict())


@dataclass(frozen=True)
class PriceRange:
    """Visible price range of a series (padded extremes)"""
    min: float
    max: float

    def to_dict(self) -> dict:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class SpotPrice:
    """Current spot price with optional 24h statistics"""
    price: float
    change_24h: Optional[float] = None
    volume_24h: Optional[float] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "price": self.price,
            "change_24h": self.change_24h,
            "volume_24h": self.volume_24h,
        }

    def to_json(self) -> str:
        """Serialize to JSON string"""
        return json.dumps(self.to_dict())


@dataclass(frozen=True)
class PriceHistory:
    """
    Result of a historical fetch.

    The primary provider answers with raw samples that still need bucketing,
    the secondary provider answers with native OHLC candles.
    """
    source: str
    samples: Tuple[PriceSample, ...] = ()
    candles: Tuple[Candle, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.samples and not self.candles


@dataclass(frozen=True)
class ChartSnapshot:
    """Read-only copy of the candle series handed to the view layer"""
    timeframe: str
    candles: Tuple[Candle, ...] = field(default_factory=tuple)
    price_range: Optional[PriceRange] = None
    degraded: bool = False

    @property
    def last_candle(self) -> Optional[Candle]:
        return self.candles[-1] if self.candles else None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "timeframe": self.timeframe,
            "degraded": self.degraded,
            "count": len(self.candles),
            "price_range": self.price_range.to_dict() if self.price_range else None,
            "candles": [c.to_dict() for c in self.candles],
        }

    def to_json(self) -> str:
        """Serialize to JSON string"""
        return json.dumps(self.to_dict())
