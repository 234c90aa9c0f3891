"""
Timeframe Registry

Static table mapping a timeframe identifier to its bucket width, retained
window size and the secondary provider's interval code.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping

from schemas.errors import InvalidTimeframe


@dataclass(frozen=True)
class TimeframeConfig:
    """
    Immutable timeframe entry.

    Attributes:
        id: Timeframe identifier (e.g., "1m", "1h")
        bucket_minutes: Width of one candle bucket
        max_candles: Retained window size, also the number of buckets
            requested from providers and generated synthetically
        provider_interval: Interval code of the secondary (klines) provider
    """
    id: str
    bucket_minutes: int
    max_candles: int
    provider_interval: str

    @property
    def bucket_width_ms(self) -> int:
        return self.bucket_minutes * 60 * 1000

    @property
    def interval_count(self) -> int:
        return self.max_candles

    @property
    def lookback_seconds(self) -> int:
        """Length of the history window requested from the primary provider"""
        return self.bucket_minutes * self.interval_count * 60

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bucket_minutes": self.bucket_minutes,
            "max_candles": self.max_candles,
            "provider_interval": self.provider_interval,
        }


DEFAULT_TIMEFRAMES: Dict[str, TimeframeConfig] = {
    "1m": TimeframeConfig("1m", 1, 60, "1m"),
    "5m": TimeframeConfig("5m", 5, 60, "5m"),
    "15m": TimeframeConfig("15m", 15, 60, "15m"),
    "1h": TimeframeConfig("1h", 60, 48, "1h"),
    "4h": TimeframeConfig("4h", 240, 48, "4h"),
    "1d": TimeframeConfig("1d", 1440, 30, "1d"),
}


class TimeframeRegistry:
    """
    Read-only lookup of known timeframes.

    Example usage:
        registry = TimeframeRegistry()
        tf = registry.get("5m")
        tf.bucket_width_ms  # 300000
    """

    def __init__(self, timeframes: Mapping[str, TimeframeConfig] = None):
        entries = dict(timeframes if timeframes is not None else DEFAULT_TIMEFRAMES)
        if not entries:
            raise ValueError("Timeframe registry cannot be empty")
        self._timeframes = MappingProxyType(entries)

    def get(self, timeframe: str) -> TimeframeConfig:
        """
        Look up a timeframe.

        Raises:
            InvalidTimeframe: If the identifier is not registered
        """
        try:
            return self._timeframes[timeframe]
        except KeyError:
            raise InvalidTimeframe(timeframe, self.ids()) from None

    def __contains__(self, timeframe: str) -> bool:
        return timeframe in self._timeframes

    def __len__(self) -> int:
        return len(self._timeframes)

    def ids(self) -> List[str]:
        return list(self._timeframes.keys())

    def values(self) -> List[TimeframeConfig]:
        return list(self._timeframes.values())
