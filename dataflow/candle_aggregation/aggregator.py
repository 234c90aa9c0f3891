"""
Candle Aggregator

Turns raw price samples into fixed-width OHLC candles, keeps the bounded
rolling window of one timeframe and folds live ticks into its last candle.
"""

import logging
import random
from collections import OrderedDict
from typing import Iterable, List, Optional, Sequence

from engine.config.timeframes import TimeframeConfig
from schemas.errors import InvalidData
from schemas.market_data import (
    Candle,
    ChartSnapshot,
    PriceHistory,
    PriceRange,
    PriceSample,
    round_price,
)

logger = logging.getLogger(__name__)

RANGE_PADDING = 0.1
SYNTHETIC_VOLATILITY = 0.002
SYNTHETIC_START_FACTOR = 0.995


class CandleBuilder:
    """Builds a candle from the samples of one bucket"""

    def __init__(self, start_time: int):
        self.start_time = start_time
        self.open: Optional[float] = None
        self.high: Optional[float] = None
        self.low: Optional[float] = None
        self.close: Optional[float] = None

    def add_price(self, price: float) -> None:
        """Add a price; samples must arrive in time order"""
        if self.open is None:
            self.open = price
            self.high = price
            self.low = price

        self.high = max(self.high, price)
        self.low = min(self.low, price)
        self.close = price

    def is_empty(self) -> bool:
        """Check if candle has any data"""
        return self.open is None

    def build(self) -> Candle:
        """Build the final Candle object"""
        if self.is_empty():
            raise ValueError("Cannot build empty candle")

        return Candle(
            timestamp=self.start_time,
            open=round_price(self.open),
            high=round_price(self.high),
            low=round_price(self.low),
            close=round_price(self.close),
        )


def bucket_start(timestamp: int, bucket_width_ms: int) -> int:
    """Start of the bucket containing timestamp (floor division)"""
    return (timestamp // bucket_width_ms) * bucket_width_ms


def bucket_samples(samples: Sequence[PriceSample], bucket_width_ms: int) -> List[Candle]:
    """
    Bucket raw samples into OHLC candles.

    Samples are ordered by timestamp with ties kept in input order, grouped
    by bucket start, and turned into one candle per non-empty bucket.

    Args:
        samples: Raw price samples, any order
        bucket_width_ms: Bucket width in milliseconds

    Returns:
        Candles ordered by bucket start, ascending

    Raises:
        InvalidData: If samples is empty
    """
    if not samples:
        raise InvalidData("Cannot build candles from an empty sample list")
    if bucket_width_ms <= 0:
        raise ValueError(f"Bucket width must be positive, got {bucket_width_ms}")

    builders: "OrderedDict[int, CandleBuilder]" = OrderedDict()

    # sorted() is stable, so equal timestamps keep their original order
    for sample in sorted(samples, key=lambda s: s.timestamp):
        start = bucket_start(sample.timestamp, bucket_width_ms)
        builder = builders.get(start)
        if builder is None:
            builder = CandleBuilder(start)
            builders[start] = builder
        builder.add_price(sample.price)

    return [builders[start].build() for start in sorted(builders)]


def normalize_candles(candles: Iterable[Candle]) -> List[Candle]:
    """
    Round, sort and de-duplicate provider candles.

    When two candles share a timestamp the later one in input order wins.
    High/low are widened if a provider reports them inside open/close.
    """
    by_timestamp = {}
    for candle in candles:
        open_ = round_price(candle.open)
        close = round_price(candle.close)
        by_timestamp[candle.timestamp] = Candle(
            timestamp=candle.timestamp,
            open=open_,
            high=max(round_price(candle.high), open_, close),
            low=min(round_price(candle.low), open_, close),
            close=close,
        )
    return [by_timestamp[ts] for ts in sorted(by_timestamp)]


def compute_price_range(
    candles: Sequence[Candle], padding: float = RANGE_PADDING
) -> Optional[PriceRange]:
    """
    Visible price range: lowest low / highest high padded by a share of the span.

    Returns:
        PriceRange, or None for an empty series
    """
    if not candles:
        return None

    min_price = min(c.low for c in candles)
    max_price = max(c.high for c in candles)
    pad = (max_price - min_price) * padding

    return PriceRange(min=min_price - pad, max=max_price + pad)


def generate_synthetic_series(
    timeframe: TimeframeConfig,
    now_ms: int,
    base_price: float = 65000.0,
    rng: Optional[random.Random] = None,
) -> List[Candle]:
    """
    Generate placeholder candles for when every provider is unreachable.

    Produces interval_count candles, one bucket apart, the last one at now_ms.
    Prices random-walk from base_price * 0.995 with a small per-step drift.

    Args:
        timeframe: Active timeframe
        now_ms: Timestamp of the last candle
        base_price: Reference price
        rng: Random source (seed it for reproducible output)
    """
    rng = rng or random.Random()
    width = timeframe.bucket_width_ms
    count = timeframe.interval_count

    candles = []
    price = base_price * SYNTHETIC_START_FACTOR

    for i in range(count - 1, -1, -1):
        change = (rng.random() - 0.5) * SYNTHETIC_VOLATILITY

        open_ = round_price(price)
        close = round_price(open_ * (1 + change))
        high = round_price(
            max(open_, close) * (1 + rng.random() * SYNTHETIC_VOLATILITY * 0.3)
        )
        low = round_price(
            min(open_, close) * (1 - rng.random() * SYNTHETIC_VOLATILITY * 0.3)
        )

        candles.append(
            Candle(
                timestamp=now_ms - i * width,
                open=open_,
                high=max(high, open_, close),
                low=min(low, open_, close),
                close=close,
            )
        )
        price = close

    return candles


class CandleSeries:
    """
    Bounded rolling window of candles for one timeframe.

    The series owns its candles; callers get copies through snapshot().
    The price range is recomputed from scratch after every mutation.

    Example usage:
        series = CandleSeries(registry.get("1m"))
        series.load_history(history)
        series.fold_tick(price=64950.5, now_ms=now)
        snapshot = series.snapshot()
    """

    def __init__(self, timeframe: TimeframeConfig):
        self.timeframe = timeframe
        self._candles: List[Candle] = []
        self._price_range: Optional[PriceRange] = None
        self.degraded = False

    @property
    def bucket_width_ms(self) -> int:
        return self.timeframe.bucket_width_ms

    @property
    def max_candles(self) -> int:
        return self.timeframe.max_candles

    @property
    def price_range(self) -> Optional[PriceRange]:
        return self._price_range

    @property
    def last(self) -> Optional[Candle]:
        return self._candles[-1] if self._candles else None

    def __len__(self) -> int:
        return len(self._candles)

    def replace(self, candles: Sequence[Candle], degraded: bool = False) -> None:
        """Replace the whole series, keeping the newest max_candles entries"""
        kept = list(candles)[-self.max_candles:]
        self._candles = [c.copy() for c in kept]
        self.degraded = degraded
        self._update_price_range()

    def load_history(self, history: PriceHistory) -> None:
        """
        Rebuild the series from a provider history.

        Raises:
            InvalidData: If the history carries no data
        """
        if history.is_empty:
            raise InvalidData(f"Empty history from {history.source}")

        if history.samples:
            candles = bucket_samples(history.samples, self.bucket_width_ms)
        else:
            candles = normalize_candles(history.candles)

        self.replace(candles)
        logger.info(
            f"Loaded {len(self._candles)} {self.timeframe.id} candles from {history.source}"
        )

    def load_synthetic(
        self,
        now_ms: int,
        base_price: float = 65000.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Fill the series with synthetic candles and mark it degraded"""
        candles = generate_synthetic_series(self.timeframe, now_ms, base_price, rng)
        self.replace(candles, degraded=True)
        logger.warning(
            f"Using {len(self._candles)} synthetic {self.timeframe.id} candles "
            f"(base price {base_price})"
        )

    def fold_tick(self, price: float, now_ms: int) -> bool:
        """
        Fold a live price into the series.

        Crossing the bucket boundary appends a new candle opened at the last
        close (evicting the oldest on overflow); otherwise the last candle is
        extended in place.

        Returns:
            True if a new candle was appended
        """
        last = self.last
        if last is None:
            logger.debug("Ignoring live tick on empty series")
            return False

        price = round_price(price)
        appended = False

        if now_ms - last.timestamp >= self.bucket_width_ms:
            self._candles.append(
                Candle(
                    timestamp=now_ms,
                    open=last.close,
                    high=max(last.close, price),
                    low=min(last.close, price),
                    close=price,
                )
            )
            if len(self._candles) > self.max_candles:
                evicted = self._candles.pop(0)
                logger.debug(f"Evicted {self.timeframe.id} candle @ {evicted.timestamp}")
            appended = True
        else:
            last.close = price
            last.high = max(last.high, price)
            last.low = min(last.low, price)

        self._update_price_range()
        return appended

    def snapshot(self) -> ChartSnapshot:
        """Read-only copy for the view layer"""
        return ChartSnapshot(
            timeframe=self.timeframe.id,
            candles=tuple(c.copy() for c in self._candles),
            price_range=self._price_range,
            degraded=self.degraded,
        )

    def _update_price_range(self) -> None:
        self._price_range = compute_price_range(self._candles)
