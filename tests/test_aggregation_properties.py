"""
Property-based tests for bucketing, price range and live-tick folding.

Uses hypothesis to check the candle invariants over arbitrary sample sets
and tick sequences.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from dataflow.candle_aggregation.aggregator import (
    CandleSeries,
    bucket_samples,
    bucket_start,
    compute_price_range,
)
from engine.config.timeframes import TimeframeConfig
from schemas.market_data import Candle, PriceSample, round_price

MINUTE_MS = 60_000

prices = st.floats(min_value=1.0, max_value=1_000_000.0, allow_nan=False, allow_infinity=False)

samples = st.lists(
    st.builds(
        PriceSample,
        timestamp=st.integers(min_value=0, max_value=30 * 24 * 60 * MINUTE_MS),
        price=prices,
    ),
    min_size=1,
    max_size=200,
)

bucket_minutes = st.sampled_from([1, 5, 15, 60, 240, 1440])

# (ms since the previous tick, price)
ticks = st.lists(
    st.tuples(st.integers(min_value=0, max_value=3 * MINUTE_MS), prices),
    min_size=1,
    max_size=100,
)


def timeframe(minutes: int, max_candles: int) -> TimeframeConfig:
    return TimeframeConfig(
        id=f"{minutes}m",
        bucket_minutes=minutes,
        max_candles=max_candles,
        provider_interval=f"{minutes}m",
    )


def assert_ohlc(candle: Candle) -> None:
    assert candle.low <= min(candle.open, candle.close)
    assert candle.high >= max(candle.open, candle.close)


class TestBucketingProperties:
    """Invariants of bucket_samples."""

    @given(points=samples, minutes=bucket_minutes)
    @settings(max_examples=200, deadline=None)
    def test_buckets_strictly_ascending_and_aligned(self, points, minutes):
        width = minutes * MINUTE_MS

        candles = bucket_samples(points, width)

        timestamps = [c.timestamp for c in candles]
        assert all(a < b for a, b in zip(timestamps, timestamps[1:]))
        assert all(ts % width == 0 for ts in timestamps)
        assert set(timestamps) == {bucket_start(p.timestamp, width) for p in points}

    @given(points=samples, minutes=bucket_minutes)
    @settings(max_examples=200, deadline=None)
    def test_every_candle_holds_ohlc_invariants(self, points, minutes):
        for candle in bucket_samples(points, minutes * MINUTE_MS):
            assert_ohlc(candle)

    @given(points=samples, minutes=bucket_minutes)
    @settings(max_examples=200, deadline=None)
    def test_extremes_match_bucket_samples(self, points, minutes):
        width = minutes * MINUTE_MS

        for candle in bucket_samples(points, width):
            in_bucket = [
                round_price(p.price) for p in points
                if bucket_start(p.timestamp, width) == candle.timestamp
            ]
            assert candle.high == max(in_bucket)
            assert candle.low == min(in_bucket)


class TestPriceRangeProperties:
    """Invariants of compute_price_range."""

    @given(points=samples)
    @settings(max_examples=200, deadline=None)
    def test_range_covers_every_candle(self, points):
        candles = bucket_samples(points, MINUTE_MS)

        price_range = compute_price_range(candles)

        assert price_range.min <= min(c.low for c in candles)
        assert price_range.max >= max(c.high for c in candles)


class TestFoldProperties:
    """Invariants of CandleSeries.fold_tick over arbitrary tick sequences."""

    @given(
        seed_price=prices,
        steps=ticks,
        minutes=st.sampled_from([1, 5]),
        max_candles=st.integers(min_value=1, max_value=5),
    )
    @settings(max_examples=200, deadline=None)
    def test_fold_keeps_series_invariants(self, seed_price, steps, minutes, max_candles):
        tf = timeframe(minutes, max_candles)
        seed = round_price(seed_price)
        series = CandleSeries(tf)
        series.replace([Candle(timestamp=0, open=seed, high=seed, low=seed, close=seed)])

        now = 0
        for delta, price in steps:
            now += delta
            before = series.last.copy()

            appended = series.fold_tick(price, now)

            last = series.last
            if appended:
                assert last.open == before.close
                assert last.timestamp == now
                assert now - before.timestamp >= tf.bucket_width_ms
            else:
                assert last.open == before.open
                assert last.timestamp == before.timestamp
                assert last.high >= before.high
                assert last.low <= before.low
            assert last.close == round_price(price)

            candles = series.snapshot().candles
            assert len(candles) <= max_candles
            timestamps = [c.timestamp for c in candles]
            assert all(a < b for a, b in zip(timestamps, timestamps[1:]))
            for candle in candles:
                assert_ohlc(candle)
            assert series.price_range.min <= min(c.low for c in candles)
            assert series.price_range.max >= max(c.high for c in candles)
