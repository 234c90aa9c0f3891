"""
Candle Aggregation

Buckets raw price samples into OHLC candles and maintains the bounded,
live-updated candle series of the active timeframe.
"""

from dataflow.candle_aggregation.aggregator import (
    CandleBuilder,
    CandleSeries,
    bucket_samples,
    compute_price_range,
    generate_synthetic_series,
    normalize_candles,
)

__all__ = [
    "CandleBuilder",
    "CandleSeries",
    "bucket_samples",
    "compute_price_range",
    "generate_synthetic_series",
    "normalize_candles",
]
