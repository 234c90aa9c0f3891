"""
Chart Service - Typed Message Catalog

Data types and errors flowing between the price providers, the aggregation
engine and the view layer.
"""

from schemas.market_data import (
    Candle,
    ChartSnapshot,
    PriceHistory,
    PriceRange,
    PriceSample,
    SpotPrice,
)
from schemas.errors import (
    ChartError,
    DataUnavailable,
    InvalidData,
    InvalidTimeframe,
    ProviderError,
)

__all__ = [
    "Candle",
    "ChartSnapshot",
    "PriceHistory",
    "PriceRange",
    "PriceSample",
    "SpotPrice",
    "ChartError",
    "DataUnavailable",
    "InvalidData",
    "InvalidTimeframe",
    "ProviderError",
]
