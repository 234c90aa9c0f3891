"""
Price-Source Gateway

Fetches price history and spot prices for the chart.

History fallback chain:
1. Primary provider (raw price samples over a time range)
2. Secondary provider (native klines)
3. DataUnavailable -> the caller decides (synthetic data, offline status)

Spot prices come from the primary provider only; failures propagate.
Every logical query is cached for a short time-to-live.
"""

import logging
import time
from typing import Callable, Optional

from dataflow.adapters.http_client import HttpClient
from dataflow.ingestion.cache import TTLCache
from dataflow.ingestion.providers import BinanceProvider, CoinGeckoProvider
from engine.config.loader import ChartConfig
from engine.config.timeframes import TimeframeConfig
from schemas.errors import DataUnavailable, ProviderError
from schemas.market_data import PriceHistory, SpotPrice

logger = logging.getLogger(__name__)

HISTORY_QUERY = "historical"
SPOT_QUERY = "current-price"


class PriceSourceGateway:
    """
    Provider fallback chain with response caching.

    Example usage:
        http = HttpClient(HttpConfig(timeout=10.0))
        gateway = PriceSourceGateway.from_config(http, ChartConfig())

        history = await gateway.fetch_history(registry.get("1m"))
        spot = await gateway.fetch_spot()
    """

    def __init__(
        self,
        primary: CoinGeckoProvider,
        secondary: BinanceProvider,
        cache: Optional[TTLCache] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            primary: Range/spot provider tried first
            secondary: Klines provider used when the primary fails
            cache: Response cache (30s TTL when omitted)
            clock: Wall clock in epoch seconds, for the history range
        """
        self.primary = primary
        self.secondary = secondary
        self.cache = cache if cache is not None else TTLCache(ttl=30.0)
        self._clock = clock

    @classmethod
    def from_config(cls, http: HttpClient, config: ChartConfig) -> "PriceSourceGateway":
        return cls(
            primary=CoinGeckoProvider(http, config.providers),
            secondary=BinanceProvider(
                http, config.providers, max_limit=config.secondary_limit
            ),
            cache=TTLCache(ttl=config.cache_ttl),
        )

    async def fetch_history(self, timeframe: TimeframeConfig) -> PriceHistory:
        """
        Fetch price history for a timeframe.

        Returns:
            PriceHistory with samples (primary) or candles (secondary)

        Raises:
            DataUnavailable: If both providers fail
        """
        cache_key = (HISTORY_QUERY, timeframe.id)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {cache_key}")
            return cached

        errors = []

        try:
            samples = await self.primary.fetch_price_series(
                timeframe, now_s=int(self._clock())
            )
            history = PriceHistory(source=self.primary.name, samples=tuple(samples))
        except ProviderError as e:
            errors.append(e)
            logger.warning(
                f"{self.primary.name} failed for {timeframe.id} ({e}), "
                f"trying {self.secondary.name}..."
            )
            try:
                candles = await self.secondary.fetch_klines(timeframe)
                history = PriceHistory(source=self.secondary.name, candles=tuple(candles))
            except ProviderError as e2:
                errors.append(e2)
                logger.error(f"All providers failed for {timeframe.id}: {e2}")
                raise DataUnavailable(
                    f"Failed to fetch historical data for {timeframe.id}", errors=errors
                ) from e2

        self.cache.set(cache_key, history)
        logger.info(
            f"Fetched {timeframe.id} history from {history.source}: "
            f"{len(history.samples)} samples, {len(history.candles)} candles"
        )
        return history

    async def fetch_spot(self) -> SpotPrice:
        """
        Fetch the current spot price.

        Raises:
            ProviderError: If the primary provider fails (no fallback here)
        """
        cache_key = (SPOT_QUERY, None)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Cache hit for current price")
            return cached

        spot = await self.primary.fetch_spot()
        self.cache.set(cache_key, spot)
        return spot
