"""
Market-Data Providers

Adapters for the two public APIs the chart reads from:
- CoinGeckoProvider (primary): price-series range query and spot price
- BinanceProvider (secondary): native OHLC klines, used only as fallback

Providers make exactly one request per call and raise ProviderError or
InvalidData on failure. Fallback decisions belong to the gateway.
"""

import logging
import math
from typing import Any, List

from dataflow.adapters.http_client import HttpClient
from engine.config.loader import ProviderConfig
from engine.config.timeframes import TimeframeConfig
from schemas.errors import InvalidData
from schemas.market_data import Candle, PriceSample, SpotPrice

logger = logging.getLogger(__name__)


def _as_price(value: Any, provider: str) -> float:
    """Parse a provider price (number or numeric string)"""
    if isinstance(value, bool):
        raise InvalidData(f"Invalid price value: {value!r}", provider=provider)
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise InvalidData(f"Invalid price value: {value!r}", provider=provider) from None
    if not math.isfinite(price) or price <= 0:
        raise InvalidData(f"Invalid price value: {value!r}", provider=provider)
    return price


class CoinGeckoProvider:
    """Primary provider: CoinGecko v3 API"""

    name = "coingecko"

    def __init__(self, http: HttpClient, config: ProviderConfig):
        self.http = http
        self.base_url = config.primary_url.rstrip("/")
        self.coin_id = config.coin_id
        self.vs_currency = config.vs_currency

    async def fetch_price_series(
        self, timeframe: TimeframeConfig, now_s: int
    ) -> List[PriceSample]:
        """
        Fetch raw price samples covering interval_count buckets up to now.

        Args:
            timeframe: Active timeframe
            now_s: Current time in epoch seconds

        Returns:
            List of PriceSample in provider order
        """
        start_s = now_s - timeframe.lookback_seconds
        url = f"{self.base_url}/coins/{self.coin_id}/market_chart/range"
        payload = await self.http.get_json(
            url,
            params={"vs_currency": self.vs_currency, "from": start_s, "to": now_s},
            provider=self.name,
        )
        return self.parse_price_series(payload)

    def parse_price_series(self, payload: Any) -> List[PriceSample]:
        """Parse {"prices": [[ms, price], ...]} into samples"""
        prices = payload.get("prices") if isinstance(payload, dict) else None
        if not isinstance(prices, list) or not prices:
            raise InvalidData("Missing or empty price series", provider=self.name)

        samples = []
        for row in prices:
            try:
                timestamp, price = row[0], row[1]
                samples.append(
                    PriceSample(timestamp=int(timestamp), price=_as_price(price, self.name))
                )
            except (TypeError, ValueError, IndexError, KeyError, OverflowError):
                raise InvalidData(f"Malformed price row: {row!r}", provider=self.name) from None

        logger.debug(f"Parsed {len(samples)} price samples from {self.name}")
        return samples

    async def fetch_spot(self) -> SpotPrice:
        """Fetch current price with 24h change and volume"""
        url = f"{self.base_url}/simple/price"
        payload = await self.http.get_json(
            url,
            params={
                "ids": self.coin_id,
                "vs_currencies": self.vs_currency,
                "include_24hr_change": "true",
                "include_24hr_vol": "true",
            },
            provider=self.name,
        )
        return self.parse_spot(payload)

    def parse_spot(self, payload: Any) -> SpotPrice:
        """Parse {"bitcoin": {"usd": p, "usd_24h_change": c, "usd_24h_vol": v}}"""
        coin = payload.get(self.coin_id) if isinstance(payload, dict) else None
        if not isinstance(coin, dict) or not coin.get(self.vs_currency):
            raise InvalidData("Invalid current price payload", provider=self.name)

        try:
            change = float(coin.get(f"{self.vs_currency}_24h_change") or 0)
            volume = float(coin.get(f"{self.vs_currency}_24h_vol") or 0)
        except (TypeError, ValueError):
            raise InvalidData("Invalid 24h statistics", provider=self.name) from None

        return SpotPrice(
            price=_as_price(coin[self.vs_currency], self.name),
            change_24h=change,
            volume_24h=volume,
        )


class BinanceProvider:
    """Secondary provider: Binance spot klines"""

    name = "binance"

    def __init__(self, http: HttpClient, config: ProviderConfig, max_limit: int = 500):
        self.http = http
        self.base_url = config.secondary_url.rstrip("/")
        self.symbol = config.secondary_symbol
        self.max_limit = max_limit

    async def fetch_klines(self, timeframe: TimeframeConfig) -> List[Candle]:
        """Fetch up to min(interval_count, max_limit) native candles"""
        limit = min(timeframe.interval_count, self.max_limit)
        payload = await self.http.get_json(
            f"{self.base_url}/klines",
            params={
                "symbol": self.symbol,
                "interval": timeframe.provider_interval,
                "limit": limit,
            },
            provider=self.name,
        )
        return self.parse_klines(payload)

    def parse_klines(self, payload: Any) -> List[Candle]:
        """Parse [[openTime, "o", "h", "l", "c", ...], ...] into candles"""
        if not isinstance(payload, list) or not payload:
            raise InvalidData("Missing or empty klines", provider=self.name)

        candles = []
        for row in payload:
            try:
                open_time, open_, high, low, close = row[0], row[1], row[2], row[3], row[4]
                candles.append(
                    Candle(
                        timestamp=int(open_time),
                        open=_as_price(open_, self.name),
                        high=_as_price(high, self.name),
                        low=_as_price(low, self.name),
                        close=_as_price(close, self.name),
                    )
                )
            except (TypeError, ValueError, IndexError, KeyError, OverflowError):
                raise InvalidData(f"Malformed kline: {row!r}", provider=self.name) from None

        logger.debug(f"Parsed {len(candles)} klines from {self.name}")
        return candles
