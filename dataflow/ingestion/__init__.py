"""
Price-Source Ingestion

Market-data providers, response cache and the gateway that chains them.
"""

from dataflow.ingestion.cache import TTLCache
from dataflow.ingestion.gateway import PriceSourceGateway
from dataflow.ingestion.providers import BinanceProvider, CoinGeckoProvider

__all__ = ["TTLCache", "PriceSourceGateway", "BinanceProvider", "CoinGeckoProvider"]
