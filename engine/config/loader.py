"""
Config Loader

Loads the chart configuration from an optional YAML file.
Merges timeframe overrides over the default registry.
"""

import yaml
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, Field, field_validator
import logging

from .timeframes import DEFAULT_TIMEFRAMES, TimeframeConfig, TimeframeRegistry

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "chart.yaml"


class ProviderConfig(BaseModel):
    """Market-data provider endpoints"""
    primary_url: str = "https://api.coingecko.com/api/v3"
    secondary_url: str = "https://api.binance.com/api/v3"
    coin_id: str = "bitcoin"
    vs_currency: str = "usd"
    secondary_symbol: str = "BTCUSDT"


class TimeframeEntry(BaseModel):
    """Timeframe override as written in YAML"""
    id: str
    bucket_minutes: int = Field(gt=0)
    max_candles: int = Field(gt=0)
    provider_interval: str


class ChartConfig(BaseModel):
    """Complete chart configuration"""
    symbol: str = "BTC"
    default_timeframe: str = "1m"
    update_frequency: float = Field(default=10.0, gt=0)
    resize_debounce: float = Field(default=0.25, ge=0)
    cache_ttl: float = Field(default=30.0, ge=0)
    request_timeout: float = Field(default=10.0, gt=0)
    secondary_limit: int = Field(default=500, gt=0)
    fallback_base_price: float = Field(default=65000.0, gt=0)
    providers: ProviderConfig = Field(default_factory=ProviderConfig)
    timeframes: List[TimeframeEntry] = Field(default_factory=list)

    @field_validator("symbol")
    @classmethod
    def symbol_must_be_upper(cls, v: str) -> str:
        return v.strip().upper()


class ConfigLoader:
    """
    Loads chart config from YAML.

    The loader:
    1. Reads <config_dir>/chart.yaml if it exists (defaults otherwise)
    2. Validates it with pydantic
    3. Merges timeframe overrides over the default registry
    4. Checks the default timeframe is registered

    Example usage:
        loader = ConfigLoader(Path("config"))
        config, registry = loader.load_chart_config()
    """

    def __init__(self, config_dir: Path):
        """
        Initialize loader with config directory.

        Args:
            config_dir: Directory holding chart.yaml
        """
        self.config_dir = Path(config_dir)
        logger.info(f"Initialized ConfigLoader with config_dir: {self.config_dir}")

    def load_chart_config(self) -> Tuple[ChartConfig, TimeframeRegistry]:
        """
        Load chart config and build the timeframe registry.

        Returns:
            (ChartConfig, TimeframeRegistry)

        Raises:
            ValueError: If the file is invalid, overrides conflict, or the
                default timeframe is unknown
        """
        config_file = self.config_dir / CONFIG_FILENAME

        if config_file.exists():
            config = self._load_file(config_file)
        else:
            logger.info(f"No {CONFIG_FILENAME} in {self.config_dir}, using defaults")
            config = ChartConfig()

        registry = TimeframeRegistry(self._merge_timeframes(config.timeframes))

        if config.default_timeframe not in registry:
            raise ValueError(
                f"Default timeframe '{config.default_timeframe}' is not registered. "
                f"Known: {registry.ids()}"
            )

        logger.info(
            f"Loaded chart config for {config.symbol}: "
            f"{len(registry)} timeframes, default {config.default_timeframe}"
        )
        return config, registry

    def _load_file(self, config_file: Path) -> ChartConfig:
        try:
            with open(config_file) as f:
                raw = yaml.safe_load(f) or {}
            return ChartConfig(**raw)
        except Exception as e:
            logger.error(f"Failed to load {config_file}: {e}")
            raise ValueError(f"Failed to load {config_file}: {e}")

    def _merge_timeframes(
        self, overrides: List[TimeframeEntry]
    ) -> Dict[str, TimeframeConfig]:
        """
        Merge overrides over the defaults, validating uniqueness.

        Raises:
            ValueError: If the same id is overridden twice
        """
        merged = dict(DEFAULT_TIMEFRAMES)
        seen = set()

        for entry in overrides:
            if entry.id in seen:
                raise ValueError(f"Duplicate timeframe id: {entry.id}")
            seen.add(entry.id)

            merged[entry.id] = TimeframeConfig(
                id=entry.id,
                bucket_minutes=entry.bucket_minutes,
                max_candles=entry.max_candles,
                provider_interval=entry.provider_interval,
            )
            logger.debug(f"Timeframe {entry.id} overridden from config")

        return merged


def load_config(config_dir: Optional[Path] = None) -> Tuple[ChartConfig, TimeframeRegistry]:
    """Load config from config_dir, or from CHART_CONFIG_DIR (default: "config")"""
    import os
    if config_dir is None:
        config_dir = Path(os.getenv("CHART_CONFIG_DIR", "config"))
    return ConfigLoader(config_dir).load_chart_config()
