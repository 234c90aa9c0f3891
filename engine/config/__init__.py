"""
Config Module

Timeframe registry and YAML chart configuration loading.
"""

from .loader import ChartConfig, ConfigLoader, ProviderConfig, load_config
from .timeframes import DEFAULT_TIMEFRAMES, TimeframeConfig, TimeframeRegistry

__all__ = [
    "ChartConfig",
    "ConfigLoader",
    "ProviderConfig",
    "load_config",
    "DEFAULT_TIMEFRAMES",
    "TimeframeConfig",
    "TimeframeRegistry",
]
