"""Tests for the YAML config loader and the timeframe registry."""

import pytest

from engine.config.loader import ChartConfig, ConfigLoader, load_config
from engine.config.timeframes import DEFAULT_TIMEFRAMES, TimeframeConfig, TimeframeRegistry
from schemas.errors import InvalidTimeframe


def write_config(tmp_path, text: str):
    (tmp_path / "chart.yaml").write_text(text)
    return tmp_path


class TestTimeframeRegistry:
    """Tests for the timeframe table."""

    def test_defaults(self, registry):
        assert registry.ids() == ["1m", "5m", "15m", "1h", "4h", "1d"]
        assert registry.get("1h").max_candles == 48
        assert registry.get("1d").bucket_width_ms == 86_400_000
        assert registry.get("5m").interval_count == 60

    def test_unknown_id_raises(self, registry):
        with pytest.raises(InvalidTimeframe) as exc_info:
            registry.get("7m")

        assert exc_info.value.timeframe == "7m"
        assert isinstance(exc_info.value, ValueError)

    def test_contains(self, registry):
        assert "15m" in registry
        assert "2h" not in registry

    def test_is_read_only(self):
        source = dict(DEFAULT_TIMEFRAMES)
        registry = TimeframeRegistry(source)

        source["2h"] = TimeframeConfig("2h", 120, 24, "2h")

        assert "2h" not in registry
        with pytest.raises(TypeError):
            registry._timeframes["2h"] = source["2h"]

    def test_empty_registry_rejected(self):
        with pytest.raises(ValueError):
            TimeframeRegistry({})


class TestConfigLoader:
    """Tests for ConfigLoader."""

    def test_missing_file_uses_defaults(self, tmp_path):
        config, registry = ConfigLoader(tmp_path).load_chart_config()

        assert config == ChartConfig()
        assert config.update_frequency == 10.0
        assert config.cache_ttl == 30.0
        assert len(registry) == 6

    def test_loads_yaml(self, tmp_path):
        write_config(tmp_path, """
symbol: btc
default_timeframe: 1h
update_frequency: 5
providers:
  secondary_symbol: BTCUSDC
""")

        config, _ = ConfigLoader(tmp_path).load_chart_config()

        assert config.symbol == "BTC"
        assert config.default_timeframe == "1h"
        assert config.update_frequency == 5.0
        assert config.providers.secondary_symbol == "BTCUSDC"
        assert config.providers.coin_id == "bitcoin"

    def test_empty_file_uses_defaults(self, tmp_path):
        write_config(tmp_path, "")

        config, _ = ConfigLoader(tmp_path).load_chart_config()

        assert config.default_timeframe == "1m"

    def test_timeframe_override_and_addition(self, tmp_path):
        write_config(tmp_path, """
timeframes:
  - {id: 1m, bucket_minutes: 1, max_candles: 120, provider_interval: 1m}
  - {id: 2h, bucket_minutes: 120, max_candles: 24, provider_interval: 2h}
""")

        _, registry = ConfigLoader(tmp_path).load_chart_config()

        assert registry.get("1m").max_candles == 120
        assert registry.get("2h").bucket_width_ms == 120 * 60_000
        assert registry.get("5m").max_candles == 60

    def test_duplicate_override_rejected(self, tmp_path):
        write_config(tmp_path, """
timeframes:
  - {id: 3m, bucket_minutes: 3, max_candles: 60, provider_interval: 3m}
  - {id: 3m, bucket_minutes: 3, max_candles: 30, provider_interval: 3m}
""")

        with pytest.raises(ValueError, match="Duplicate timeframe"):
            ConfigLoader(tmp_path).load_chart_config()

    def test_unknown_default_timeframe_rejected(self, tmp_path):
        write_config(tmp_path, "default_timeframe: 2m\n")

        with pytest.raises(ValueError, match="not registered"):
            ConfigLoader(tmp_path).load_chart_config()

    @pytest.mark.parametrize("text", [
        "update_frequency: 0\n",
        "update_frequency: soon\n",
        "timeframes:\n  - {id: 1m, bucket_minutes: 0, max_candles: 1, provider_interval: 1m}\n",
        "symbol: [unclosed\n",
    ])
    def test_invalid_file_rejected(self, tmp_path, text):
        write_config(tmp_path, text)

        with pytest.raises(ValueError, match="Failed to load"):
            ConfigLoader(tmp_path).load_chart_config()

    def test_load_config_reads_env_dir(self, tmp_path, monkeypatch):
        write_config(tmp_path, "symbol: eth\n")
        monkeypatch.setenv("CHART_CONFIG_DIR", str(tmp_path))

        config, _ = load_config()

        assert config.symbol == "ETH"
