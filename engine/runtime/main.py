"""
Live Chart - Main Entry Point

Starts one live BTC chart: loads config, connects the view (NATS when
reachable, log output otherwise), loads history and keeps the last candle
updated until interrupted.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional, Tuple

from dataflow.adapters.http_client import HttpClient, HttpConfig
from dataflow.adapters.nats_client import NatsClient, NatsConfig
from dataflow.ingestion.gateway import PriceSourceGateway
from engine.config.loader import ChartConfig, load_config
from engine.config.timeframes import TimeframeRegistry
from engine.runtime.chart import LiveChart
from engine.runtime.view import ChartView, LoggingChartView, NatsChartView

logger = logging.getLogger(__name__)


async def create_view(symbol: str) -> Tuple[ChartView, Optional[NatsClient]]:
    """
    Connect the NATS view, or fall back to the logging view.

    Returns:
        (view, nats_client) - nats_client is None in standalone mode
    """
    nats_client = NatsClient(NatsConfig.from_env())
    try:
        await nats_client.connect()
    except Exception as e:
        logger.warning(f"Failed to connect to NATS: {e}. Running in standalone mode.")
        return LoggingChartView(symbol), None
    return NatsChartView(nats_client, symbol), nats_client


def build_chart(
    config: ChartConfig,
    registry: TimeframeRegistry,
    http: HttpClient,
    view: ChartView,
) -> LiveChart:
    """Wire gateway and chart together"""
    gateway = PriceSourceGateway.from_config(http, config)
    return LiveChart(gateway=gateway, registry=registry, view=view, config=config)


def http_config_for(config: ChartConfig) -> HttpConfig:
    """HTTP settings from the environment, with the configured deadline"""
    http_config = HttpConfig.from_env()
    if "HTTP_TIMEOUT" not in os.environ:
        http_config.timeout = config.request_timeout
    return http_config


async def main():
    """
    Main entry point for the live chart.

    Environment Variables:
        CHART_CONFIG_DIR: Directory with chart.yaml (default: "config")
        NATS_SERVERS: NATS server URLs (default: "nats://localhost:4222")
        NATS_CLIENT_NAME: NATS client name (default: "live-btc-chart")
        HTTP_TIMEOUT: Provider request deadline in seconds
    """
    config, registry = load_config(Path(os.getenv("CHART_CONFIG_DIR", "config")))

    logger.info("=" * 60)
    logger.info("Live Chart Starting")
    logger.info("=" * 60)
    logger.info(f"Symbol: {config.symbol}")
    logger.info(f"Timeframes: {registry.ids()}")

    view, nats_client = await create_view(config.symbol)
    http = HttpClient(http_config_for(config))
    await http.connect()
    chart = build_chart(config, registry, http, view)

    try:
        await chart.start()
        logger.info("Chart running. Press Ctrl+C to stop")
        while True:
            await asyncio.sleep(60)
            kind, message = chart.status
            logger.info(
                f"Status [{config.symbol} {chart.current_timeframe.id}]: "
                f"{kind.value} - {message}, {len(chart.get_snapshot().candles)} candles"
            )
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Shutting down...")
    finally:
        await chart.stop()
        await http.close()
        if nats_client:
            await nats_client.close()
        logger.info("Chart stopped")


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
