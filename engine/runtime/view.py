"""
Chart Views

The rendering layer is an external collaborator. The chart talks to it
through the ChartView protocol; this module ships two adapters:
- LoggingChartView: standalone mode, writes updates to the log
- NatsChartView: publishes updates to NATS for the browser bridge
"""

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Protocol

from dataflow.adapters.nats_client import NatsClient, Topics
from schemas.market_data import ChartSnapshot, SpotPrice

logger = logging.getLogger(__name__)


class StatusKind(str, Enum):
    """Status shown next to the chart"""
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class ChartView(Protocol):
    """
    Protocol for chart views.

    Views receive read-only snapshots and must never mutate them. A view
    failing to render is its own problem: the chart logs and carries on.
    """

    async def render(self, snapshot: ChartSnapshot) -> None:
        """Redraw candles and price range"""
        ...

    async def update_status(self, kind: StatusKind, message: str) -> None:
        """Show connection/data status"""
        ...

    async def update_price(self, spot: SpotPrice) -> None:
        """Refresh the statistics panel (price, 24h change, 24h volume)"""
        ...


class LoggingChartView:
    """View used when no browser bridge is reachable"""

    def __init__(self, symbol: str = "BTC"):
        self.symbol = symbol

    async def render(self, snapshot: ChartSnapshot) -> None:
        last = snapshot.last_candle
        if last is None:
            logger.info(f"[{self.symbol} {snapshot.timeframe}] no candles")
            return
        logger.info(
            f"[{self.symbol} {snapshot.timeframe}] {len(snapshot.candles)} candles "
            f"last O={last.open:.2f} H={last.high:.2f} L={last.low:.2f} C={last.close:.2f}"
            + (" (offline data)" if snapshot.degraded else "")
        )

    async def update_status(self, kind: StatusKind, message: str) -> None:
        logger.info(f"[{self.symbol}] status={kind.value}: {message}")

    async def update_price(self, spot: SpotPrice) -> None:
        text = f"[{self.symbol}] price ${spot.price:,.2f}"
        if spot.change_24h is not None:
            text += f" 24h {spot.change_24h:+.2f}%"
        if spot.volume_24h:
            text += f" vol {spot.volume_24h / 1_000_000:.1f}M USD"
        logger.info(text)


class NatsChartView:
    """Publishes chart updates to NATS subjects (see Topics)"""

    def __init__(self, nats_client: NatsClient, symbol: str = "BTC"):
        self.nats = nats_client
        self.symbol = symbol

    async def render(self, snapshot: ChartSnapshot) -> None:
        await self._publish(Topics.snapshot(self.symbol, snapshot.timeframe), snapshot.to_json())

    async def update_status(self, kind: StatusKind, message: str) -> None:
        payload = json.dumps({
            "kind": kind.value,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })
        await self._publish(Topics.status(self.symbol), payload)

    async def update_price(self, spot: SpotPrice) -> None:
        await self._publish(Topics.price(self.symbol), spot.to_json())

    async def _publish(self, subject: str, payload: str) -> None:
        if not self.nats.is_connected:
            logger.debug(f"NATS not connected - dropping update for {subject}")
            return
        try:
            await self.nats.publish_json(subject, payload)
        except Exception as e:
            logger.error(f"Failed to publish to {subject}: {e}")
