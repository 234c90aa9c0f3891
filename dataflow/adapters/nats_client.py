"""
NATS Client Adapter

Async NATS publisher used to push chart snapshots, status changes and spot
prices to the browser bridge.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional
import nats
from nats.aio.client import Client as NatsConnection

logger = logging.getLogger(__name__)


@dataclass
class NatsConfig:
    """NATS connection configuration"""
    servers: list[str] = field(default_factory=lambda: ["nats://localhost:4222"])
    name: str = "live-btc-chart"
    reconnect_time_wait: float = 2.0
    max_reconnect_attempts: int = -1  # Infinite reconnects
    connect_timeout: float = 2.0

    @classmethod
    def from_env(cls, prefix: str = "NATS") -> "NatsConfig":
        """Create config from environment variables"""
        import os
        servers = os.getenv(f"{prefix}_SERVERS", "nats://localhost:4222")
        return cls(
            servers=servers.split(","),
            name=os.getenv(f"{prefix}_CLIENT_NAME", "live-btc-chart"),
        )


class NatsClient:
    """
    Async NATS publisher for chart updates.

    Subject Patterns:
    - chart.{symbol}.snapshot.{tf}  - Full candle series + price range
    - chart.{symbol}.status         - Status kind + message
    - chart.{symbol}.price          - Spot price statistics
    """

    def __init__(self, config: Optional[NatsConfig] = None):
        self.config = config or NatsConfig()
        self._nc: Optional[NatsConnection] = None
        self._connected = False

    @property
    def is_connected(self) -> bool:
        """Check if client is connected"""
        return self._connected and self._nc is not None and self._nc.is_connected

    async def connect(self) -> None:
        """Establish connection to NATS server"""
        if self._connected:
            return

        async def error_handler(e):
            logger.error(f"NATS error: {e}")

        async def closed_handler():
            logger.warning("NATS connection closed")
            self._connected = False

        async def reconnected_handler():
            logger.info("NATS reconnected")
            self._connected = True

        async def disconnected_handler():
            logger.warning("NATS disconnected")
            self._connected = False

        try:
            self._nc = await nats.connect(
                servers=self.config.servers,
                name=self.config.name,
                reconnect_time_wait=self.config.reconnect_time_wait,
                max_reconnect_attempts=self.config.max_reconnect_attempts,
                connect_timeout=self.config.connect_timeout,
                error_cb=error_handler,
                closed_cb=closed_handler,
                reconnected_cb=reconnected_handler,
                disconnected_cb=disconnected_handler,
            )
            self._connected = True
            logger.info(f"Connected to NATS: {self.config.servers}")
        except Exception as e:
            logger.error(f"Failed to connect to NATS: {e}")
            raise

    async def close(self) -> None:
        """Drain and close NATS connection"""
        if self._nc and not self._nc.is_closed:
            await self._nc.drain()
            logger.info("NATS connection closed")
        self._connected = False
        self._nc = None

    async def publish_json(self, subject: str, data: str) -> None:
        """
        Publish a JSON string to a NATS subject.

        Args:
            subject: NATS subject (e.g., "chart.BTC.status")
            data: JSON string
        """
        if not self.is_connected:
            raise RuntimeError("NATS client not connected")
        payload = data.encode("utf-8")
        await self._nc.publish(subject, payload)
        logger.debug(f"Published to {subject}: {len(payload)} bytes")


class Topics:
    """NATS subject name builders"""

    @staticmethod
    def _sanitize(name: str) -> str:
        """
        Sanitize a name for use in NATS subjects.

        Subject tokens keep alphanumerics, hyphens and underscores; anything
        else becomes an underscore.
        """
        return "".join(c if c.isalnum() or c in "-_" else "_" for c in name)

    @staticmethod
    def snapshot(symbol: str, timeframe: str) -> str:
        """Snapshot subject for a symbol and timeframe"""
        return f"chart.{Topics._sanitize(symbol)}.snapshot.{Topics._sanitize(timeframe)}"

    @staticmethod
    def status(symbol: str) -> str:
        """Status subject for a symbol"""
        return f"chart.{Topics._sanitize(symbol)}.status"

    @staticmethod
    def price(symbol: str) -> str:
        """Spot price subject for a symbol"""
        return f"chart.{Topics._sanitize(symbol)}.price"
