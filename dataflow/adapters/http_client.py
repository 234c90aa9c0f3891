"""
HTTP Client Adapter

Async aiohttp session wrapper used by the price providers.
Every request carries a fixed deadline; transport failures are mapped onto
the chart error taxonomy so the gateway can run its fallback chain.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import aiohttp

from schemas.errors import InvalidData, ProviderError

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    # json.loads accepts NaN/Infinity/-Infinity; prices never carry them
    raise ValueError(f"Non-finite number {name} in response")


@dataclass
class HttpConfig:
    """HTTP client configuration"""
    timeout: float = 10.0
    user_agent: str = "live-btc-chart/1.0"

    @classmethod
    def from_env(cls, prefix: str = "HTTP") -> "HttpConfig":
        """Create config from environment variables"""
        import os
        return cls(
            timeout=float(os.getenv(f"{prefix}_TIMEOUT", "10")),
            user_agent=os.getenv(f"{prefix}_USER_AGENT", "live-btc-chart/1.0"),
        )


class HttpClient:
    """
    Async HTTP client wrapper for the market-data providers.

    One attempt per call, no retries: retrying is the gateway's job
    (by falling back to the next provider).
    """

    def __init__(
        self,
        config: Optional[HttpConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config or HttpConfig()
        self._session = session
        self._owns_session = session is None

    @property
    def is_open(self) -> bool:
        return self._session is not None and not self._session.closed

    async def connect(self) -> None:
        """Open the underlying session"""
        if self.is_open:
            return
        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            headers={
                "Accept": "application/json",
                "User-Agent": self.config.user_agent,
            },
        )
        self._owns_session = True
        logger.info(f"HTTP session opened (timeout={self.config.timeout}s)")

    async def close(self) -> None:
        """Close the session if we own it"""
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.info("HTTP session closed")
        self._session = None

    async def get_json(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        provider: str = "unknown",
    ) -> Any:
        """
        GET a URL and decode its JSON body.

        Args:
            url: Absolute URL
            params: Query parameters
            provider: Provider name used in error messages

        Returns:
            Decoded JSON payload

        Raises:
            ProviderError: Connection error, timeout or non-2xx status
            InvalidData: Body is undecodable or not valid JSON (NaN and
                Infinity included)
        """
        if not self.is_open:
            await self.connect()

        try:
            async with self._session.get(
                url,
                params=params,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            ) as response:
                if response.status < 200 or response.status >= 300:
                    raise ProviderError(
                        f"HTTP {response.status}: {response.reason}", provider=provider
                    )
                body = await response.text()
        except UnicodeDecodeError as e:
            raise InvalidData(f"Undecodable response body: {e}", provider=provider) from e
        except asyncio.TimeoutError:
            raise ProviderError(
                f"Request timed out after {self.config.timeout}s", provider=provider
            )
        except aiohttp.ClientError as e:
            raise ProviderError(f"Request failed: {e}", provider=provider) from e

        try:
            payload = json.loads(body, parse_constant=_reject_constant)
        except ValueError as e:
            raise InvalidData(f"Invalid JSON: {e}", provider=provider) from e

        logger.debug(f"GET {url} -> {len(body)} bytes")
        return payload
