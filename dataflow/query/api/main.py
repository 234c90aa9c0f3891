"""
Chart Query API

FastAPI service hosting one live chart and exposing it over HTTP.

HTTP Endpoints:
- GET /                          - Health check
- GET /health                    - Detailed health status
- GET /timeframes                - Registered timeframes
- GET /snapshot                  - Current candles + price range
- PUT /timeframe/{timeframe_id}  - Switch the active timeframe
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel
import uvicorn

from dataflow.adapters.http_client import HttpClient
from engine.config.loader import load_config
from engine.runtime.chart import LiveChart
from engine.runtime.main import build_chart, create_view, http_config_for

logger = logging.getLogger(__name__)


# Response models (Pydantic)
class CandleResponse(BaseModel):
    """Single candle response"""
    timestamp: int  # ms since epoch
    time: str  # ISO 8601
    open: float
    high: float
    low: float
    close: float


class PriceRangeResponse(BaseModel):
    min: float
    max: float


class SnapshotResponse(BaseModel):
    """Current chart state"""
    symbol: str
    timeframe: str
    degraded: bool
    count: int
    price_range: Optional[PriceRangeResponse] = None
    candles: list[CandleResponse]


class TimeframeResponse(BaseModel):
    id: str
    bucket_minutes: int
    max_candles: int
    provider_interval: str


class TimeframeSwitchResponse(BaseModel):
    status: str
    timeframe: str
    degraded: bool
    count: int


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: build the chart unless one was injected"""
    if getattr(app.state, "chart", None) is not None:
        yield
        return

    logger.info("Starting Chart Query API...")

    config, registry = load_config()
    view, nats_client = await create_view(config.symbol)
    http = HttpClient(http_config_for(config))
    await http.connect()

    chart = build_chart(config, registry, http, view)
    app.state.chart = chart
    app.state.nats_connected = nats_client is not None
    await chart.start()

    yield

    # Shutdown
    await chart.stop()
    await http.close()
    if nats_client:
        await nats_client.close()
    app.state.chart = None
    logger.info("Chart Query API shutdown complete")


def get_chart(request: Request) -> LiveChart:
    chart = getattr(request.app.state, "chart", None)
    if chart is None:
        raise HTTPException(status_code=503, detail="Chart not running")
    return chart


def create_app(chart: Optional[LiveChart] = None) -> FastAPI:
    """
    Create the API app.

    Args:
        chart: Pre-built chart (its lifecycle stays with the caller).
            When omitted the lifespan handler builds and runs one.
    """
    app = FastAPI(
        title="Live Chart - Query API",
        description="Live BTC candlestick series",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.chart = chart
    app.state.nats_connected = False

    @app.get("/")
    async def root():
        """Health check endpoint"""
        return {
            "status": "running",
            "service": "chart-query-api",
            "timestamp": datetime.now().isoformat(),
        }

    @app.get("/health")
    async def health(request: Request):
        """Detailed health status"""
        chart = getattr(request.app.state, "chart", None)
        if chart is None:
            return {
                "status": "starting",
                "service": "chart-query-api",
                "timestamp": datetime.now().isoformat(),
            }
        kind, message = chart.status
        return {
            "status": "degraded" if chart.is_degraded else "healthy",
            "service": "chart-query-api",
            "chart_status": kind.value,
            "message": message,
            "timeframe": chart.current_timeframe.id,
            "nats_connected": request.app.state.nats_connected,
            "timestamp": datetime.now().isoformat(),
        }

    @app.get("/timeframes")
    async def timeframes(request: Request) -> list[TimeframeResponse]:
        """Registered timeframes"""
        chart = get_chart(request)
        return [TimeframeResponse(**tf.to_dict()) for tf in chart.registry.values()]

    @app.get("/snapshot")
    async def snapshot(request: Request) -> SnapshotResponse:
        """Current candle series and price range"""
        chart = get_chart(request)
        snap = chart.get_snapshot()
        data = snap.to_dict()
        return SnapshotResponse(symbol=chart.config.symbol, **data)

    @app.put("/timeframe/{timeframe_id}")
    async def switch_timeframe(timeframe_id: str, request: Request) -> TimeframeSwitchResponse:
        """
        Switch the active timeframe and reload its history.

        Raises:
            400: Unknown timeframe
        """
        chart = get_chart(request)
        if not await chart.set_timeframe(timeframe_id):
            raise HTTPException(
                status_code=400,
                detail=f"Invalid timeframe '{timeframe_id}'. Must be one of: {chart.registry.ids()}",
            )

        snap = chart.get_snapshot()
        return TimeframeSwitchResponse(
            status="success",
            timeframe=chart.current_timeframe.id,
            degraded=snap.degraded,
            count=len(snap.candles),
        )

    return app


app = create_app()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    port = int(os.getenv("PORT", "8001"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting Chart Query API on {host}:{port}")

    uvicorn.run(app, host=host, port=port)
