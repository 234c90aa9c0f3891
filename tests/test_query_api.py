"""Tests for the chart query API against an injected chart."""

import asyncio
import random

import pytest
from fastapi.testclient import TestClient

from dataflow.query.api.main import create_app
from engine.config.loader import ChartConfig
from engine.runtime.chart import LiveChart
from schemas.errors import DataUnavailable
from tests.conftest import BASE_MS, MINUTE_MS, FakeClock, make_gateway, make_view


@pytest.fixture
def chart(registry, sample_history):
    chart = LiveChart(
        gateway=make_gateway(history=sample_history),
        registry=registry,
        view=make_view(),
        config=ChartConfig(),
        clock=FakeClock(BASE_MS + 2 * MINUTE_MS),
        rng=random.Random(3),
    )
    asyncio.run(chart.load_history())
    return chart


@pytest.fixture
def client(chart):
    with TestClient(create_app(chart)) as client:
        yield client


class TestQueryApi:
    """Tests for the HTTP endpoints."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["chart_status"] == "connected"
        assert data["timeframe"] == "1m"
        assert data["nats_connected"] is False

    def test_health_reports_degraded(self, chart, client):
        chart.gateway.fetch_history.side_effect = DataUnavailable("both down")
        client.put("/timeframe/5m")

        data = client.get("/health").json()

        assert data["status"] == "degraded"
        assert data["chart_status"] == "error"

    def test_snapshot(self, client):
        data = client.get("/snapshot").json()

        assert data["symbol"] == "BTC"
        assert data["timeframe"] == "1m"
        assert data["count"] == 3
        assert data["degraded"] is False
        assert data["candles"][0]["timestamp"] == BASE_MS
        assert data["price_range"]["min"] < data["price_range"]["max"]

    def test_timeframes(self, client):
        data = client.get("/timeframes").json()

        assert [tf["id"] for tf in data] == ["1m", "5m", "15m", "1h", "4h", "1d"]
        assert data[3]["max_candles"] == 48

    def test_switch_timeframe(self, chart, client):
        response = client.put("/timeframe/1h")

        assert response.status_code == 200
        assert response.json()["timeframe"] == "1h"
        assert chart.current_timeframe.id == "1h"

    def test_switch_to_unknown_timeframe(self, chart, client):
        response = client.put("/timeframe/7m")

        assert response.status_code == 400
        assert "Invalid timeframe" in response.json()["detail"]
        assert chart.current_timeframe.id == "1m"

    def test_no_chart_is_unavailable(self):
        app = create_app()
        # skip the lifespan; no chart gets built
        client = TestClient(app)

        assert client.get("/snapshot").status_code == 503
        assert client.get("/health").json()["status"] == "starting"
