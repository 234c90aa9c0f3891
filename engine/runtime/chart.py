"""
Live Chart

Coordinates one chart instance: owns the candle series of the active
timeframe, the price-source gateway, the live-price ticker and the view.
"""

import asyncio
import logging
import random
import time
from typing import Callable, Optional, Tuple

from dataflow.candle_aggregation.aggregator import CandleSeries
from dataflow.ingestion.gateway import PriceSourceGateway
from engine.config.loader import ChartConfig
from engine.config.timeframes import TimeframeConfig, TimeframeRegistry
from engine.runtime.view import ChartView, StatusKind
from engine.scheduler.tasks import Debouncer, PeriodicTask
from schemas.errors import DataUnavailable, InvalidTimeframe, ProviderError
from schemas.market_data import ChartSnapshot, SpotPrice

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class LiveChart:
    """
    Live-updating candlestick chart.

    The chart:
    1. Loads history for the active timeframe (falling back to synthetic
       candles when every provider fails)
    2. Folds a live spot price into the last candle every update period
    3. Pushes a fresh snapshot to the view after every change

    Loads are tagged with a generation number; a load or tick that finishes
    after a newer timeframe switch has started is discarded.

    Example usage:
        gateway = PriceSourceGateway.from_config(http, config)
        chart = LiveChart(gateway, registry, LoggingChartView(), config)

        await chart.start()
        await chart.set_timeframe("1h")
        snapshot = chart.get_snapshot()
        await chart.stop()
    """

    def __init__(
        self,
        gateway: PriceSourceGateway,
        registry: TimeframeRegistry,
        view: ChartView,
        config: Optional[ChartConfig] = None,
        clock: Callable[[], int] = _now_ms,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            gateway: Price-source gateway
            registry: Known timeframes
            view: Rendering collaborator
            config: Chart configuration (defaults when omitted)
            clock: Wall clock in epoch milliseconds
            rng: Random source for synthetic data
        """
        self.config = config or ChartConfig()
        self.gateway = gateway
        self.registry = registry
        self.view = view
        self._clock = clock
        self._rng = rng

        self.current_timeframe: TimeframeConfig = registry.get(self.config.default_timeframe)
        self._series = CandleSeries(self.current_timeframe)
        self._generation = 0
        self._tick_in_progress = False
        self._started = False
        self._stopped = False

        self.status: Tuple[StatusKind, str] = (StatusKind.CONNECTING, "Not started")
        self.last_spot: Optional[SpotPrice] = None

        self._ticker = PeriodicTask(
            "live-price", self._scheduled_tick, interval=self.config.update_frequency
        )
        self._resize = Debouncer(
            "resize-redraw", self._render, delay=self.config.resize_debounce
        )

    @property
    def is_running(self) -> bool:
        return self._started and not self._stopped

    @property
    def is_degraded(self) -> bool:
        return self._series.degraded

    async def start(self) -> None:
        """Load the initial history and start the live-price ticker"""
        if self._stopped:
            raise RuntimeError("Chart was stopped and cannot be restarted")
        if self._started:
            return

        logger.info(
            f"Starting {self.config.symbol} chart on {self.current_timeframe.id} "
            f"(live updates every {self.config.update_frequency}s)"
        )
        self._started = True
        await self.load_history()
        self._ticker.start()

    async def stop(self) -> None:
        """Cancel all timers; nothing fires after this returns"""
        if self._stopped:
            return
        self._stopped = True
        self._generation += 1
        await self._ticker.stop()
        await self._resize.cancel()
        logger.info(f"{self.config.symbol} chart stopped")

    def get_snapshot(self) -> ChartSnapshot:
        """Read-only copy of the current series and price range"""
        return self._series.snapshot()

    async def set_timeframe(self, timeframe_id: str) -> bool:
        """
        Switch the active timeframe and reload its history.

        Unknown identifiers are rejected with a warning and change nothing.

        Returns:
            True if the timeframe was accepted
        """
        try:
            timeframe = self.registry.get(timeframe_id)
        except InvalidTimeframe as e:
            logger.warning(str(e))
            return False

        self.current_timeframe = timeframe
        logger.info(f"Switching {self.config.symbol} chart to {timeframe.id}")
        await self.load_history()
        return True

    async def load_history(self) -> bool:
        """
        Rebuild the series for the current timeframe from scratch.

        Returns:
            True if real data was loaded, False if synthetic data was used
            or the result was superseded by a newer load
        """
        self._generation += 1
        generation = self._generation
        timeframe = self.current_timeframe

        await self._set_status(
            StatusKind.CONNECTING, f"Fetching {timeframe.id} Bitcoin data..."
        )

        series = CandleSeries(timeframe)
        try:
            history = await self.gateway.fetch_history(timeframe)
            if self._is_stale(generation):
                logger.info(f"Discarding stale {timeframe.id} history")
                return False
            series.load_history(history)
        except (DataUnavailable, ProviderError) as e:
            if self._is_stale(generation):
                logger.info(f"Discarding stale {timeframe.id} failure: {e}")
                return False
            logger.error(f"Failed to load {timeframe.id} history: {e}")
            await self._load_offline(series)
            return False
        except Exception as e:
            if self._is_stale(generation):
                return False
            logger.error(f"Unexpected error loading {timeframe.id} history: {e}", exc_info=True)
            await self._load_offline(series)
            return False

        self._series = series
        await self._render()
        last = series.last
        if last is not None:
            await self._push_price(SpotPrice(price=last.close))
        await self._set_status(StatusKind.CONNECTED, "Live data loaded")
        return True

    async def refresh_live_price(self) -> bool:
        """
        Fetch the spot price and fold it into the last candle.

        A call made while another refresh is in flight is skipped.

        Returns:
            True if the tick was applied
        """
        if self._tick_in_progress:
            logger.warning("Live price refresh already in progress, skipping")
            return False

        self._tick_in_progress = True
        generation = self._generation
        try:
            try:
                spot = await self.gateway.fetch_spot()
            except ProviderError as e:
                logger.error(f"Failed to update live price: {e}")
                return False

            if self._is_stale(generation):
                logger.debug("Discarding live price fetched for a superseded series")
                return False

            self.last_spot = spot
            appended = self._series.fold_tick(spot.price, self._clock())
            if appended:
                logger.debug(f"New {self.current_timeframe.id} candle opened at {spot.price}")
            await self._push_price(spot)
            await self._render()
            return True
        finally:
            self._tick_in_progress = False

    def notify_resize(self) -> None:
        """Viewport changed; redraw once resizing has settled"""
        self._resize.trigger()

    async def _load_offline(self, series: CandleSeries) -> None:
        """Show synthetic candles and report degraded mode"""
        series.load_synthetic(
            now_ms=self._clock(),
            base_price=self.config.fallback_base_price,
            rng=self._rng,
        )
        self._series = series
        await self._render()
        await self._set_status(
            StatusKind.ERROR, "Failed to load data - using offline mode"
        )

    def _is_stale(self, generation: int) -> bool:
        return self._stopped or generation != self._generation

    async def _scheduled_tick(self) -> None:
        await self.refresh_live_price()

    async def _render(self) -> None:
        try:
            await self.view.render(self.get_snapshot())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"View failed to render: {e}", exc_info=True)

    async def _push_price(self, spot: SpotPrice) -> None:
        try:
            await self.view.update_price(spot)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"View failed to update price: {e}", exc_info=True)

    async def _set_status(self, kind: StatusKind, message: str) -> None:
        self.status = (kind, message)
        try:
            await self.view.update_status(kind, message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"View failed to update status: {e}", exc_info=True)
