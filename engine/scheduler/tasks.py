"""
Scheduled Tasks

Cancellable timers owned by a chart's lifecycle:
- PeriodicTask: fixed-period trigger that never overlaps itself
- Debouncer: runs a callback once calls have been quiet for a while
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

AsyncCallback = Callable[[], Awaitable[None]]


class PeriodicTask:
    """
    Runs an async callback every `interval` seconds.

    A run that is still in flight when the next period elapses causes that
    tick to be skipped, so runs never interleave. Exceptions raised by the
    callback are logged and the loop keeps going.

    Example usage:
        ticker = PeriodicTask("live-price", chart.refresh_live_price, interval=10.0)
        ticker.start()
        ...
        await ticker.stop()
    """

    def __init__(self, name: str, callback: AsyncCallback, interval: float):
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self.name = name
        self.callback = callback
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None
        self.runs = 0
        self.skipped = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the timer loop (no-op if already running)"""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._loop(), name=f"periodic-{self.name}")
        logger.info(f"Started periodic task {self.name} (every {self.interval}s)")

    async def stop(self) -> None:
        """Cancel the loop and any in-flight run, and wait for both to finish"""
        for task in (self._task, self._inflight):
            if task is not None and not task.done():
                task.cancel()
        for task in (self._task, self._inflight):
            if task is not None:
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        if self._task is not None:
            logger.info(f"Stopped periodic task {self.name}")
        self._task = None
        self._inflight = None

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)

            if self._inflight is not None and not self._inflight.done():
                self.skipped += 1
                logger.warning(
                    f"Skipping {self.name} tick: previous run still in progress"
                )
                continue

            self._inflight = asyncio.create_task(self._run_once())

    async def _run_once(self) -> None:
        self.runs += 1
        try:
            await self.callback()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Periodic task {self.name} failed: {e}", exc_info=True)


class Debouncer:
    """
    Delays a callback until calls have stopped for `delay` seconds.

    Each trigger() restarts the quiet period; only the last one fires.
    """

    def __init__(self, name: str, callback: AsyncCallback, delay: float):
        self.name = name
        self.callback = callback
        self.delay = delay
        self._pending: Optional[asyncio.Task] = None
        self._closed = False
        self.fired = 0

    @property
    def is_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def trigger(self) -> None:
        """(Re)start the quiet period"""
        if self._closed:
            logger.debug(f"Debouncer {self.name} is cancelled, ignoring trigger")
            return
        if self.is_pending:
            self._pending.cancel()
        self._pending = asyncio.create_task(self._fire_later())

    async def cancel(self) -> None:
        """Drop any pending call; later triggers are ignored"""
        self._closed = True
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            try:
                await self._pending
            except asyncio.CancelledError:
                pass
        self._pending = None

    async def _fire_later(self) -> None:
        await asyncio.sleep(self.delay)
        self.fired += 1
        try:
            await self.callback()
        except Exception as e:
            logger.error(f"Debounced {self.name} failed: {e}", exc_info=True)
