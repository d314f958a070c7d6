"""Fetch/distribute cycle and the timers that drive it.

Everything here runs on one asyncio event loop.  The blocking provider fetch
is pushed to a worker thread so the loop keeps serving the history timer and
host queries while a request is in flight; all characteristic writes happen
back on the loop.
"""
from __future__ import annotations

import asyncio
import enum
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Union

from .accessories import Accessory, AccessoryRegistry, Current, Forecast
from .entities import Measurements, WeatherSnapshot
from .providers.base import FetchError, WeatherProvider
from .writer import CharacteristicWriter


logger = logging.getLogger(__name__)

TickCallback = Callable[[], Union[Awaitable[Any], Any]]


class Ticker:
    """Runs ``callback`` repeatedly with a fixed delay between runs.

    The delay is measured from the end of one run to the start of the next,
    so at most one run is active at a time.  ``stop()`` sets the stop event,
    which is checked before every re-arm, and waits for the task to finish.
    """

    def __init__(
        self,
        name: str,
        callback: TickCallback,
        interval: float,
        initial_delay: float = 0.0,
    ) -> None:
        self.name = name
        self.callback = callback
        self.interval = interval
        self.initial_delay = initial_delay
        self.runs = 0
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self.running:
            raise RuntimeError(f"{self.name} ticker is already running")
        self._stop_event = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._run(), name=f"ticker:{self.name}")
        logger.info("Started %s ticker (every %.0fs)", self.name, self.interval)
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        assert self._stop_event is not None
        self._stop_event.set()
        try:
            await self._task
        finally:
            self._task = None
            logger.info("Stopped %s ticker", self.name)

    async def _run(self) -> None:
        assert self._stop_event is not None
        if await self._wait(self.initial_delay):
            return
        while not self._stop_event.is_set():
            await self._tick()
            if await self._wait(self.interval):
                return

    async def _tick(self) -> None:
        try:
            result = self.callback()
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Unhandled error in %s ticker", self.name)
        finally:
            self.runs += 1

    async def _wait(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds; return True when stopped meanwhile."""
        assert self._stop_event is not None
        if self._stop_event.is_set():
            return True
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=max(delay, 0))
        except asyncio.TimeoutError:
            return False
        return True


class SchedulerState(str, enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    DISTRIBUTING = "distributing"


class UpdateScheduler:
    """Fetches a snapshot from the provider and writes it to every accessory."""

    def __init__(
        self,
        provider: WeatherProvider,
        registry: AccessoryRegistry,
        writer: CharacteristicWriter,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.provider = provider
        self.registry = registry
        self.writer = writer
        self.state = SchedulerState.IDLE
        self.last_snapshot: Optional[WeatherSnapshot] = None
        self.last_success: Optional[float] = None
        self.consecutive_failures = 0
        self._clock = clock

    async def run_cycle(self) -> bool:
        """Run one fetch/distribute cycle; return True if data was distributed."""
        self.state = SchedulerState.FETCHING
        try:
            snapshot = await asyncio.to_thread(self.provider.fetch)
        except FetchError as exc:
            self._fetch_failed("Weather update failed: %s", exc)
            return False
        except Exception as exc:  # noqa: BLE001
            self._fetch_failed("Unexpected error while fetching weather: %r", exc)
            return False

        self.state = SchedulerState.DISTRIBUTING
        try:
            self.distribute(snapshot)
        finally:
            self.state = SchedulerState.IDLE
        self.last_snapshot = snapshot
        self.last_success = self._clock()
        self.consecutive_failures = 0
        return True

    def _fetch_failed(self, message: str, exc: Exception) -> None:
        self.consecutive_failures += 1
        self.state = SchedulerState.IDLE
        logger.error(message, exc)

    def distribute(self, snapshot: WeatherSnapshot) -> int:
        """Write the snapshot to all accessories; return how many were updated."""
        updated = 0
        for accessory in self.registry:
            match accessory.variant:
                case Current():
                    data = snapshot.report
                    fields = self.provider.report_fields
                    kind = "report"
                case Forecast(day=day):
                    data = snapshot.forecast(day)
                    fields = self.provider.forecast_fields
                    kind = "forecast"
                case _:
                    continue
            if data is None:
                continue
            try:
                self._write(accessory, fields, data)
            except Exception as exc:  # noqa: BLE001
                logger.error("Exception while writing weather %s to %s: %s", kind, accessory.name, exc, exc_info=exc)
                logger.error("%s data: %r", kind.capitalize(), data)
                continue
            updated += 1
        logger.debug("Updated %s of %s accessories", updated, len(self.registry))
        return updated

    def _write(self, accessory: Accessory, fields, data: Measurements) -> None:
        for name in fields:
            if name in data:
                self.writer.write(accessory.sensor, name, data[name])


__all__ = ["SchedulerState", "Ticker", "UpdateScheduler"]
