from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, List, Mapping, Optional, Union

import requests

from .accessories import Accessory, AccessoryRegistry
from .config import StationConfig
from .history import (
    HISTORY_INITIAL_DELAY_SECONDS,
    HISTORY_INTERVAL_SECONDS,
    HistoryLog,
    HistorySampler,
    MemoryHistoryLog,
    SQLiteHistoryLog,
)
from .measurements import CUSTOM_CHARACTERISTICS
from .providers.base import WeatherProvider
from .providers.registry import create_provider
from .scheduler import Ticker, UpdateScheduler
from .writer import CharacteristicWriter


logger = logging.getLogger(__name__)


class WeatherStationPlatform:
    """Wires provider, accessories, update scheduler and history sampler.

    Construction raises :class:`~weatherstation.config.ConfigurationError`
    when no provider can be selected; nothing can run without one.
    """

    def __init__(
        self,
        config: Union[StationConfig, Mapping[str, Any]],
        *,
        provider: Optional[WeatherProvider] = None,
        history: Optional[HistoryLog] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not isinstance(config, StationConfig):
            config = StationConfig.from_mapping(config)
        self.config = config
        self.provider = provider or create_provider(config, session=session)
        self.writer = CharacteristicWriter(CUSTOM_CHARACTERISTICS)
        self.history = history if history is not None else self._create_history_log()
        self.registry = AccessoryRegistry.build(
            provider=self.provider,
            writer=self.writer,
            forecast_days=config.forecast,
            location=config.location,
            history=self.history,
        )
        self.scheduler = UpdateScheduler(self.provider, self.registry, self.writer)
        self.sampler = HistorySampler(self.registry)
        self.update_ticker = Ticker("weather-update", self.scheduler.run_cycle, config.interval_seconds)
        self.history_ticker = Ticker(
            "history",
            self.sampler.sample,
            HISTORY_INTERVAL_SECONDS,
            initial_delay=HISTORY_INITIAL_DELAY_SECONDS,
        )
        logger.info(
            "Weather station ready: %s accessories, updating every %s minutes",
            len(self.registry),
            config.interval,
        )

    def _create_history_log(self) -> HistoryLog:
        if self.config.history_path:
            return SQLiteHistoryLog(self.config.history_path)
        return MemoryHistoryLog()

    def accessories(self) -> List[Accessory]:
        """Accessory enumeration for the host: current conditions first."""
        return self.registry.accessories

    def start(self) -> None:
        self.update_ticker.start()
        self.history_ticker.start()

    async def stop(self) -> None:
        await self.update_ticker.stop()
        await self.history_ticker.stop()
        self.history.close()

    async def run(self, stop_event: asyncio.Event) -> None:
        """Run both timers until ``stop_event`` is set."""
        self.start()
        try:
            await stop_event.wait()
        finally:
            await self.stop()

    def status(self) -> dict:
        scheduler = self.scheduler
        return {
            "service": self.provider.name,
            "attribution": self.provider.attribution,
            "interval_minutes": self.config.interval,
            "state": scheduler.state.value,
            "last_success": scheduler.last_success,
            "consecutive_failures": scheduler.consecutive_failures,
            "updates_running": self.update_ticker.running,
            "history_running": self.history_ticker.running,
        }


class BackgroundRunner:
    """Runs a platform's timers on a private event loop in a daemon thread.

    Synchronous hosts such as the Django web process use it to keep the
    accessories live while they serve requests from other threads.
    """

    def __init__(self, platform: WeatherStationPlatform, *, join_timeout: float = 15.0) -> None:
        self.platform = platform
        self.join_timeout = join_timeout
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._started = threading.Event()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            raise RuntimeError("Weather station is already running")
        self._started.clear()
        self._thread = threading.Thread(target=self._main, name="weather-station", daemon=True)
        self._thread.start()
        self._started.wait(self.join_timeout)

    def stop(self) -> None:
        if not self.running:
            return
        assert self._loop is not None and self._stop_event is not None
        self._loop.call_soon_threadsafe(self._stop_event.set)
        self._thread.join(self.join_timeout)
        if self._thread.is_alive():
            logger.warning("Weather station thread still busy after %.0fs", self.join_timeout)

    def _main(self) -> None:
        asyncio.run(self._serve())

    async def _serve(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        self._started.set()
        await self.platform.run(self._stop_event)


__all__ = ["BackgroundRunner", "WeatherStationPlatform"]
