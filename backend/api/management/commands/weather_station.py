"""Management command running the weather station update loops."""
from __future__ import annotations

import asyncio
import json
import logging
import signal
from typing import Any

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from backend.api.views import serialize_accessory
from weatherstation.config import ConfigurationError
from weatherstation.platform import WeatherStationPlatform


logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Fetch weather periodically and keep the station accessories up to date"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument(
            "--once",
            action="store_true",
            help="Run a single update and print the accessory values as JSON",
        )

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        try:
            platform = WeatherStationPlatform(settings.WEATHER_STATION)
        except ConfigurationError as exc:
            raise CommandError(str(exc)) from exc

        if options.get("once"):
            if not asyncio.run(platform.scheduler.run_cycle()):
                raise CommandError("Weather update failed")
            payload = [serialize_accessory(accessory) for accessory in platform.accessories()]
            self.stdout.write(json.dumps(payload))
            return

        asyncio.run(self._serve(platform))

    async def _serve(self, platform: WeatherStationPlatform) -> None:
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, stop_event.set)
            except (NotImplementedError, RuntimeError):
                logger.debug("Signal handler for %s not supported", signum)
        logger.info("Weather station running, press Ctrl+C to stop")
        await platform.run(stop_event)
