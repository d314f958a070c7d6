"""REST API views exposing the weather station accessories."""
from __future__ import annotations

import atexit
from dataclasses import asdict
from functools import lru_cache
from typing import Any, Dict

from django.conf import settings
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from weatherstation.accessories import Accessory, Current, Forecast
from weatherstation.config import ConfigurationError
from weatherstation.platform import BackgroundRunner, WeatherStationPlatform


@lru_cache(maxsize=1)
def get_runner() -> BackgroundRunner:
    """Build the process-wide station; its timers start with the first request."""
    runner = BackgroundRunner(WeatherStationPlatform(settings.WEATHER_STATION))
    if settings.WEATHER_STATION_AUTOSTART:
        runner.start()
        atexit.register(runner.stop)
    return runner


def get_platform() -> WeatherStationPlatform:
    return get_runner().platform


def reset_platform() -> None:
    """Stop the background timers and drop the cached station."""
    if get_runner.cache_info().currsize:
        runner = get_runner()
        atexit.unregister(runner.stop)
        runner.stop()
    get_runner.cache_clear()


def serialize_accessory(accessory: Accessory) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "name": accessory.name,
        "variant": "current",
        "day": None,
        "information": accessory.information.values(),
        "values": accessory.sensor.values(),
        "history": accessory.history is not None,
    }
    if isinstance(accessory.variant, Forecast):
        payload["variant"] = "forecast"
        payload["day"] = accessory.variant.day
    return payload


def _unavailable(exc: ConfigurationError) -> Response:
    return Response({"detail": str(exc)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)


class AccessoryListView(APIView):
    """List the accessories in enumeration order with their current values."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        try:
            platform = get_platform()
        except ConfigurationError as exc:
            return _unavailable(exc)
        return Response([serialize_accessory(accessory) for accessory in platform.accessories()])


class AccessoryHistoryView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, index: int, *args, **kwargs):  # noqa: D401
        try:
            platform = get_platform()
        except ConfigurationError as exc:
            return _unavailable(exc)

        accessories = platform.accessories()
        accessory = accessories[index] if index < len(accessories) else None
        if accessory is None or not isinstance(accessory.variant, Current) or accessory.history is None:
            return Response({"detail": "Not found"}, status=status.HTTP_404_NOT_FOUND)

        limit = request.query_params.get("limit")
        try:
            limit = int(limit) if limit is not None else None
        except ValueError:
            return Response({"detail": "limit must be an integer"}, status=status.HTTP_400_BAD_REQUEST)
        records = accessory.history.entries(limit=limit)
        return Response({"name": accessory.name, "records": [asdict(record) for record in records]})


class StatusView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        try:
            platform = get_platform()
        except ConfigurationError as exc:
            return _unavailable(exc)
        return Response(platform.status())
