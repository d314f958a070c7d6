from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .base import (
    FetchError,
    WeatherProvider,
    bearing_to_compass,
    compact,
    fraction_to_percent,
    ms_to_kmh,
    safe_float,
)
from ..entities import Measurements, WeatherSnapshot


def _condition_category(icon: Optional[str]) -> Optional[int]:
    if not icon or not isinstance(icon, str):
        return None
    if "snow" in icon or "hail" in icon:
        return 3
    if "rain" in icon or "sleet" in icon or "thunderstorm" in icon:
        return 2
    if "cloudy" in icon or "fog" in icon or "wind" in icon or "tornado" in icon:
        return 1
    return 0


class DarkSkyProvider(WeatherProvider):
    name = "darksky"
    attribution = "Powered by Dark Sky"
    base_url = "https://api.darksky.net"
    report_fields = (
        "AirPressure",
        "CloudCover",
        "Condition",
        "ConditionCategory",
        "DewPoint",
        "Humidity",
        "ObservationTime",
        "Ozone",
        "Rain1h",
        "Temperature",
        "UVIndex",
        "Visibility",
        "WindDirection",
        "WindSpeed",
    )
    forecast_fields = (
        "AirPressure",
        "CloudCover",
        "Condition",
        "ConditionCategory",
        "DewPoint",
        "ForecastDay",
        "Humidity",
        "Ozone",
        "RainChance",
        "RainDay",
        "Temperature",
        "TemperatureMin",
        "UVIndex",
        "Visibility",
        "WindDirection",
        "WindSpeed",
        "WindSpeedMax",
    )
    max_forecast_days = 8

    def __init__(
        self,
        api_key: Optional[str],
        location: str,
        language: str = "en",
        base_url: Optional[str] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key
        self.location = location
        self.language = language
        self.base_url = (base_url or self.base_url).rstrip("/")
        self._log = logging.getLogger(self.__class__.__name__)

    def fetch(self) -> WeatherSnapshot:
        if not self.api_key:
            raise FetchError("Dark Sky requires an API key")
        params = {
            "units": "si",
            "lang": self.language,
            "exclude": "minutely,hourly,alerts,flags",
        }
        data = self._get_json(f"{self.base_url}/forecast/{self.api_key}/{self.location}", params=params)
        tz = self._timezone(data.get("timezone"))

        report = None
        currently = data.get("currently")
        if isinstance(currently, dict):
            report = self._build_report(currently, tz)
            if "Temperature" not in report:
                self._log.warning("Current conditions without temperature, ignoring report")
                report = None

        daily = data.get("daily")
        daily = daily.get("data") if isinstance(daily, dict) else None
        if not isinstance(daily, list):
            daily = []
        forecasts = tuple(
            self._build_forecast(day, tz) if isinstance(day, dict) else None
            for day in daily[: self.max_forecast_days]
        )
        return WeatherSnapshot(report=report, forecasts=forecasts, attribution=self.attribution)

    # Helpers ------------------------------------------------------------
    def _build_report(self, payload: dict, tz: tzinfo) -> Measurements:
        return compact(
            {
                **self._common(payload),
                "ObservationTime": self._format_time(payload.get("time"), tz, "%H:%M:%S"),
                "Rain1h": safe_float(payload.get("precipIntensity")),
                "Temperature": safe_float(payload.get("temperature")),
            }
        )

    def _build_forecast(self, payload: dict, tz: tzinfo) -> Measurements:
        intensity = safe_float(payload.get("precipIntensity"))
        temperature_max = safe_float(payload.get("temperatureMax"))
        if temperature_max is None:
            temperature_max = safe_float(payload.get("temperatureHigh"))
        temperature_min = safe_float(payload.get("temperatureMin"))
        if temperature_min is None:
            temperature_min = safe_float(payload.get("temperatureLow"))
        return compact(
            {
                **self._common(payload),
                "ForecastDay": self._format_time(payload.get("time"), tz, "%A"),
                "RainChance": fraction_to_percent(safe_float(payload.get("precipProbability"))),
                "RainDay": None if intensity is None else round(intensity * 24, 1),
                "Temperature": temperature_max,
                "TemperatureMin": temperature_min,
                "WindSpeedMax": ms_to_kmh(safe_float(payload.get("windGust"))),
            }
        )

    def _common(self, payload: dict) -> dict[str, Any]:
        return {
            "AirPressure": safe_float(payload.get("pressure")),
            "CloudCover": fraction_to_percent(safe_float(payload.get("cloudCover"))),
            "Condition": payload.get("summary") or None,
            "ConditionCategory": _condition_category(payload.get("icon")),
            "DewPoint": safe_float(payload.get("dewPoint")),
            "Humidity": fraction_to_percent(safe_float(payload.get("humidity"))),
            "Ozone": safe_float(payload.get("ozone")),
            "UVIndex": safe_float(payload.get("uvIndex")),
            "Visibility": safe_float(payload.get("visibility")),
            "WindDirection": bearing_to_compass(safe_float(payload.get("windBearing"))),
            "WindSpeed": ms_to_kmh(safe_float(payload.get("windSpeed"))),
        }

    def _timezone(self, name: Optional[str]) -> tzinfo:
        if not name:
            return timezone.utc
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            self._log.warning("Unknown timezone %s, using UTC", name)
            return timezone.utc

    def _format_time(self, value: Optional[object], tz: tzinfo, pattern: str) -> Optional[str]:
        timestamp = safe_float(value)
        if timestamp is None:
            return None
        try:
            moment = datetime.fromtimestamp(timestamp, tz=tz)
        except (OverflowError, OSError, ValueError):
            self._log.warning("Timestamp out of range: %s", timestamp)
            return None
        return moment.strftime(pattern)


__all__ = ["DarkSkyProvider"]
