from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from .base import FetchError, WeatherProvider, bearing_to_compass, compact, safe_float
from ..entities import Measurements, WeatherSnapshot


# WMO weather interpretation codes.
WEATHER_CODES = {
    0: ("Clear sky", 0),
    1: ("Mainly clear", 0),
    2: ("Partly cloudy", 1),
    3: ("Overcast", 1),
    45: ("Fog", 1),
    48: ("Depositing rime fog", 1),
    51: ("Light drizzle", 2),
    53: ("Drizzle", 2),
    55: ("Dense drizzle", 2),
    56: ("Freezing drizzle", 2),
    57: ("Dense freezing drizzle", 2),
    61: ("Slight rain", 2),
    63: ("Rain", 2),
    65: ("Heavy rain", 2),
    66: ("Freezing rain", 2),
    67: ("Heavy freezing rain", 2),
    71: ("Slight snow fall", 3),
    73: ("Snow fall", 3),
    75: ("Heavy snow fall", 3),
    77: ("Snow grains", 3),
    80: ("Rain showers", 2),
    81: ("Heavy rain showers", 2),
    82: ("Violent rain showers", 2),
    85: ("Snow showers", 3),
    86: ("Heavy snow showers", 3),
    95: ("Thunderstorm", 2),
    96: ("Thunderstorm with hail", 3),
    99: ("Thunderstorm with heavy hail", 3),
}

CURRENT_VARIABLES = [
    "temperature_2m",
    "relative_humidity_2m",
    "dew_point_2m",
    "pressure_msl",
    "cloud_cover",
    "precipitation",
    "weather_code",
    "wind_speed_10m",
    "wind_direction_10m",
    "wind_gusts_10m",
]

DAILY_VARIABLES = [
    "weather_code",
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_sum",
    "precipitation_probability_max",
    "wind_speed_10m_max",
    "wind_gusts_10m_max",
    "wind_direction_10m_dominant",
    "uv_index_max",
]


def _weather(code: Optional[float]) -> Tuple[Optional[str], Optional[int]]:
    if code is None:
        return None, None
    return WEATHER_CODES.get(int(code), (None, None))


def _safe_index(values: List[Optional[float]], index: int) -> Optional[float]:
    try:
        value = values[index]
    except (IndexError, TypeError):
        return None
    return safe_float(value)


class OpenMeteoProvider(WeatherProvider):
    """Keyless provider; ``location`` is ``"latitude,longitude"``."""

    name = "openmeteo"
    attribution = "Powered by Open-Meteo"
    base_url = "https://api.open-meteo.com/v1/forecast"
    report_fields = (
        "AirPressure",
        "CloudCover",
        "Condition",
        "ConditionCategory",
        "DewPoint",
        "Humidity",
        "ObservationTime",
        "Rain1h",
        "Temperature",
        "WindDirection",
        "WindSpeed",
        "WindSpeedMax",
    )
    forecast_fields = (
        "Condition",
        "ConditionCategory",
        "ForecastDay",
        "RainChance",
        "RainDay",
        "Temperature",
        "TemperatureMin",
        "UVIndex",
        "WindDirection",
        "WindSpeed",
        "WindSpeedMax",
    )
    max_forecast_days = 7

    def __init__(
        self,
        api_key: Optional[str] = None,
        location: str = "",
        language: str = "en",
        base_url: Optional[str] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.location = location
        self.base_url = base_url or self.base_url
        self._log = logging.getLogger(self.__class__.__name__)

    def fetch(self) -> WeatherSnapshot:
        latitude, longitude = self._coordinates()
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": ",".join(CURRENT_VARIABLES),
            "daily": ",".join(DAILY_VARIABLES),
            "wind_speed_unit": "kmh",
            "precipitation_unit": "mm",
            "forecast_days": self.max_forecast_days,
            "timezone": "auto",
        }
        data = self._get_json(self.base_url, params=params)

        report = None
        current = data.get("current")
        if isinstance(current, dict):
            report = self._build_report(current)
            if "Temperature" not in report:
                self._log.warning("Current block without temperature, ignoring report")
                report = None

        daily = data.get("daily")
        if not isinstance(daily, dict):
            daily = {}
        dates = daily.get("time")
        if not isinstance(dates, list):
            dates = []
        forecasts = tuple(
            self._build_forecast(daily, idx, date_str)
            for idx, date_str in enumerate(dates[: self.max_forecast_days])
        )
        return WeatherSnapshot(report=report, forecasts=forecasts, attribution=self.attribution)

    # helpers ------------------------------------------------------------
    def _coordinates(self) -> Tuple[float, float]:
        parts = [part.strip() for part in (self.location or "").split(",")]
        if len(parts) != 2:
            raise FetchError(f"location must be 'latitude,longitude', got {self.location!r}")
        latitude, longitude = safe_float(parts[0]), safe_float(parts[1])
        if latitude is None or longitude is None:
            raise FetchError(f"location must be 'latitude,longitude', got {self.location!r}")
        return latitude, longitude

    def _build_report(self, current: dict) -> Measurements:
        condition, category = _weather(safe_float(current.get("weather_code")))
        return compact(
            {
                "AirPressure": safe_float(current.get("pressure_msl")),
                "CloudCover": safe_float(current.get("cloud_cover")),
                "Condition": condition,
                "ConditionCategory": category,
                "DewPoint": safe_float(current.get("dew_point_2m")),
                "Humidity": safe_float(current.get("relative_humidity_2m")),
                "ObservationTime": self._format_time(current.get("time"), "%H:%M:%S"),
                "Rain1h": safe_float(current.get("precipitation")),
                "Temperature": safe_float(current.get("temperature_2m")),
                "WindDirection": bearing_to_compass(safe_float(current.get("wind_direction_10m"))),
                "WindSpeed": safe_float(current.get("wind_speed_10m")),
                "WindSpeedMax": safe_float(current.get("wind_gusts_10m")),
            }
        )

    def _build_forecast(self, daily: dict, idx: int, date_str: str) -> Optional[Measurements]:
        temperature = _safe_index(daily.get("temperature_2m_max"), idx)
        if temperature is None:
            return None
        condition, category = _weather(_safe_index(daily.get("weather_code"), idx))
        return compact(
            {
                "Condition": condition,
                "ConditionCategory": category,
                "ForecastDay": self._format_time(date_str, "%A"),
                "RainChance": _safe_index(daily.get("precipitation_probability_max"), idx),
                "RainDay": _safe_index(daily.get("precipitation_sum"), idx),
                "Temperature": temperature,
                "TemperatureMin": _safe_index(daily.get("temperature_2m_min"), idx),
                "UVIndex": _safe_index(daily.get("uv_index_max"), idx),
                "WindDirection": bearing_to_compass(_safe_index(daily.get("wind_direction_10m_dominant"), idx)),
                "WindSpeed": _safe_index(daily.get("wind_speed_10m_max"), idx),
                "WindSpeedMax": _safe_index(daily.get("wind_gusts_10m_max"), idx),
            }
        )

    def _format_time(self, value: Optional[str], pattern: str) -> Optional[str]:
        if not value:
            return None
        try:
            return datetime.fromisoformat(value).strftime(pattern)
        except (TypeError, ValueError):
            return None


__all__ = ["OpenMeteoProvider"]
