from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .base import FetchError, WeatherProvider, compact, safe_float
from ..entities import Measurements, WeatherSnapshot


def _number(value: Optional[object]) -> Optional[float]:
    # Weather Underground reports missing readings as "NA", "--" or -9999.
    number = safe_float(value)
    if number is None or number <= -999:
        return None
    return number


def _section(payload: dict, key: str) -> dict:
    value = payload.get(key)
    return value if isinstance(value, dict) else {}


def _text(value: Optional[object]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text in ("NA", "N/A", "--"):
        return None
    return text


def _condition_category(icon: Optional[str]) -> Optional[int]:
    if not icon or not isinstance(icon, str):
        return None
    if "snow" in icon or "flurries" in icon:
        return 3
    if "rain" in icon or "sleet" in icon or "tstorms" in icon:
        return 2
    if "cloudy" in icon or "fog" in icon or "hazy" in icon or "partly" in icon:
        return 1
    return 0


class WeatherUndergroundProvider(WeatherProvider):
    name = "weatherunderground"
    attribution = "Powered by Weather Underground"
    base_url = "https://api.wunderground.com"
    report_fields = (
        "AirPressure",
        "Condition",
        "ConditionCategory",
        "Humidity",
        "ObservationStation",
        "ObservationTime",
        "RainDay",
        "Rain1h",
        "Temperature",
        "UVIndex",
        "Visibility",
        "WindDirection",
        "WindSpeed",
        "WindSpeedMax",
    )
    forecast_fields = (
        "Condition",
        "ConditionCategory",
        "ForecastDay",
        "Humidity",
        "RainChance",
        "RainDay",
        "Temperature",
        "TemperatureMin",
        "WindDirection",
        "WindSpeed",
        "WindSpeedMax",
    )
    max_forecast_days = 4

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
            raise FetchError("Weather Underground requires an API key")
        data = self._get_json(f"{self.base_url}/api/{self.api_key}/conditions/forecast/q/{self.location}.json")
        error = _section(data, "response").get("error")
        if error:
            if isinstance(error, dict):
                error = error.get("description") or error.get("type")
            raise FetchError(f"Weather Underground error: {error}")

        report = None
        observation = data.get("current_observation")
        if isinstance(observation, dict):
            report = self._build_report(observation)
            if "Temperature" not in report:
                self._log.warning("Observation without temperature, ignoring report")
                report = None

        days = _section(_section(data, "forecast"), "simpleforecast").get("forecastday")
        if not isinstance(days, list):
            days = []
        forecasts = tuple(
            self._build_forecast(day) if isinstance(day, dict) else None
            for day in days[: self.max_forecast_days]
        )
        return WeatherSnapshot(report=report, forecasts=forecasts, attribution=self.attribution)

    # Helpers ------------------------------------------------------------
    def _build_report(self, payload: dict) -> Measurements:
        location = _section(payload, "observation_location")
        return compact(
            {
                "AirPressure": _number(payload.get("pressure_mb")),
                "Condition": _text(payload.get("weather")),
                "ConditionCategory": _condition_category(payload.get("icon")),
                "Humidity": _number(payload.get("relative_humidity")),
                "ObservationStation": _text(location.get("full") or payload.get("station_id")),
                "ObservationTime": self._observation_time(payload),
                "RainDay": _number(payload.get("precip_today_metric")),
                "Rain1h": _number(payload.get("precip_1hr_metric")),
                "Temperature": _number(payload.get("temp_c")),
                "UVIndex": _number(payload.get("UV")),
                "Visibility": _number(payload.get("visibility_km")),
                "WindDirection": _text(payload.get("wind_dir")),
                "WindSpeed": _number(payload.get("wind_kph")),
                "WindSpeedMax": _number(payload.get("wind_gust_kph")),
            }
        )

    def _build_forecast(self, payload: dict) -> Measurements:
        date = _section(payload, "date")
        wind = _section(payload, "avewind")
        return compact(
            {
                "Condition": _text(payload.get("conditions")),
                "ConditionCategory": _condition_category(payload.get("icon")),
                "ForecastDay": _text(date.get("weekday")),
                "Humidity": _number(payload.get("avehumidity")),
                "RainChance": _number(payload.get("pop")),
                "RainDay": _number(_section(payload, "qpf_allday").get("mm")),
                "Temperature": _number(_section(payload, "high").get("celsius")),
                "TemperatureMin": _number(_section(payload, "low").get("celsius")),
                "WindDirection": _text(wind.get("dir")),
                "WindSpeed": _number(wind.get("kph")),
                "WindSpeedMax": _number(_section(payload, "maxwind").get("kph")),
            }
        )

    def _observation_time(self, payload: dict) -> Optional[str]:
        epoch = _number(payload.get("observation_epoch"))
        if epoch is None:
            return None
        try:
            observed = datetime.fromtimestamp(epoch, tz=self._timezone(payload.get("local_tz_long")))
        except (OverflowError, OSError, ValueError):
            self._log.warning("Observation epoch out of range: %s", epoch)
            return None
        return observed.strftime("%H:%M:%S")

    def _timezone(self, name: Optional[str]) -> tzinfo:
        if not name:
            return timezone.utc
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            return timezone.utc


__all__ = ["WeatherUndergroundProvider"]
