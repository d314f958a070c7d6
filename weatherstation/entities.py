from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple


Measurements = Mapping[str, Any]


@dataclass(frozen=True)
class WeatherSnapshot:
    """Normalized result of one provider fetch.

    Values are keyed by measurement field name and already converted to the
    units of the matching characteristic:
    - temperature in Celsius
    - pressure in hectopascal (hPa)
    - wind speed in kilometres per hour (km/h)
    - humidity, cloud cover and rain chance in percent

    ``forecasts[i]`` holds the entry for "i days from today".  An entry is
    ``None`` when the provider could not supply that day.
    """

    report: Optional[Measurements]
    forecasts: Tuple[Optional[Measurements], ...] = field(default_factory=tuple)
    attribution: str = ""

    def forecast(self, day: int) -> Optional[Measurements]:
        if 0 <= day < len(self.forecasts):
            return self.forecasts[day]
        return None


@dataclass(frozen=True)
class HistoryRecord:
    timestamp: float
    temperature: Optional[float]
    pressure: Optional[float]
    humidity: Optional[float]


__all__ = ["HistoryRecord", "Measurements", "WeatherSnapshot"]
