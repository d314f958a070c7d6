from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Union

from .characteristics import Service, accessory_information, temperature_sensor
from .history import HistoryLog
from .measurements import TEMPERATURE
from .providers.base import WeatherProvider
from .writer import CharacteristicWriter


logger = logging.getLogger(__name__)

MANUFACTURER = "Weather Station Plus"
CURRENT_NAME = "Now"


@dataclass(frozen=True)
class Current:
    """Current conditions, fed from the snapshot report."""


@dataclass(frozen=True)
class Forecast:
    """Forecast for ``day`` days from today (0 is today)."""

    day: int


Variant = Union[Current, Forecast]


def forecast_display_name(day: int) -> str:
    if day == 0:
        return "Today"
    if day == 1:
        return "In 1 Day"
    return f"In {day} Days"


@dataclass
class Accessory:
    name: str
    variant: Variant
    sensor: Service
    information: Service
    fields: Sequence[str]
    history: Optional[HistoryLog] = field(default=None, repr=False)

    @property
    def display_name(self) -> str:
        return self.name

    def services(self) -> List[Any]:
        services: List[Any] = [self.information, self.sensor]
        if self.history is not None:
            services.append(self.history)
        return services


def _is_whole_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def valid_forecast_days(requested: Iterable[Any], max_forecast_days: int) -> List[int]:
    """Convert one-based requested days into zero-based offsets.

    Invalid entries are dropped with a warning; duplicates are kept.
    """
    days: List[int] = []
    for value in requested:
        if _is_whole_number(value) and 1 <= value <= max_forecast_days:
            days.append(int(value) - 1)
        else:
            logger.warning("Ignoring forecast day: %r", value)
    return days


class AccessoryRegistry:
    """Ordered accessory list built once at startup."""

    def __init__(self, accessories: Iterable[Accessory]) -> None:
        self._accessories: List[Accessory] = list(accessories)

    def __iter__(self) -> Iterator[Accessory]:
        return iter(self._accessories)

    def __len__(self) -> int:
        return len(self._accessories)

    def __getitem__(self, index: int) -> Accessory:
        return self._accessories[index]

    @property
    def accessories(self) -> List[Accessory]:
        return list(self._accessories)

    def current(self) -> Optional[Accessory]:
        for accessory in self._accessories:
            if isinstance(accessory.variant, Current):
                return accessory
        return None

    @classmethod
    def build(
        cls,
        *,
        provider: WeatherProvider,
        writer: CharacteristicWriter,
        forecast_days: Iterable[Any],
        location: str,
        history: Optional[HistoryLog] = None,
    ) -> "AccessoryRegistry":
        information = dict(manufacturer=MANUFACTURER, model=provider.attribution, serial_number=location)
        accessories = [
            _make_accessory(CURRENT_NAME, Current(), provider.report_fields, writer, information, history)
        ]
        for day in valid_forecast_days(forecast_days, provider.max_forecast_days):
            accessories.append(
                _make_accessory(
                    forecast_display_name(day), Forecast(day), provider.forecast_fields, writer, information
                )
            )
        return cls(accessories)


def _make_accessory(
    name: str,
    variant: Variant,
    fields: Sequence[str],
    writer: CharacteristicWriter,
    information: dict,
    history: Optional[HistoryLog] = None,
) -> Accessory:
    sensor = temperature_sensor(name)
    for field_name in fields:
        # Temperature is part of every temperature sensor already.
        if field_name != TEMPERATURE:
            sensor.add_characteristic(writer.characteristic_type(field_name))
    return Accessory(
        name=name,
        variant=variant,
        sensor=sensor,
        information=accessory_information(**information),
        fields=tuple(fields),
        history=history,
    )


__all__ = [
    "Accessory",
    "AccessoryRegistry",
    "Current",
    "Forecast",
    "forecast_display_name",
    "valid_forecast_days",
]
