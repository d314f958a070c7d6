"""Typed value slots grouped into services.

A :class:`Characteristic` stores one value and validates writes against its
:class:`CharacteristicType` (format, unit and range).  A :class:`Service`
groups characteristics under a display name, the same way an accessory host
exposes a sensor block or an information block.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional


NUMERIC_FORMATS = ("float", "uint8", "uint16")


class CharacteristicValueError(ValueError):
    """Raised when a value does not fit the characteristic definition."""


@dataclass(frozen=True)
class CharacteristicType:
    name: str
    format: str
    unit: Optional[str] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None

    @property
    def is_numeric(self) -> bool:
        return self.format in NUMERIC_FORMATS


class Characteristic:
    """A single value slot; ``value`` is ``None`` until the first write."""

    def __init__(self, characteristic_type: CharacteristicType) -> None:
        self.type = characteristic_type
        self.props: Dict[str, Any] = {
            "format": characteristic_type.format,
            "unit": characteristic_type.unit,
            "minValue": characteristic_type.min_value,
            "maxValue": characteristic_type.max_value,
        }
        self.value: Any = None

    @property
    def name(self) -> str:
        return self.type.name

    def set_value(self, value: Any) -> "Characteristic":
        self.value = self._validate(value)
        return self

    def _validate(self, value: Any) -> Any:
        if not self.type.is_numeric:
            if value is None:
                raise CharacteristicValueError(f"{self.name}: value is required")
            return str(value)

        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise CharacteristicValueError(f"{self.name}: expected a number, got {value!r}")
        if math.isnan(value) or math.isinf(value):
            raise CharacteristicValueError(f"{self.name}: {value!r} is not a finite number")
        if self.type.format != "float":
            value = int(round(value))

        min_value = self.props.get("minValue")
        max_value = self.props.get("maxValue")
        if min_value is not None and value < min_value:
            raise CharacteristicValueError(f"{self.name}: {value} is below minimum {min_value}")
        if max_value is not None and value > max_value:
            raise CharacteristicValueError(f"{self.name}: {value} is above maximum {max_value}")
        return value


class Service:
    """Named group of characteristics."""

    def __init__(
        self,
        kind: str,
        display_name: str,
        characteristic_types: Iterable[CharacteristicType] = (),
    ) -> None:
        self.kind = kind
        self.display_name = display_name
        self._characteristics: Dict[str, Characteristic] = {}
        for characteristic_type in characteristic_types:
            self.add_characteristic(characteristic_type)

    @property
    def characteristics(self) -> List[Characteristic]:
        return list(self._characteristics.values())

    def add_characteristic(self, characteristic_type: CharacteristicType) -> Characteristic:
        existing = self._characteristics.get(characteristic_type.name)
        if existing is not None:
            return existing
        characteristic = Characteristic(characteristic_type)
        self._characteristics[characteristic_type.name] = characteristic
        return characteristic

    def has_characteristic(self, characteristic_type: CharacteristicType) -> bool:
        return characteristic_type.name in self._characteristics

    def get_characteristic(self, characteristic_type: CharacteristicType) -> Characteristic:
        # Optional characteristics are created on first access.
        return self.add_characteristic(characteristic_type)

    def set_characteristic(self, characteristic_type: CharacteristicType, value: Any) -> "Service":
        self.get_characteristic(characteristic_type).set_value(value)
        return self

    def values(self) -> Dict[str, Any]:
        return {name: characteristic.value for name, characteristic in self._characteristics.items()}


# Built-in characteristic types --------------------------------------------
CURRENT_TEMPERATURE = CharacteristicType("CurrentTemperature", "float", "celsius", 0, 100)
CURRENT_RELATIVE_HUMIDITY = CharacteristicType("CurrentRelativeHumidity", "float", "percentage", 0, 100)
MANUFACTURER = CharacteristicType("Manufacturer", "string")
MODEL = CharacteristicType("Model", "string")
SERIAL_NUMBER = CharacteristicType("SerialNumber", "string")
NAME = CharacteristicType("Name", "string")

TEMPERATURE_SENSOR = "TemperatureSensor"
ACCESSORY_INFORMATION = "AccessoryInformation"

# Lowest temperature a sensor service accepts once widened.
MIN_TEMPERATURE = -50


def temperature_sensor(display_name: str) -> Service:
    """Temperature sensor service with the temperature range widened below zero."""
    service = Service(TEMPERATURE_SENSOR, display_name, (NAME, CURRENT_TEMPERATURE))
    service.set_characteristic(NAME, display_name)
    service.get_characteristic(CURRENT_TEMPERATURE).props["minValue"] = MIN_TEMPERATURE
    return service


def accessory_information(manufacturer: str, model: str, serial_number: str) -> Service:
    service = Service(ACCESSORY_INFORMATION, "Information", (MANUFACTURER, MODEL, SERIAL_NUMBER))
    (
        service.set_characteristic(MANUFACTURER, manufacturer)
        .set_characteristic(MODEL, model)
        .set_characteristic(SERIAL_NUMBER, serial_number)
    )
    return service


__all__ = [
    "ACCESSORY_INFORMATION",
    "CURRENT_RELATIVE_HUMIDITY",
    "CURRENT_TEMPERATURE",
    "Characteristic",
    "CharacteristicType",
    "CharacteristicValueError",
    "MANUFACTURER",
    "MIN_TEMPERATURE",
    "MODEL",
    "SERIAL_NUMBER",
    "Service",
    "TEMPERATURE_SENSOR",
    "accessory_information",
    "temperature_sensor",
]
