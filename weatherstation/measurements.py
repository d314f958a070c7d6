from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping

from .characteristics import CharacteristicType


@dataclass(frozen=True)
class MeasurementField:
    """Named weather field of the normalized vocabulary.

    Built-in fields map onto the host's own temperature and humidity
    characteristics; every other field is written to a custom characteristic.
    """

    name: str
    homekit_builtin: bool = False


TEMPERATURE = "Temperature"
HUMIDITY = "Humidity"
AIR_PRESSURE = "AirPressure"

FIELDS: Dict[str, MeasurementField] = {
    name: MeasurementField(name, homekit_builtin=name in (TEMPERATURE, HUMIDITY))
    for name in (
        "AirPressure",
        "CloudCover",
        "Condition",
        "ConditionCategory",
        "DewPoint",
        "ForecastDay",
        "Humidity",
        "ObservationStation",
        "ObservationTime",
        "Ozone",
        "Rain1h",
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
}

# Custom characteristic definitions, one per non built-in field.
CUSTOM_CHARACTERISTICS: Mapping[str, CharacteristicType] = {
    characteristic.name: characteristic
    for characteristic in (
        CharacteristicType("AirPressure", "uint16", "hPa", 700, 1100),
        CharacteristicType("CloudCover", "uint8", "percentage", 0, 100),
        CharacteristicType("Condition", "string"),
        # 0 clear, 1 clouds/fog/wind, 2 rain/sleet, 3 snow/hail
        CharacteristicType("ConditionCategory", "uint8", None, 0, 3),
        CharacteristicType("DewPoint", "float", "celsius", -50, 100),
        CharacteristicType("ForecastDay", "string"),
        CharacteristicType("ObservationStation", "string"),
        CharacteristicType("ObservationTime", "string"),
        CharacteristicType("Ozone", "uint16", None, 0, 500),
        CharacteristicType("Rain1h", "uint16", "mm", 0, 1000),
        CharacteristicType("RainChance", "uint8", "percentage", 0, 100),
        CharacteristicType("RainDay", "uint16", "mm", 0, 1000),
        CharacteristicType("TemperatureMin", "float", "celsius", -50, 100),
        CharacteristicType("UVIndex", "uint8", None, 0, 16),
        CharacteristicType("Visibility", "uint8", "km", 0, 100),
        CharacteristicType("WindDirection", "string"),
        CharacteristicType("WindSpeed", "float", "km/h", 0, 150),
        CharacteristicType("WindSpeedMax", "float", "km/h", 0, 150),
    )
}


def unknown_fields(names: Iterable[str]) -> list[str]:
    """Return the names that are not part of the vocabulary."""
    return [name for name in names if name not in FIELDS]


__all__ = [
    "AIR_PRESSURE",
    "CUSTOM_CHARACTERISTICS",
    "FIELDS",
    "HUMIDITY",
    "MeasurementField",
    "TEMPERATURE",
    "unknown_fields",
]
