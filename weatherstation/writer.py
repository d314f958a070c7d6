from __future__ import annotations

from typing import Any, Mapping

from .characteristics import (
    CURRENT_RELATIVE_HUMIDITY,
    CURRENT_TEMPERATURE,
    CharacteristicType,
    CharacteristicValueError,
    Service,
)
from .config import ConfigurationError
from .measurements import HUMIDITY, TEMPERATURE


class WriteError(RuntimeError):
    """Raised when a field value is rejected by its characteristic."""


class CharacteristicWriter:
    """Maps measurement field names onto characteristics of a service.

    Temperature and humidity go to the built-in characteristics; every other
    field is looked up in ``custom_types``.
    """

    def __init__(self, custom_types: Mapping[str, CharacteristicType]) -> None:
        self._custom_types = dict(custom_types)

    def characteristic_type(self, name: str) -> CharacteristicType:
        if name == HUMIDITY:
            return CURRENT_RELATIVE_HUMIDITY
        if name == TEMPERATURE:
            return CURRENT_TEMPERATURE
        try:
            return self._custom_types[name]
        except KeyError:
            raise ConfigurationError(f"No characteristic registered for field {name!r}") from None

    def write(self, service: Service, name: str, value: Any) -> None:
        characteristic_type = self.characteristic_type(name)
        try:
            service.set_characteristic(characteristic_type, value)
        except CharacteristicValueError as exc:
            raise WriteError(f"{service.display_name}: cannot write {name}={value!r}: {exc}") from exc


__all__ = ["CharacteristicWriter", "WriteError"]
