"""Station configuration parsed from a homebridge-style platform block."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional


logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MINUTES = 4
DEFAULT_LANGUAGE = "en"
DEFAULT_TIMEOUT = 10.0


class ConfigurationError(RuntimeError):
    """Raised when the station cannot be configured."""


def normalize_service_name(value: str) -> str:
    return re.sub(r"\s", "", value).lower()


def parse_interval(value: Any, default: int = DEFAULT_INTERVAL_MINUTES) -> int:
    """Return the update interval in minutes, or ``default`` for invalid input."""
    if value is None:
        return default
    interval: Optional[int] = None
    if isinstance(value, bool):
        interval = None
    elif isinstance(value, int):
        interval = value
    elif isinstance(value, float) and value.is_integer():
        interval = int(value)
    elif isinstance(value, str) and value.strip().lstrip("+-").isdigit():
        interval = int(value.strip())
    if interval is None or interval < 1:
        logger.warning("Invalid update interval %r, using %s minutes", value, default)
        return default
    return interval


@dataclass
class StationConfig:
    service: str
    key: Optional[str] = None
    location: str = ""
    forecast: List[Any] = field(default_factory=list)
    language: str = DEFAULT_LANGUAGE
    interval: int = DEFAULT_INTERVAL_MINUTES
    history_path: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    base_url: Optional[str] = None

    @property
    def interval_seconds(self) -> float:
        return self.interval * 60.0

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "StationConfig":
        service = raw.get("service")
        if not isinstance(service, str) or not service.strip():
            raise ConfigurationError("service must be configured")

        forecast = raw.get("forecast") or []
        if isinstance(forecast, (str, bytes)) or not hasattr(forecast, "__iter__"):
            logger.warning("Ignoring forecast setting %r, expected a list of days", forecast)
            forecast = []

        timeout = raw.get("timeout")
        try:
            timeout = float(timeout) if timeout is not None else DEFAULT_TIMEOUT
        except (TypeError, ValueError):
            logger.warning("Invalid timeout %r, using %s seconds", timeout, DEFAULT_TIMEOUT)
            timeout = DEFAULT_TIMEOUT

        location = raw.get("location")
        return cls(
            service=normalize_service_name(service),
            key=raw.get("key") or None,
            location="" if location is None else str(location),
            forecast=list(forecast),
            language=raw.get("language") or DEFAULT_LANGUAGE,
            interval=parse_interval(raw.get("interval")),
            history_path=raw.get("history_path") or None,
            timeout=timeout,
            base_url=raw.get("base_url") or None,
        )


__all__ = [
    "ConfigurationError",
    "DEFAULT_INTERVAL_MINUTES",
    "StationConfig",
    "normalize_service_name",
    "parse_interval",
]
