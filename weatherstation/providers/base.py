from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Tuple

import requests
from requests import Response

from ..entities import WeatherSnapshot
from ..measurements import unknown_fields


class FetchError(RuntimeError):
    """Base provider error: network, auth, HTTP status or payload failure."""


class QuotaExceeded(FetchError):
    """Raised when a provider reports a quota/usage limit issue."""


@dataclass
class RequestConfig:
    timeout: float = 10.0


class WeatherProvider:
    """Base class for weather data sources.

    Subclasses declare which measurement fields they fill for the current
    report and for each forecast day, how many forecast days they supply, and
    implement :meth:`fetch`.  The base class adds a shared ``requests``
    session, timeouts and status-code handling.
    """

    name: ClassVar[str] = ""
    attribution: ClassVar[str] = ""
    report_fields: ClassVar[Tuple[str, ...]] = ()
    forecast_fields: ClassVar[Tuple[str, ...]] = ()
    max_forecast_days: ClassVar[int] = 0

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        unknown = unknown_fields(cls.report_fields + cls.forecast_fields)
        if unknown:
            raise TypeError(f"{cls.__name__} declares unknown fields: {', '.join(unknown)}")

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self.request_config = request_config or RequestConfig()
        self.session = session or requests.Session()
        self._log = logging.getLogger(self.__class__.__name__)

    def fetch(self) -> WeatherSnapshot:
        raise NotImplementedError

    def _handle_response(self, response: Response) -> Response:
        status = response.status_code
        if status < 400:
            return response
        if status == 429:
            self._log.warning("%s quota exhausted: %s", self.name, response.text)
            raise QuotaExceeded(f"{self.name}: quota exceeded")
        self._log.error("%s answered HTTP %s: %s", self.name, status, response.text)
        raise FetchError(f"{self.name}: HTTP {status}")

    def _request(self, method: str, url: str, **kwargs) -> Response:
        timeout = self.request_config.timeout
        try:
            response = self.session.request(method, url, timeout=timeout, **kwargs)
        except requests.Timeout as exc:
            self._log.error("%s did not answer within %ss", self.name, timeout, exc_info=exc)
            raise FetchError(f"{self.name}: timeout") from exc
        except requests.RequestException as exc:
            self._log.error("%s request failed", self.name, exc_info=exc)
            raise FetchError(f"{self.name}: request failed") from exc
        return self._handle_response(response)

    def _get_json(self, url: str, **kwargs) -> dict:
        response = self._request("GET", url, **kwargs)
        try:
            data = response.json()
        except ValueError as exc:
            self._log.error("Failed to decode JSON", exc_info=exc)
            raise FetchError("invalid json") from exc
        if not isinstance(data, dict):
            raise FetchError("unexpected payload")
        return data


# Shared normalization helpers ------------------------------------------------
COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)


def safe_float(value: Optional[object]) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def ms_to_kmh(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return round(value * 3.6, 1)


def fraction_to_percent(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return round(value * 100)


def bearing_to_compass(value: Optional[float]) -> Optional[str]:
    if value is None:
        return None
    index = int((value % 360) / 22.5 + 0.5) % 16
    return COMPASS_POINTS[index]


def compact(values: dict) -> dict:
    """Drop fields the provider could not fill."""
    return {key: value for key, value in values.items() if value is not None}


__all__ = [
    "FetchError",
    "QuotaExceeded",
    "RequestConfig",
    "WeatherProvider",
    "bearing_to_compass",
    "compact",
    "fraction_to_percent",
    "ms_to_kmh",
    "safe_float",
]
