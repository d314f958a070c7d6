from __future__ import annotations

import logging
from typing import Dict, Optional, Type

import requests

from .base import RequestConfig, WeatherProvider
from .darksky import DarkSkyProvider
from .openmeteo import OpenMeteoProvider
from .weatherunderground import WeatherUndergroundProvider
from ..config import ConfigurationError, StationConfig, normalize_service_name


logger = logging.getLogger(__name__)

PROVIDERS: Dict[str, Type[WeatherProvider]] = {}


def register_provider(provider_class: Type[WeatherProvider]) -> Type[WeatherProvider]:
    PROVIDERS[normalize_service_name(provider_class.name)] = provider_class
    return provider_class


for _provider_class in (DarkSkyProvider, WeatherUndergroundProvider, OpenMeteoProvider):
    register_provider(_provider_class)


def create_provider(config: StationConfig, session: Optional[requests.Session] = None) -> WeatherProvider:
    """Build the provider selected by ``config.service``."""
    service = normalize_service_name(config.service)
    provider_class = PROVIDERS.get(service)
    if provider_class is None:
        raise ConfigurationError(
            f"Unknown weather service {config.service!r}; expected one of {', '.join(sorted(PROVIDERS))}"
        )
    logger.info("Using weather service %s", provider_class.name)
    return provider_class(
        api_key=config.key,
        location=config.location,
        language=config.language,
        base_url=config.base_url,
        session=session,
        request_config=RequestConfig(timeout=config.timeout),
    )


__all__ = ["PROVIDERS", "create_provider", "register_provider"]
