"""Django settings for the weather station."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List

from django.core.exceptions import ImproperlyConfigured

BASE_DIR = Path(__file__).resolve().parent.parent


def env(name: str, default: str | None = None) -> str:
    """Read ``name`` from the environment; without a default it is mandatory.

    Blank values count as unset so an empty ``WEATHER_SERVICE=`` line in an
    env file falls back to the default.
    """
    value = (os.environ.get(name) or "").strip()
    if value:
        return value
    if default is None:
        raise ImproperlyConfigured(f"Set the {name} environment variable")
    return default


def _forecast_days(value: str) -> List[Any]:
    days: List[Any] = []
    for token in value.split(","):
        token = token.strip()
        if not token:
            continue
        # Non-numeric entries are kept so the station can report them as ignored.
        days.append(int(token) if token.lstrip("-").isdigit() else token)
    return days


def _weather_station_config() -> Dict[str, Any]:
    config_path = os.environ.get("WEATHER_STATION_CONFIG")
    if config_path:
        try:
            with open(config_path, encoding="utf-8") as handle:
                return json.load(handle)
        except (OSError, ValueError) as exc:
            raise ImproperlyConfigured(f"Cannot read WEATHER_STATION_CONFIG {config_path}: {exc}") from exc
    return {
        "service": env("WEATHER_SERVICE", "openmeteo"),
        "key": os.environ.get("WEATHER_KEY"),
        "location": env("WEATHER_LOCATION", ""),
        "forecast": _forecast_days(os.environ.get("WEATHER_FORECAST", "")),
        "language": env("WEATHER_LANGUAGE", "en"),
        "interval": os.environ.get("WEATHER_INTERVAL"),
        "history_path": os.environ.get("WEATHER_HISTORY_PATH"),
        "timeout": os.environ.get("WEATHER_TIMEOUT"),
    }


SECRET_KEY = env("DJANGO_SECRET_KEY")
DEBUG = os.environ.get("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "backend.api",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "backend.urls"

DATABASES: Dict[str, Any] = {}

WEATHER_STATION = _weather_station_config()
WEATHER_STATION_AUTOSTART = os.environ.get("WEATHER_AUTOSTART", "1") == "1"

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.AllowAny",
    ],
    "UNAUTHENTICATED_USER": None,
}

LOG_LEVEL = os.environ.get("WEATHER_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "loggers": {
        "weatherstation": {"level": LOG_LEVEL},
        "backend": {"level": LOG_LEVEL},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True
