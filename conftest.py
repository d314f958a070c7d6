from __future__ import annotations

import os

import django


os.environ.setdefault("DJANGO_SECRET_KEY", "test-secret")
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings")
os.environ.setdefault("WEATHER_SERVICE", "darksky")
os.environ.setdefault("WEATHER_KEY", "test-key")
os.environ.setdefault("WEATHER_LOCATION", "52.52,13.40")
os.environ.setdefault("WEATHER_FORECAST", "1,2")
os.environ.setdefault("WEATHER_AUTOSTART", "0")

django.setup()
