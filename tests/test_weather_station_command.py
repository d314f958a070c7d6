from __future__ import annotations

import json
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import override_settings


OPENMETEO_URL = "https://api.open-meteo.com/v1/forecast"

STATION = {"service": "Open Meteo", "location": "52.52,13.40", "forecast": [1]}


def test_single_update_prints_accessories(requests_mock) -> None:
    requests_mock.get(
        OPENMETEO_URL,
        json={
            "current": {"time": "2024-01-15T13:45", "temperature_2m": 2.0, "relative_humidity_2m": 80},
            "daily": {"time": ["2024-01-15"], "temperature_2m_max": [4.0], "temperature_2m_min": [-1.0]},
        },
    )
    out = StringIO()

    with override_settings(WEATHER_STATION=STATION):
        call_command("weather_station", "--once", stdout=out)

    payload = json.loads(out.getvalue())
    assert [item["name"] for item in payload] == ["Now", "Today"]
    assert payload[0]["values"]["CurrentTemperature"] == 2.0
    assert payload[1]["values"]["TemperatureMin"] == -1.0


def test_failed_update_raises_command_error(requests_mock) -> None:
    requests_mock.get(OPENMETEO_URL, status_code=503, text="unavailable")

    with override_settings(WEATHER_STATION=STATION):
        with pytest.raises(CommandError):
            call_command("weather_station", "--once", stdout=StringIO())


def test_unknown_service_raises_command_error() -> None:
    with override_settings(WEATHER_STATION={"service": "unknown"}):
        with pytest.raises(CommandError):
            call_command("weather_station", "--once", stdout=StringIO())
