from __future__ import annotations

import pytest

from weatherstation.config import ConfigurationError, StationConfig
from weatherstation.measurements import FIELDS
from weatherstation.providers.base import FetchError, QuotaExceeded, WeatherProvider
from weatherstation.providers.darksky import DarkSkyProvider
from weatherstation.providers.openmeteo import OpenMeteoProvider
from weatherstation.providers.registry import PROVIDERS, create_provider
from weatherstation.providers.weatherunderground import WeatherUndergroundProvider


DARKSKY_URL = "https://darksky.test/forecast/test-key/52.52,13.40"
WUNDERGROUND_URL = "https://wu.test/api/test-key/conditions/forecast/q/Berlin.json"
OPENMETEO_URL = "https://openmeteo.test/v1/forecast"


def darksky() -> DarkSkyProvider:
    return DarkSkyProvider(api_key="test-key", location="52.52,13.40", language="de", base_url="https://darksky.test")


def test_darksky_normalization(requests_mock):
    requests_mock.get(
        DARKSKY_URL,
        json={
            "timezone": "UTC",
            "currently": {
                "time": 1700000000,
                "summary": "Partly Cloudy",
                "icon": "partly-cloudy-day",
                "precipIntensity": 0.2,
                "temperature": -3.5,
                "dewPoint": -6.1,
                "humidity": 0.81,
                "pressure": 1012.3,
                "windSpeed": 5.0,
                "windBearing": 200,
                "cloudCover": 0.45,
                "uvIndex": 1,
                "visibility": 16.09,
                "ozone": 301.2,
            },
            "daily": {
                "data": [
                    {
                        "time": 1699920000,
                        "summary": "Light rain",
                        "icon": "rain",
                        "precipIntensity": 0.5,
                        "precipProbability": 0.6,
                        "temperatureMax": 8.2,
                        "temperatureMin": 1.1,
                        "windSpeed": 3.0,
                        "windGust": 10.0,
                        "windBearing": 90,
                    },
                    {
                        "time": 1700006400,
                        "icon": "snow",
                        "temperatureHigh": 0.5,
                        "temperatureLow": -4.0,
                    },
                ]
            },
        },
    )

    snapshot = darksky().fetch()

    report = snapshot.report
    assert report["Temperature"] == -3.5
    assert report["Humidity"] == 81
    assert report["CloudCover"] == 45
    assert report["WindSpeed"] == 18.0
    assert report["WindDirection"] == "SSW"
    assert report["ConditionCategory"] == 1
    assert report["Condition"] == "Partly Cloudy"
    assert report["ObservationTime"] == "22:13:20"
    assert report["AirPressure"] == 1012.3

    today, tomorrow = snapshot.forecasts
    assert today["ForecastDay"] == "Tuesday"
    assert today["Temperature"] == 8.2
    assert today["TemperatureMin"] == 1.1
    assert today["RainChance"] == 60
    assert today["RainDay"] == 12.0
    assert today["WindSpeedMax"] == 36.0
    assert today["WindDirection"] == "E"
    assert today["ConditionCategory"] == 2
    assert tomorrow["ForecastDay"] == "Wednesday"
    assert tomorrow["Temperature"] == 0.5
    assert tomorrow["TemperatureMin"] == -4.0
    assert tomorrow["ConditionCategory"] == 3
    assert "Humidity" not in tomorrow

    assert snapshot.attribution == "Powered by Dark Sky"
    assert requests_mock.last_request.qs["units"] == ["si"]
    assert requests_mock.last_request.qs["lang"] == ["de"]


def test_darksky_report_without_temperature_is_dropped(requests_mock):
    requests_mock.get(DARKSKY_URL, json={"currently": {"humidity": 0.5}, "daily": {"data": []}})

    snapshot = darksky().fetch()

    assert snapshot.report is None
    assert snapshot.forecasts == ()


def test_darksky_requires_key():
    provider = DarkSkyProvider(api_key=None, location="52.52,13.40")

    with pytest.raises(FetchError):
        provider.fetch()


def test_weatherunderground_normalization(requests_mock):
    provider = WeatherUndergroundProvider(api_key="test-key", location="Berlin", base_url="https://wu.test")
    requests_mock.get(
        WUNDERGROUND_URL,
        json={
            "current_observation": {
                "temp_c": 21.4,
                "relative_humidity": "65%",
                "pressure_mb": "1016",
                "weather": "Partly Cloudy",
                "icon": "partlycloudy",
                "observation_location": {"full": "Berlin, Germany"},
                "observation_epoch": "1700000000",
                "local_tz_long": "UTC",
                "precip_today_metric": "2",
                "precip_1hr_metric": "-9999",
                "UV": "3",
                "visibility_km": "NA",
                "wind_dir": "NNW",
                "wind_kph": 12.5,
                "wind_gust_kph": "0",
            },
            "forecast": {
                "simpleforecast": {
                    "forecastday": [
                        {
                            "date": {"weekday": "Tuesday"},
                            "high": {"celsius": "23"},
                            "low": {"celsius": "12"},
                            "conditions": "Chance of Rain",
                            "icon": "chancerain",
                            "pop": 40,
                            "qpf_allday": {"mm": 3},
                            "avewind": {"kph": 10, "dir": "W"},
                            "maxwind": {"kph": 20},
                            "avehumidity": 60,
                        }
                    ]
                }
            },
        },
    )

    snapshot = provider.fetch()

    report = snapshot.report
    assert report["Temperature"] == 21.4
    assert report["Humidity"] == 65.0
    assert report["AirPressure"] == 1016.0
    assert report["ObservationStation"] == "Berlin, Germany"
    assert report["ObservationTime"] == "22:13:20"
    assert report["UVIndex"] == 3.0
    assert report["ConditionCategory"] == 1
    assert "Rain1h" not in report
    assert "Visibility" not in report

    (today,) = snapshot.forecasts
    assert today["ForecastDay"] == "Tuesday"
    assert today["Temperature"] == 23.0
    assert today["TemperatureMin"] == 12.0
    assert today["RainChance"] == 40.0
    assert today["RainDay"] == 3.0
    assert today["WindDirection"] == "W"
    assert today["ConditionCategory"] == 2


def test_weatherunderground_error_payload(requests_mock):
    provider = WeatherUndergroundProvider(api_key="test-key", location="Berlin", base_url="https://wu.test")
    requests_mock.get(
        WUNDERGROUND_URL,
        json={"response": {"error": {"type": "keynotfound", "description": "this key does not exist"}}},
    )

    with pytest.raises(FetchError, match="this key does not exist"):
        provider.fetch()


def test_weatherunderground_malformed_sections_are_dropped(requests_mock):
    provider = WeatherUndergroundProvider(api_key="test-key", location="Berlin", base_url="https://wu.test")
    requests_mock.get(
        WUNDERGROUND_URL,
        json={
            "current_observation": {
                "temp_c": 18.0,
                "observation_location": "Berlin",
                "observation_epoch": "1e20",
            },
            "forecast": {
                "simpleforecast": {
                    "forecastday": [
                        {
                            "date": "Tuesday",
                            "high": {"celsius": "23"},
                            "low": "cold",
                            "qpf_allday": "3 mm",
                            "avewind": None,
                            "maxwind": [],
                            "avehumidity": 60,
                        }
                    ]
                }
            },
        },
    )

    snapshot = provider.fetch()

    assert snapshot.report == {"Temperature": 18.0}
    (today,) = snapshot.forecasts
    assert today == {"Temperature": 23.0, "Humidity": 60.0}


def test_darksky_out_of_range_time_is_dropped(requests_mock):
    requests_mock.get(
        DARKSKY_URL,
        json={
            "timezone": "UTC",
            "currently": {"time": 1e20, "temperature": 5.0},
            "daily": {"data": [{"time": -1e20, "temperatureMax": 7.0}]},
        },
    )

    snapshot = darksky().fetch()

    assert snapshot.report == {"Temperature": 5.0}
    assert snapshot.forecasts == ({"Temperature": 7.0},)


def test_openmeteo_non_finite_values_are_dropped(requests_mock):
    provider = OpenMeteoProvider(location="52.52,13.40", base_url=OPENMETEO_URL)
    requests_mock.get(
        OPENMETEO_URL,
        text=(
            '{"current": {"temperature_2m": 3.5, "weather_code": NaN, "wind_direction_10m": Infinity},'
            ' "daily": {"time": ["2024-01-15"], "temperature_2m_max": [6.0], "weather_code": [Infinity]}}'
        ),
        headers={"Content-Type": "application/json"},
    )

    snapshot = provider.fetch()

    assert snapshot.report == {"Temperature": 3.5}
    assert snapshot.forecasts == ({"ForecastDay": "Monday", "Temperature": 6.0},)


def test_openmeteo_normalization(requests_mock):
    provider = OpenMeteoProvider(location="52.52, 13.40", base_url=OPENMETEO_URL)
    requests_mock.get(
        OPENMETEO_URL,
        json={
            "current": {
                "time": "2024-01-15T13:45",
                "temperature_2m": -2.3,
                "relative_humidity_2m": 87,
                "dew_point_2m": -4.1,
                "pressure_msl": 1021.4,
                "cloud_cover": 100,
                "precipitation": 0.0,
                "weather_code": 71,
                "wind_speed_10m": 11.2,
                "wind_direction_10m": 270,
                "wind_gusts_10m": 25.6,
            },
            "daily": {
                "time": ["2024-01-15", "2024-01-16"],
                "weather_code": [71, 3],
                "temperature_2m_max": [-1.0, 2.5],
                "temperature_2m_min": [-5.0, -2.0],
                "precipitation_sum": [2.1, 0.0],
                "precipitation_probability_max": [80, 10],
                "wind_speed_10m_max": [15.0, 9.0],
                "wind_gusts_10m_max": [30.0, 20.0],
                "wind_direction_10m_dominant": [260, 180],
                "uv_index_max": [0.8, 1.5],
            },
        },
    )

    snapshot = provider.fetch()

    assert snapshot.report["Temperature"] == -2.3
    assert snapshot.report["Condition"] == "Slight snow fall"
    assert snapshot.report["ConditionCategory"] == 3
    assert snapshot.report["WindDirection"] == "W"
    assert snapshot.report["ObservationTime"] == "13:45:00"
    assert snapshot.report["Rain1h"] == 0.0
    assert snapshot.forecasts[0]["ForecastDay"] == "Monday"
    assert snapshot.forecasts[1]["ForecastDay"] == "Tuesday"
    assert snapshot.forecasts[1]["Condition"] == "Overcast"
    assert snapshot.forecasts[1]["WindDirection"] == "S"
    assert requests_mock.last_request.qs["latitude"] == ["52.52"]


def test_openmeteo_rejects_invalid_location(requests_mock):
    provider = OpenMeteoProvider(location="Berlin", base_url=OPENMETEO_URL)

    with pytest.raises(FetchError):
        provider.fetch()
    assert requests_mock.call_count == 0


def test_http_errors_become_fetch_errors(requests_mock):
    requests_mock.get(DARKSKY_URL, status_code=500, text="server error")

    with pytest.raises(FetchError):
        darksky().fetch()


def test_quota_exceeded(requests_mock):
    requests_mock.get(DARKSKY_URL, status_code=429, text="daily usage limit exceeded")

    with pytest.raises(QuotaExceeded):
        darksky().fetch()


def test_invalid_json(requests_mock):
    requests_mock.get(DARKSKY_URL, text="<html>not json</html>")

    with pytest.raises(FetchError):
        darksky().fetch()


@pytest.mark.parametrize("provider_class", [DarkSkyProvider, WeatherUndergroundProvider, OpenMeteoProvider])
def test_declared_fields_belong_to_vocabulary(provider_class):
    for name in provider_class.report_fields + provider_class.forecast_fields:
        assert name in FIELDS
    assert "Temperature" in provider_class.report_fields


def test_unknown_field_declaration_is_rejected():
    with pytest.raises(TypeError):

        class _BrokenProvider(WeatherProvider):
            report_fields = ("Temperature", "Snowfall")


@pytest.mark.parametrize(
    "service, expected",
    [("darksky", DarkSkyProvider), ("Dark Sky", DarkSkyProvider), ("Weather Underground", WeatherUndergroundProvider)],
)
def test_registry_normalizes_service_names(service, expected):
    provider = create_provider(StationConfig.from_mapping({"service": service, "key": "k", "location": "Berlin"}))

    assert isinstance(provider, expected)


def test_registry_rejects_unknown_service():
    with pytest.raises(ConfigurationError):
        create_provider(StationConfig.from_mapping({"service": "yahoo"}))
    assert "yahoo" not in PROVIDERS
