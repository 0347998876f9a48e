"""Summary: Tests for weather gateways and formatting.

Importance: Ensures provider payloads normalize into snapshots and failures.
Alternatives: Test against the live weather API.
"""

from __future__ import annotations

import io
import urllib.error
from typing import Any

import pytest

import assistpilot.weather as weather_module
from assistpilot.models import GatewayFailure, WeatherSnapshot
from assistpilot.transport import GatewayError, build_url, fetch_json
from assistpilot.weather import (
    MockWeatherGateway,
    OpenWeatherGateway,
    describe_weather,
    format_weather,
    parse_weather_payload,
    weather_emoji,
)

PARIS_PAYLOAD = {
    "name": "Paris",
    "sys": {"country": "FR"},
    "main": {"temp": 18.6, "feels_like": 17.2, "humidity": 70, "pressure": 1012},
    "weather": [{"description": "light rain", "icon": "10d"}],
    "wind": {"speed": 5.0},
    "visibility": 8000,
}


def _gateway() -> OpenWeatherGateway:
    return OpenWeatherGateway("key", "https://weather.example.com/data/2.5/")


def test_parse_weather_payload_converts_units() -> None:
    """Summary: Verify rounding and unit conversion.

    Importance: Wind must be reported in km/h and visibility in km.
    Alternatives: Pass provider units through.
    """

    snapshot = parse_weather_payload(PARIS_PAYLOAD)
    assert isinstance(snapshot, WeatherSnapshot)
    assert snapshot.temperature == 19
    assert snapshot.feels_like == 17
    assert snapshot.wind_speed == 18
    assert snapshot.visibility == 8
    assert snapshot.city == "Paris"
    assert snapshot.country == "FR"


def test_parse_weather_payload_malformed() -> None:
    result = parse_weather_payload({"name": "Paris"})
    assert isinstance(result, GatewayFailure)


@pytest.mark.parametrize(
    "overrides",
    [{"sys": None}, {"main": "warm"}, {"weather": [None]}, {"wind": {"speed": "fast"}}],
)
def test_parse_weather_payload_rejects_bad_shapes(overrides: dict[str, Any]) -> None:
    result = parse_weather_payload({**PARIS_PAYLOAD, **overrides})
    assert isinstance(result, GatewayFailure)
    assert result.message == "Malformed weather payload"


def test_fetch_by_city_builds_metric_request(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[str] = []

    def fake_fetch(url: str, timeout: float = 10) -> dict[str, Any]:
        seen.append(url)
        return PARIS_PAYLOAD

    monkeypatch.setattr(weather_module, "fetch_json", fake_fetch)
    result = _gateway().fetch_by_city("São Paulo")
    assert isinstance(result, WeatherSnapshot)
    assert seen[0].startswith("https://weather.example.com/data/2.5/weather?")
    assert "q=S%C3%A3o+Paulo" in seen[0]
    assert "units=metric" in seen[0]
    assert "appid=key" in seen[0]


def test_fetch_by_city_not_found(monkeypatch: pytest.MonkeyPatch) -> None:
    """Summary: Verify a 404 becomes a readable failure.

    Importance: Users should hear which city could not be found.
    Alternatives: Surface the raw HTTP error.
    """

    def fake_fetch(url: str, timeout: float = 10) -> dict[str, Any]:
        raise GatewayError("HTTP 404: Not Found", status_code=404)

    monkeypatch.setattr(weather_module, "fetch_json", fake_fetch)
    result = _gateway().fetch_by_city("Atlantis")
    assert result == GatewayFailure("City not found: Atlantis", status_code=404)


def test_missing_api_key_fails_without_request(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_fetch(url: str, timeout: float = 10) -> dict[str, Any]:
        raise AssertionError("no request expected")

    monkeypatch.setattr(weather_module, "fetch_json", fake_fetch)
    result = OpenWeatherGateway(None, "https://weather.example.com").fetch_by_coordinates(1.0, 2.0)
    assert isinstance(result, GatewayFailure)


def test_fetch_forecast_returns_list(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_fetch(url: str, timeout: float = 10) -> dict[str, Any]:
        assert "/forecast?" in url
        return {"list": [{"dt": 1}, {"dt": 2}]}

    monkeypatch.setattr(weather_module, "fetch_json", fake_fetch)
    assert _gateway().fetch_forecast("Paris") == [{"dt": 1}, {"dt": 2}]
    assert isinstance(MockWeatherGateway().fetch_forecast("Paris"), GatewayFailure)


def test_formatting_helpers() -> None:
    snapshot = MockWeatherGateway().fetch_by_city("anywhere")
    assert isinstance(snapshot, WeatherSnapshot)
    assert format_weather(snapshot) == "22°C Partly cloudy in New York"
    assert "New York" in describe_weather(snapshot)
    assert weather_emoji("unknown") == "🌤️"


def test_build_url_drops_empty_params() -> None:
    url = build_url("https://api.example.com/v2/", "/everything", {"q": "ai", "category": None, "x": ""})
    assert url == "https://api.example.com/v2/everything?q=ai"


def test_fetch_json_maps_http_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    """Summary: Verify HTTP errors surface as GatewayError with a status code.

    Importance: Gateways branch on status codes such as 404 and 429.
    Alternatives: Inspect urllib exceptions in every gateway.
    """

    def fake_urlopen(request: Any, timeout: float = 10) -> Any:
        raise urllib.error.HTTPError(request.full_url, 429, "Too Many Requests", {}, io.BytesIO())

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
    with pytest.raises(GatewayError) as excinfo:
        fetch_json("https://api.example.com/data")
    assert excinfo.value.status_code == 429
