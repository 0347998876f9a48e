"""Summary: Weather gateway interfaces and implementations.

Importance: Encapsulates current-conditions lookups behind a tagged result type.
Alternatives: Call the weather REST API directly from the dispatcher.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from assistpilot.models import GatewayFailure, WeatherSnapshot
from assistpilot.transport import GatewayError, build_url, fetch_json

logger = logging.getLogger(__name__)

WeatherResult = WeatherSnapshot | GatewayFailure

WEATHER_EMOJI = {
    "01d": "☀️",
    "01n": "🌙",
    "02d": "⛅",
    "02n": "☁️",
    "03d": "☁️",
    "03n": "☁️",
    "04d": "☁️",
    "04n": "☁️",
    "09d": "🌧️",
    "09n": "🌧️",
    "10d": "🌦️",
    "10n": "🌧️",
    "11d": "⛈️",
    "11n": "⛈️",
    "13d": "🌨️",
    "13n": "🌨️",
    "50d": "🌫️",
    "50n": "🌫️",
}


class WeatherGateway(ABC):
    """Summary: Abstract interface for weather lookups.

    Importance: Lets the dispatcher work against real and fake providers alike.
    Alternatives: Couple lookups to a single weather API.
    """

    @abstractmethod
    def fetch_by_city(self, city: str) -> WeatherResult:
        """Summary: Fetch current conditions for a city name."""

    @abstractmethod
    def fetch_by_coordinates(self, latitude: float, longitude: float) -> WeatherResult:
        """Summary: Fetch current conditions for a coordinate pair."""

    def fetch_forecast(self, city: str) -> list[dict[str, Any]] | GatewayFailure:
        """Summary: Fetch a multi-day forecast for a city.

        Importance: Optional capability; providers without forecasts report a failure.
        Alternatives: Split forecasts into a separate gateway.
        """

        return GatewayFailure("Forecast not supported by this provider")


class OpenWeatherGateway(WeatherGateway):
    """Summary: Weather gateway backed by the OpenWeatherMap REST API.

    Importance: Provides live conditions in metric units.
    Alternatives: Use a different weather provider.
    """

    def __init__(self, api_key: str | None, base_url: str, timeout: float = 10) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout

    def fetch_by_city(self, city: str) -> WeatherResult:
        """Summary: Fetch current conditions by city name.

        Importance: Backs "weather in <city>" requests.
        Alternatives: Geocode the city first and query by coordinates.
        """

        result = self._request("weather", {"q": city})
        if isinstance(result, GatewayFailure) and result.status_code == 404:
            logger.warning("City not found: %s", city)
            return GatewayFailure(f"City not found: {city}", status_code=404)
        if isinstance(result, GatewayFailure):
            return result
        return parse_weather_payload(result)

    def fetch_by_coordinates(self, latitude: float, longitude: float) -> WeatherResult:
        """Summary: Fetch current conditions by coordinates.

        Importance: Backs "weather here" requests.
        Alternatives: Reverse-geocode to a city and query by name.
        """

        result = self._request("weather", {"lat": latitude, "lon": longitude})
        if isinstance(result, GatewayFailure):
            return result
        return parse_weather_payload(result)

    def fetch_forecast(self, city: str) -> list[dict[str, Any]] | GatewayFailure:
        """Summary: Fetch the 5-day forecast list for a city.

        Importance: Supports "forecast for tomorrow" style questions.
        Alternatives: Use the one-call API for hourly data.
        """

        result = self._request("forecast", {"q": city})
        if isinstance(result, GatewayFailure):
            return result
        forecast = result.get("list") or []
        if not isinstance(forecast, list):
            return GatewayFailure("Malformed forecast payload")
        return forecast

    def _request(self, path: str, params: dict[str, Any]) -> dict[str, Any] | GatewayFailure:
        if not self._api_key:
            return GatewayFailure("Weather API key is not configured")
        url = build_url(
            self._base_url, path, {**params, "appid": self._api_key, "units": "metric"}
        )
        try:
            return fetch_json(url, timeout=self._timeout)
        except GatewayError as exc:
            logger.error("Weather request failed: %s", exc)
            return GatewayFailure(f"Weather API error: {exc}", status_code=exc.status_code)


class MockWeatherGateway(WeatherGateway):
    """Summary: Deterministic weather gateway for demos and tests.

    Importance: Enables offline workflows and repeatable tests.
    Alternatives: Record and replay real API responses.
    """

    def fetch_by_city(self, city: str) -> WeatherResult:
        return mock_weather_snapshot()

    def fetch_by_coordinates(self, latitude: float, longitude: float) -> WeatherResult:
        return mock_weather_snapshot()


def parse_weather_payload(data: dict[str, Any]) -> WeatherResult:
    """Summary: Normalize an OpenWeatherMap payload.

    Importance: Converts wind to km/h and visibility to km, and rejects malformed bodies.
    Alternatives: Pass provider JSON through unchanged.
    """

    try:
        main = data["main"]
        condition = data["weather"][0]
        visibility = data.get("visibility")
        return WeatherSnapshot(
            temperature=round(main["temp"]),
            description=condition["description"],
            humidity=int(main["humidity"]),
            wind_speed=round(data["wind"]["speed"] * 3.6),
            city=data["name"],
            country=data.get("sys", {}).get("country", ""),
            icon=condition["icon"],
            feels_like=round(main["feels_like"]),
            pressure=int(main["pressure"]),
            visibility=visibility / 1000 if visibility else 0,
        )
    except (KeyError, IndexError, TypeError, ValueError, AttributeError) as exc:
        logger.error("Malformed weather payload: %s", exc)
        return GatewayFailure("Malformed weather payload")


def mock_weather_snapshot() -> WeatherSnapshot:
    """Summary: Return the fixed demo weather snapshot.

    Importance: Backs offline mode when the live API is unreachable.
    Alternatives: Return no data while offline.
    """

    return WeatherSnapshot(
        temperature=22,
        description="partly cloudy",
        humidity=65,
        wind_speed=12,
        city="New York",
        country="US",
        icon="02d",
        feels_like=24,
        pressure=1013,
        visibility=10,
    )


def weather_emoji(icon: str) -> str:
    return WEATHER_EMOJI.get(icon, "🌤️")


def format_weather(snapshot: WeatherSnapshot) -> str:
    """Summary: One-line weather summary.

    Importance: Used for compact chat replies.
    Alternatives: Let clients format snapshots.
    """

    description = snapshot.description[:1].upper() + snapshot.description[1:]
    return f"{snapshot.temperature}°C {description} in {snapshot.city}"


def describe_weather(snapshot: WeatherSnapshot) -> str:
    """Summary: Multi-line weather summary with feels-like, humidity, and wind.

    Importance: Used for detailed chat and CLI replies.
    Alternatives: Render a table in the client.
    """

    return (
        f"{weather_emoji(snapshot.icon)} {snapshot.temperature}°C {snapshot.description} "
        f"in {snapshot.city}\n"
        f"Feels like: {snapshot.feels_like}°C\n"
        f"Humidity: {snapshot.humidity}%\n"
        f"Wind: {snapshot.wind_speed} km/h"
    )
