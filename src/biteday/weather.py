"""Weather source — current conditions from the Open-Meteo forecast API."""

import asyncio
import logging
from datetime import datetime
from typing import Any

import httpx
from pytz import utc

from biteday.config import DEFAULT_COORDINATES
from biteday.geolocate import Locator
from biteday.models import Coordinates, WeatherSnapshot

logger = logging.getLogger(__name__)

FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
_CURRENT_FIELDS = "temperature_2m,relative_humidity_2m,weather_code,wind_speed_10m"

# https://open-meteo.com/en/docs#weathervariables
_CONDITIONS: dict[int, str] = {
    0: "Clear Sky",
    1: "Mainly Clear",
    2: "Partly Cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Foggy",
    51: "Drizzle",
    53: "Drizzle",
    55: "Drizzle",
    56: "Freezing Drizzle",
    57: "Freezing Drizzle",
    61: "Rain",
    63: "Rain",
    65: "Rain",
    66: "Freezing Rain",
    67: "Freezing Rain",
    71: "Snow",
    73: "Snow",
    75: "Snow",
    77: "Snow Grains",
    80: "Rain Showers",
    81: "Rain Showers",
    82: "Rain Showers",
    85: "Snow Showers",
    86: "Snow Showers",
    95: "Thunderstorm",
    96: "Thunderstorm with Hail",
    99: "Thunderstorm with Hail",
}


def condition_for(code: int) -> str:
    """Human-readable label for a WMO weather code."""
    return _CONDITIONS.get(code, "Unknown")


def icon_for(code: int) -> str:
    if code == 0:
        return "☀️"
    if code <= 3:
        return "⛅"
    if code <= 48:
        return "🌫️"
    if code <= 67:
        return "🌧️"
    if code <= 77:
        return "❄️"
    if code <= 82:
        return "🌦️"
    if code <= 86:
        return "🌨️"
    if code >= 95:
        return "⛈️"
    return "🌤️"


def parse_current(data: dict[str, Any], coordinates: Coordinates) -> WeatherSnapshot:
    """Build a WeatherSnapshot from an Open-Meteo ``current`` response.

    Raises:
        KeyError, TypeError, ValueError: If the payload is missing fields.
    """
    current = data["current"]
    return WeatherSnapshot(
        temperature=float(current["temperature_2m"]),
        weather_code=int(current["weather_code"]),
        humidity=int(current["relative_humidity_2m"]),
        wind_speed=float(current["wind_speed_10m"]),
        coordinates=coordinates,
        fetched_at=datetime.now(utc),
    )


class WeatherSource:
    """Fetches current weather at the device position, or a fixed fallback.

    Every call is bounded by ``timeout``; on timeout, HTTP error or a
    malformed payload the fetch answers None instead of raising.
    """

    def __init__(
        self,
        locator: Locator | None = None,
        default_coordinates: Coordinates = DEFAULT_COORDINATES,
        timeout: float = 10.0,
        location_timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.locator = locator
        self.default_coordinates = default_coordinates
        self.timeout = timeout
        self.location_timeout = location_timeout
        self._transport = transport

    async def fetch_current(self) -> WeatherSnapshot | None:
        coordinates = await self._position()
        return await self.fetch_at(coordinates.latitude, coordinates.longitude)

    async def fetch_at(self, lat: float, lon: float) -> WeatherSnapshot | None:
        coordinates = Coordinates(latitude=lat, longitude=lon)
        try:
            data = await asyncio.wait_for(self._get(lat, lon), self.timeout)
            return parse_current(data, coordinates)
        except TimeoutError:
            logger.warning("weather fetch timed out after %.1fs", self.timeout)
        except httpx.HTTPError as e:
            logger.warning("weather fetch failed: %s", e)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("weather payload malformed: %r", e)
        return None

    async def _get(self, lat: float, lon: float) -> dict[str, Any]:
        params = {
            "latitude": lat,
            "longitude": lon,
            "current": _CURRENT_FIELDS,
            "timezone": "auto",
        }
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            resp = await client.get(FORECAST_URL, params=params)
        resp.raise_for_status()
        return resp.json()

    async def _position(self) -> Coordinates:
        """Device position if it resolves in time, else the default coordinate."""
        if self.locator is None:
            return self.default_coordinates
        try:
            position = await asyncio.wait_for(
                self.locator.locate(), self.location_timeout
            )
        except TimeoutError:
            logger.info("geolocation timed out, using default coordinates")
            return self.default_coordinates
        except (httpx.HTTPError, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.info("geolocation failed (%s), using default coordinates", e)
            return self.default_coordinates
        return position or self.default_coordinates
