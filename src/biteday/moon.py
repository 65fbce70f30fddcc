"""Moon source — phase, illumination and rise/set times from solunar.org."""

import asyncio
import logging
from datetime import datetime
from typing import Any

import httpx
from pytz import timezone, utc
from timezonefinder import TimezoneFinder

from biteday.config import DEFAULT_COORDINATES
from biteday.lunar import phase_from_name
from biteday.models import Coordinates, MoonSnapshot

logger = logging.getLogger(__name__)

SOLUNAR_URL = "https://api.solunar.org/solunar"

_tf = TimezoneFinder()


def local_now(lat: float, lon: float) -> datetime:
    """Current time in the timezone containing (lat, lon); UTC if none is found."""
    now = datetime.now(utc)
    tz_str = _tf.timezone_at(lat=lat, lng=lon)
    if tz_str is None:
        return now
    return now.astimezone(timezone(tz_str))


def _format_offset(hours: float) -> str:
    if hours == int(hours):
        return str(int(hours))
    return f"{hours:g}"


def solunar_url(lat: float, lon: float, when: datetime) -> str:
    """Build ``/solunar/{lat},{lon},{yyyymmdd},{utc offset hours}``."""
    offset = when.utcoffset()
    hours = offset.total_seconds() / 3600 if offset is not None else 0.0
    return f"{SOLUNAR_URL}/{lat},{lon},{when:%Y%m%d},{_format_offset(hours)}"


def format_phase_name(label: str) -> str | None:
    """Title-case each word of a source phase label; None for a blank label."""
    words = label.split()
    if not words:
        return None
    return " ".join(w[:1].upper() + w[1:].lower() for w in words)


def parse_solunar(data: dict[str, Any]) -> MoonSnapshot:
    """Build a MoonSnapshot from a solunar.org response.

    Raises:
        TypeError, ValueError: If illumination is not numeric.
    """
    label = data.get("moonPhase") or ""
    return MoonSnapshot(
        phase=phase_from_name(label),
        illumination=float(data.get("moonIllumination") or 0.0),
        moonrise=data.get("moonRise"),
        moonset=data.get("moonSet"),
        fetched_at=datetime.now(utc),
        phase_name=format_phase_name(label),
    )


class MoonSource:
    """Fetches lunar data; bounded by ``timeout``, answers None on any failure."""

    def __init__(
        self,
        default_coordinates: Coordinates = DEFAULT_COORDINATES,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.default_coordinates = default_coordinates
        self.timeout = timeout
        self._transport = transport

    async def fetch_default(self) -> MoonSnapshot | None:
        return await self.fetch_at(
            self.default_coordinates.latitude, self.default_coordinates.longitude
        )

    async def fetch_at(self, lat: float, lon: float) -> MoonSnapshot | None:
        try:
            data = await asyncio.wait_for(self._get(lat, lon), self.timeout)
            return parse_solunar(data)
        except TimeoutError:
            logger.warning("moon fetch timed out after %.1fs", self.timeout)
        except httpx.HTTPError as e:
            logger.warning("moon fetch failed: %s", e)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("moon payload malformed: %r", e)
        return None

    async def _get(self, lat: float, lon: float) -> dict[str, Any]:
        url = solunar_url(lat, lon, local_now(lat, lon))
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            resp = await client.get(url)
        resp.raise_for_status()
        return resp.json()
