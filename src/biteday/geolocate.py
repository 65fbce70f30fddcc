"""Best-effort device location lookup."""

import logging
from typing import Protocol

import httpx

from biteday.models import Coordinates

logger = logging.getLogger(__name__)

_IP_LOOKUP_URL = "https://ipapi.co/json/"
_HEADERS = {"User-Agent": "BiteDay/1.0"}


class Locator(Protocol):
    async def locate(self) -> Coordinates | None:
        """Return the device position, or None if unavailable or not permitted."""
        ...


class IpLocator:
    """Approximate position from the public IP address.

    Low accuracy, which is enough for a weather lookup. Disabled locators and
    refused lookups (HTTP 401/403/429) answer None, the same way a denied
    location permission would.
    """

    def __init__(
        self,
        enabled: bool = True,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.enabled = enabled
        self.timeout = timeout
        self._transport = transport

    async def locate(self) -> Coordinates | None:
        if not self.enabled:
            return None
        async with httpx.AsyncClient(
            timeout=self.timeout, headers=_HEADERS, transport=self._transport
        ) as client:
            resp = await client.get(_IP_LOOKUP_URL)
        if resp.status_code in (401, 403, 429):
            logger.info("location lookup refused: HTTP %s", resp.status_code)
            return None
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            logger.info("location lookup returned %s, not an object", type(data).__name__)
            return None
        if data.get("error"):
            logger.info("location lookup failed: %s", data.get("reason", "unknown"))
            return None
        return Coordinates(latitude=float(data["latitude"]), longitude=float(data["longitude"]))
