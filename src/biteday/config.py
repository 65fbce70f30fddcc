"""Runtime configuration read from the environment (``.env`` supported by entry points)."""

import os
from dataclasses import dataclass
from pathlib import Path

from biteday.models import Coordinates

# Tokyo, used whenever device location is unavailable.
DEFAULT_COORDINATES = Coordinates(latitude=35.6762, longitude=139.6503)


def _flag(value: str) -> bool:
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    data_file: Path
    storage_key: str = "catch_entries"
    default_coordinates: Coordinates = DEFAULT_COORDINATES
    http_timeout: float = 10.0  # seconds per data-source fetch
    location_timeout: float = 10.0  # seconds to wait for geolocation
    location_enabled: bool = True
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``BITEDAY_*`` environment variables."""
        env = os.environ
        return cls(
            data_file=Path(
                env.get("BITEDAY_DATA_FILE") or Path.home() / ".biteday" / "store.json"
            ).expanduser(),
            storage_key=env.get("BITEDAY_STORAGE_KEY") or "catch_entries",
            default_coordinates=Coordinates(
                latitude=float(
                    env.get("BITEDAY_DEFAULT_LAT", DEFAULT_COORDINATES.latitude)
                ),
                longitude=float(
                    env.get("BITEDAY_DEFAULT_LON", DEFAULT_COORDINATES.longitude)
                ),
            ),
            http_timeout=float(env.get("BITEDAY_HTTP_TIMEOUT", "10")),
            location_timeout=float(env.get("BITEDAY_LOCATION_TIMEOUT", "10")),
            location_enabled=_flag(env.get("BITEDAY_LOCATION_ENABLED", "1")),
            log_level=(env.get("BITEDAY_LOG_LEVEL") or "WARNING").upper(),
        )
