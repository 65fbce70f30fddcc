"""Data model definitions — catch records and environmental snapshots."""

import math
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any


class InvalidRecordError(ValueError):
    """A catch record failed validation."""


@dataclass(frozen=True)
class Coordinates:
    """A point on the globe in decimal degrees."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class Record:
    """A single logged catch. Immutable; only created and deleted."""

    id: str  # uuid4 hex, stable for the record's lifetime
    timestamp: date  # Day of the catch
    location: str  # Trimmed, non-empty
    species: str  # Trimmed, non-empty
    weight: float  # Kilograms, > 0

    @classmethod
    def create(
        cls, timestamp: date, location: str, species: str, weight: float
    ) -> "Record":
        """Build a new record with a fresh id and trimmed text fields.

        Raises:
            InvalidRecordError: If location or species is blank, or weight is
                not a positive finite number.
        """
        location = (location or "").strip()
        species = (species or "").strip()
        if not location:
            raise InvalidRecordError("location must not be empty")
        if not species:
            raise InvalidRecordError("species must not be empty")
        try:
            weight = float(weight)
        except (TypeError, ValueError) as e:
            raise InvalidRecordError(f"weight is not a number: {weight!r}") from e
        if not math.isfinite(weight) or weight <= 0:
            raise InvalidRecordError(f"weight must be positive, got {weight}")
        if isinstance(timestamp, datetime):
            timestamp = timestamp.date()
        return cls(
            id=uuid.uuid4().hex,
            timestamp=timestamp,
            location=location,
            species=species,
            weight=weight,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.timestamp.isoformat(),
            "location": self.location,
            "species": self.species,
            "weight": self.weight,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Record":
        """Rebuild a record from its stored form.

        ``date`` may be a plain ISO date or a full ISO datetime (older stores
        wrote timestamps); only the calendar date is kept.
        """
        raw_date = str(data["date"])
        if len(raw_date) > 10:
            timestamp = datetime.fromisoformat(raw_date).date()
        else:
            timestamp = date.fromisoformat(raw_date)
        weight = float(data["weight"])
        if weight <= 0:
            raise InvalidRecordError(f"stored weight must be positive, got {weight}")
        return cls(
            id=str(data["id"]),
            timestamp=timestamp,
            location=str(data["location"]),
            species=str(data["species"]),
            weight=weight,
        )


@dataclass(frozen=True)
class WeatherSnapshot:
    """Current conditions from the weather source. Replaced wholesale on refresh."""

    temperature: float  # °C
    weather_code: int  # WMO weather interpretation code
    humidity: int  # Relative humidity (%)
    wind_speed: float  # km/h at 10 m
    coordinates: Coordinates  # Where the reading was taken
    fetched_at: datetime  # UTC


@dataclass(frozen=True)
class MoonSnapshot:
    """Lunar data from the solunar source. Replaced wholesale on refresh."""

    phase: int  # 0-7: New, Waxing Crescent, ..., Waning Crescent
    illumination: float  # Lit fraction, 0..1
    moonrise: str | None  # "HH:MM" local time, if the moon rises that day
    moonset: str | None  # "HH:MM" local time, if the moon sets that day
    fetched_at: datetime  # UTC
    phase_name: str | None = None  # Label as reported by the source, title-cased
