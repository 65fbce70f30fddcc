import asyncio
from datetime import date, datetime

import pytest
from pytz import utc

from biteday.models import Coordinates, MoonSnapshot, Record, WeatherSnapshot
from biteday.session import Session

TOKYO = Coordinates(latitude=35.6762, longitude=139.6503)


def make_record(id: str, day: date, species: str = "Bass", weight: float = 1.0) -> Record:
    return Record(id=id, timestamp=day, location="Lake", species=species, weight=weight)


def make_weather(code: int = 3, wind: float = 10.0, temperature: float = 18.4) -> WeatherSnapshot:
    return WeatherSnapshot(
        temperature=temperature,
        weather_code=code,
        humidity=65,
        wind_speed=wind,
        coordinates=TOKYO,
        fetched_at=datetime(2026, 10, 19, 3, 0, tzinfo=utc),
    )


def make_moon(
    phase: int = 4, illumination: float = 0.98, phase_name: str | None = None
) -> MoonSnapshot:
    return MoonSnapshot(
        phase=phase,
        illumination=illumination,
        moonrise="17:02",
        moonset="05:48",
        fetched_at=datetime(2026, 10, 19, 3, 0, tzinfo=utc),
        phase_name=phase_name,
    )


class FakeStore:
    """In-memory store. Queue outcomes in ``save_results``; unqueued saves succeed."""

    def __init__(self, records=None, load_error: Exception | None = None) -> None:
        self.stored: list[Record] = list(records or [])
        self.load_error = load_error
        self.save_results: list[bool] = []
        self.saves: list[list[Record]] = []
        self.initialized = False

    async def initialize(self) -> None:
        self.initialized = True

    async def load(self) -> list[Record]:
        await asyncio.sleep(0)
        if self.load_error is not None:
            raise self.load_error
        return list(self.stored)

    async def save(self, records) -> bool:
        records = list(records)
        self.saves.append(records)
        await asyncio.sleep(0)
        ok = self.save_results.pop(0) if self.save_results else True
        if ok:
            self.stored = records
        return ok

    async def clear(self) -> bool:
        self.stored = []
        return True


class FakeSource:
    """Stands in for WeatherSource and MoonSource.

    Each call consumes the next queued result: a snapshot, None, an exception
    (raised) or an async callable (awaited for its result). An empty queue
    answers None.
    """

    def __init__(self, *results) -> None:
        self.results = list(results)
        self.calls = 0

    async def _next(self):
        self.calls += 1
        result = self.results.pop(0) if self.results else None
        if isinstance(result, BaseException):
            raise result
        if callable(result):
            return await result()
        return result

    async def fetch_current(self):
        return await self._next()

    async def fetch_default(self):
        return await self._next()


@pytest.fixture()
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture()
def weather_source() -> FakeSource:
    return FakeSource()


@pytest.fixture()
def moon_source() -> FakeSource:
    return FakeSource()


@pytest.fixture()
def session(store, weather_source, moon_source) -> Session:
    return Session(
        store=store,
        weather_source=weather_source,
        moon_source=moon_source,
        clock=lambda: date(2026, 10, 19),
    )
