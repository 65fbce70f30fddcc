"""Session state — the authoritative catch log plus environmental enrichment.

The Session owns the record list and the latest weather/moon snapshots.
Commands mutate the in-memory state first, notify subscribers, then persist;
a failed write is compensated by reverting the in-memory change and
notifying again. Enrichment runs independently and never touches records.

Everything runs on one asyncio event loop. State is only mutated between
awaits, so no locking is needed.
"""

import asyncio
import logging
from datetime import date
from typing import Callable

from biteday import lunar, scoring
from biteday.config import Settings
from biteday.geolocate import IpLocator
from biteday.models import InvalidRecordError, MoonSnapshot, Record, WeatherSnapshot
from biteday.moon import MoonSource
from biteday.store import JsonFileStore, RecordStore, StoreError
from biteday.weather import WeatherSource, condition_for, icon_for

logger = logging.getLogger(__name__)

Subscriber = Callable[["Session"], None]


class Session:
    """Application state shared by every screen of one run."""

    def __init__(
        self,
        store: RecordStore,
        weather_source: WeatherSource,
        moon_source: MoonSource,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._weather_source = weather_source
        self._moon_source = moon_source
        self._clock = clock

        self._records: list[Record] = []  # insertion order
        self._weather: WeatherSnapshot | None = None
        self._moon: MoonSnapshot | None = None
        self._fallback_phase = lunar.phase_index(clock())
        self._loading = False
        self._refreshing = 0  # in-flight refresh() calls
        self._error: str | None = None

        self._subscribers: list[Subscriber] = []
        self._background: set[asyncio.Task] = set()
        # Refresh generations: a snapshot only lands if it is newer than the
        # one already stored in that field.
        self._generation = 0
        self._weather_generation = 0
        self._moon_generation = 0

    # ---- Subscription ----

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback run synchronously after every state change.

        Returns:
            A function that removes the callback again.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self)
            except Exception:
                logger.exception("session subscriber %r failed", callback)

    # ---- Projections ----

    @property
    def records(self) -> tuple[Record, ...]:
        """All records, newest catch first."""
        return tuple(sorted(self._records, key=lambda r: r.timestamp, reverse=True))

    @property
    def count(self) -> int:
        return len(self._records)

    @property
    def total_weight(self) -> float:
        return sum((r.weight for r in self._records), 0.0)

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def refreshing(self) -> bool:
        return self._refreshing > 0

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def weather(self) -> WeatherSnapshot | None:
        return self._weather

    @property
    def moon(self) -> MoonSnapshot | None:
        return self._moon

    @property
    def has_weather(self) -> bool:
        return self._weather is not None

    @property
    def weather_condition(self) -> str:
        if self._weather is None:
            return "Loading..." if self.refreshing else "Unavailable"
        return condition_for(self._weather.weather_code)

    @property
    def weather_icon(self) -> str:
        if self._weather is None:
            return "🌤️"
        return icon_for(self._weather.weather_code)

    @property
    def temperature(self) -> int:
        return round(self._weather.temperature) if self._weather else 0

    @property
    def humidity(self) -> int:
        return self._weather.humidity if self._weather else 0

    @property
    def wind_speed(self) -> float:
        return self._weather.wind_speed if self._weather else 0.0

    @property
    def moon_phase(self) -> int:
        """Phase from the moon source if fetched, else the local approximation."""
        if self._moon is not None:
            return self._moon.phase
        return self._fallback_phase

    @property
    def moon_phase_name(self) -> str:
        if self._moon is not None and self._moon.phase_name:
            return self._moon.phase_name
        return lunar.phase_name(self.moon_phase)

    @property
    def moon_phase_icon(self) -> str:
        return lunar.phase_icon(self.moon_phase)

    @property
    def moon_illumination(self) -> float:
        if self._moon is not None:
            return self._moon.illumination
        return lunar.illumination(self._clock())

    @property
    def score(self) -> scoring.ScoreBreakdown:
        return scoring.breakdown(self.moon_phase, self._weather)

    @property
    def fishing_index(self) -> int:
        return scoring.fishing_index(self.moon_phase, self._weather)

    @property
    def fishing_index_label(self) -> str:
        return scoring.index_label(self.fishing_index)

    # ---- Commands ----

    async def initialize(self) -> None:
        """Load stored records and start background enrichment.

        ``loading`` covers the local load only; enrichment keeps running after
        this returns (see ``settle``).
        """
        self._loading = True
        self._error = None
        self._notify()
        try:
            await self._store.initialize()
            self._records = list(await self._store.load())
        except (StoreError, OSError) as e:
            logger.warning("loading records failed: %s", e)
            self._records = []
            self._error = f"Failed to load data: {e}"
        self._update_fallback_phase()
        self._spawn(self.refresh())
        self._loading = False
        self._notify()

    async def settle(self) -> None:
        """Wait for background enrichment started by ``initialize``."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def refresh(self) -> None:
        """Recompute the fallback phase and re-fetch weather and moon data.

        Both sources run concurrently. A failed source keeps its previous
        snapshot; nothing is raised to the caller.
        """
        self._generation += 1
        generation = self._generation
        self._refreshing += 1
        self._notify()
        try:
            self._update_fallback_phase()
            weather, moon = await asyncio.gather(
                self._weather_source.fetch_current(),
                self._moon_source.fetch_default(),
                return_exceptions=True,
            )
            self._apply_weather(weather, generation)
            self._apply_moon(moon, generation)
        finally:
            self._refreshing -= 1
            self._notify()

    async def add_record(
        self, timestamp: date, location: str, species: str, weight: float
    ) -> bool:
        """Add a catch, shown immediately and rolled back if it cannot be saved."""
        try:
            record = Record.create(timestamp, location, species, weight)
        except InvalidRecordError as e:
            self._error = f"Invalid entry: {e}"
            self._notify()
            return False

        self._records.append(record)
        self._notify()

        success = await self._persist()
        if not success:
            logger.warning("rolling back add of %s", record.id)
            self._records.remove(record)
            self._error = "Failed to save entry"
            self._notify()
        return success

    async def delete_record(self, record_id: str) -> bool:
        """Delete a catch; on a failed save it is restored at its old position."""
        index = next(
            (i for i, r in enumerate(self._records) if r.id == record_id), None
        )
        if index is None:
            return False

        removed = self._records.pop(index)
        self._notify()

        success = await self._persist()
        if not success:
            logger.warning("rolling back delete of %s", record_id)
            self._records.insert(index, removed)
            self._error = "Failed to delete entry"
            self._notify()
        return success

    def clear_error(self) -> None:
        self._error = None
        self._notify()

    # ---- Internals ----

    async def _persist(self) -> bool:
        try:
            return await self._store.save(list(self._records))
        except (StoreError, OSError) as e:
            logger.warning("store write raised: %s", e)
            return False

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _update_fallback_phase(self) -> None:
        self._fallback_phase = lunar.phase_index(self._clock())

    def _apply_weather(self, result, generation: int) -> None:
        if isinstance(result, BaseException):
            logger.debug("weather source raised: %r", result)
            return
        if result is None or generation <= self._weather_generation:
            return
        self._weather = result
        self._weather_generation = generation

    def _apply_moon(self, result, generation: int) -> None:
        if isinstance(result, BaseException):
            logger.debug("moon source raised: %r", result)
            return
        if result is None or generation <= self._moon_generation:
            return
        self._moon = result
        self._moon_generation = generation


def create_session(settings: Settings) -> Session:
    """Wire a Session to the JSON store and the live data sources."""
    locator = IpLocator(
        enabled=settings.location_enabled, timeout=settings.location_timeout
    )
    return Session(
        store=JsonFileStore(settings.data_file, key=settings.storage_key),
        weather_source=WeatherSource(
            locator=locator,
            default_coordinates=settings.default_coordinates,
            timeout=settings.http_timeout,
            location_timeout=settings.location_timeout,
        ),
        moon_source=MoonSource(
            default_coordinates=settings.default_coordinates,
            timeout=settings.http_timeout,
        ),
    )
