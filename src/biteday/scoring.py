"""Fishing index — a 0-100 score from moon phase, weather code and wind."""

from dataclasses import dataclass

from biteday.models import WeatherSnapshot

NEUTRAL_WIND_KMH = 10.0
DEFAULT_WEATHER_SCORE = 30

# (inclusive upper bound on WMO code, score), evaluated in order.
_WEATHER_BANDS: tuple[tuple[int, int], ...] = (
    (2, 32),  # Clear to partly cloudy
    (3, 38),  # Overcast
    (48, 28),  # Fog
    (67, 25),  # Drizzle / rain
    (77, 15),  # Snow
    (82, 22),  # Rain showers
)
_SEVERE_WEATHER_SCORE = 10  # Snow showers, thunderstorms

_LABELS: tuple[tuple[int, str], ...] = (
    (80, "Excellent"),
    (60, "Good"),
    (40, "Fair"),
    (20, "Poor"),
)


@dataclass(frozen=True)
class ScoreBreakdown:
    """Components of a fishing index evaluation."""

    phase: int
    weather: int
    wind: int
    total: int
    label: str


def phase_score(phase: int) -> int:
    """New and full moon score best, quarters next, crescents/gibbous last."""
    if phase in (0, 4):
        return 40
    if phase in (2, 6):
        return 25
    return 15


def weather_score(weather: WeatherSnapshot | None) -> int:
    if weather is None:
        return DEFAULT_WEATHER_SCORE
    for upper, score in _WEATHER_BANDS:
        if weather.weather_code <= upper:
            return score
    return _SEVERE_WEATHER_SCORE


def wind_score(wind_kmh: float) -> int:
    if 5 <= wind_kmh <= 15:
        return 20
    if wind_kmh < 5:
        return 15
    if wind_kmh <= 25:
        return 10
    return 5


def breakdown(phase: int, weather: WeatherSnapshot | None) -> ScoreBreakdown:
    """Evaluate every component of the fishing index.

    Args:
        phase: Effective moon phase index (0-7).
        weather: Latest weather snapshot, or None if never fetched.

    Returns:
        ScoreBreakdown with the clamped total and its label.
    """
    wind = weather.wind_speed if weather is not None else NEUTRAL_WIND_KMH
    p = phase_score(phase)
    w = weather_score(weather)
    v = wind_score(wind)
    total = max(0, min(100, p + w + v))
    return ScoreBreakdown(phase=p, weather=w, wind=v, total=total, label=index_label(total))


def fishing_index(phase: int, weather: WeatherSnapshot | None) -> int:
    return breakdown(phase, weather).total


def index_label(score: int) -> str:
    for threshold, label in _LABELS:
        if score >= threshold:
            return label
    return "Bad"
