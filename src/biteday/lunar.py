"""Local lunar-phase approximation — works without any network source."""

import math
from datetime import date

# 2024-01-11 was (approximately) a new moon.
REFERENCE_NEW_MOON = date(2024, 1, 11)
SYNODIC_MONTH = 29.53  # days

PHASE_NAMES: tuple[str, ...] = (
    "New Moon",
    "Waxing Crescent",
    "First Quarter",
    "Waxing Gibbous",
    "Full Moon",
    "Waning Gibbous",
    "Last Quarter",
    "Waning Crescent",
)
PHASE_ICONS: tuple[str, ...] = ("🌑", "🌒", "🌓", "🌔", "🌕", "🌖", "🌗", "🌘")


def _moon_age(today: date | None) -> float:
    """Days into the current synodic month, in [0, SYNODIC_MONTH)."""
    today = today or date.today()
    elapsed = (today - REFERENCE_NEW_MOON).days
    return elapsed % SYNODIC_MONTH


def phase_index(today: date | None = None) -> int:
    """Approximate phase index (0-7) for the given day.

    The synodic month is split into eight equal arcs; the index is the arc
    containing the moon's age. Dates before the reference wrap around.

    Args:
        today: Day to evaluate. Defaults to the current local date.

    Returns:
        Phase index, 0 = new moon, 4 = full moon.
    """
    age = _moon_age(today)
    return math.floor(age / SYNODIC_MONTH * 8) % 8


def illumination(today: date | None = None) -> float:
    """Approximate lit fraction of the lunar disc (0 at new, 1 at full)."""
    age = _moon_age(today)
    return (1 - math.cos(2 * math.pi * age / SYNODIC_MONTH)) / 2


def phase_name(index: int) -> str:
    return PHASE_NAMES[index % 8]


def phase_icon(index: int) -> str:
    return PHASE_ICONS[index % 8]


def phase_from_name(name: str) -> int:
    """Map a phase label such as "Waxing Gibbous" to its index. Unknown → 0."""
    lower = (name or "").lower()
    if "new" in lower:
        return 0
    if "waxing" in lower and "crescent" in lower:
        return 1
    if "first" in lower or ("waxing" in lower and "quarter" in lower):
        return 2
    if "waxing" in lower and "gibbous" in lower:
        return 3
    if "full" in lower:
        return 4
    if "waning" in lower and "gibbous" in lower:
        return 5
    if (
        "last" in lower
        or "third" in lower
        or ("waning" in lower and "quarter" in lower)
    ):
        return 6
    if "waning" in lower and "crescent" in lower:
        return 7
    return 0
