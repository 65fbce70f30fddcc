from datetime import date, timedelta

import pytest

from biteday import lunar


@pytest.mark.parametrize(
    "day, expected",
    [
        (date(2024, 1, 11), 0),  # reference new moon
        (date(2024, 1, 18), 1),
        (date(2024, 1, 19), 2),
        (date(2024, 1, 26), 4),  # ~15 days in: full
        (date(2024, 1, 10), 7),  # day before the reference wraps around
    ],
)
def test_phase_index(day, expected):
    assert lunar.phase_index(day) == expected


def test_phase_index_is_stable_within_a_day():
    today = date.today()
    assert lunar.phase_index() == lunar.phase_index(today)
    assert lunar.phase_index(today) == lunar.phase_index(today)


@pytest.mark.parametrize("day", [date.min, date(1900, 1, 1), date(2100, 12, 31), date.max])
def test_phase_index_never_raises(day):
    assert 0 <= lunar.phase_index(day) <= 7


def test_phase_index_cycles_through_all_phases():
    start = lunar.REFERENCE_NEW_MOON
    seen = {lunar.phase_index(start + timedelta(days=d)) for d in range(30)}
    assert seen == set(range(8))


def test_illumination_new_and_full():
    assert lunar.illumination(date(2024, 1, 11)) == pytest.approx(0.0)
    assert lunar.illumination(date(2024, 1, 26)) > 0.99


def test_names_and_icons_wrap():
    assert lunar.phase_name(4) == "Full Moon"
    assert lunar.phase_name(9) == "Waxing Crescent"
    assert lunar.phase_icon(6) == "🌗"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("New Moon", 0),
        ("Waxing Crescent", 1),
        ("First Quarter", 2),
        ("Waxing Gibbous", 3),
        ("Full Moon", 4),
        ("Waning Gibbous", 5),
        ("Last Quarter", 6),
        ("Third Quarter", 6),
        ("Waning Crescent", 7),
        ("", 0),
        ("eclipse", 0),
    ],
)
def test_phase_from_name(name, expected):
    assert lunar.phase_from_name(name) == expected
