# tests/test_recurrence.py

from datetime import date

import pytest

import patro
from patro.core.time import day_of_year
from patro.engines.recurrence import (
    next_lunar_occurrences,
    occurrences_by_year,
    resolve_lunar_occurrence,
)
from patro.engines.tithi import tithi_number

BIRTH = date(1991, 6, 26)  # tithi 3, day-of-year 177


def test_resolve_closest_before():
    assert resolve_lunar_occurrence(2025, 3, 177) == date(2025, 6, 10)


def test_resolved_day_is_strictly_before_and_matches():
    for y in range(2024, 2040):
        d = resolve_lunar_occurrence(y, 3, 177)
        assert d is not None
        assert d.year == y
        assert tithi_number(d) == 3
        assert day_of_year(d) < 177
        # no later qualifying day in that window
        assert 177 - day_of_year(d) <= 30


def test_year_without_qualifying_day_is_skipped():
    # only Jan 1 lies before day-of-year 2, and it never carries tithi 24 here
    assert occurrences_by_year(2024, 2030, 24, 2) == [None] * 7
    assert resolve_lunar_occurrence(2025, 1, 1) is None


def test_next_occurrences():
    got = next_lunar_occurrences(BIRTH, 3, k=3, from_date=date(2026, 10, 18))
    assert got == [date(2027, 6, 18), date(2028, 6, 7), date(2029, 5, 27)]
    assert patro.next_lunar_birthdays(BIRTH, k=3, from_date=date(2026, 10, 18)) == got


def test_next_occurrences_spacing():
    got = next_lunar_occurrences(BIRTH, k=8, from_date=date(2024, 1, 1))
    assert len(got) == 8
    for a, b in zip(got, got[1:]):
        assert a < b
        assert 320 <= (b - a).days <= 400


def test_next_occurrences_strictly_after_from_date():
    # the 2025 instance is excluded when from_date is that very day
    got = next_lunar_occurrences(BIRTH, 3, k=1, from_date=date(2025, 6, 10))
    assert got and got[0] > date(2025, 6, 10)
    assert got[0].year == 2026


def test_skipped_years_do_not_count():
    got = next_lunar_occurrences(date(1990, 1, 12), 10, k=2, from_date=date(2025, 12, 1))
    assert got == [date(2026, 1, 10), date(2029, 1, 6)]


def test_fewer_than_k_when_window_exhausted():
    assert next_lunar_occurrences(date(1990, 1, 2), 24, k=3, from_date=date(2025, 1, 1)) == []


def test_day_of_year_override():
    got = next_lunar_occurrences(date(1990, 1, 12), 3, k=1, from_date=date(2024, 12, 31), original_day_of_year=177)
    assert got == [date(2025, 6, 10)]


def test_invalid_arguments():
    with pytest.raises(ValueError):
        resolve_lunar_occurrence(2025, 0, 100)
    with pytest.raises(ValueError):
        next_lunar_occurrences(BIRTH, 31)
    with pytest.raises(ValueError):
        next_lunar_occurrences(BIRTH, 3, k=-1)
    assert next_lunar_occurrences(BIRTH, 3, k=0, from_date=date(2025, 1, 1)) == []
