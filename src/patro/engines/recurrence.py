"""
patro.engines.recurrence
------------------------
Annual "lunar birthday" instances anchored to a tithi.

For a target Gregorian year Y the instance is the last day of Y whose tithi
equals the birth tithi and whose day-of-year is strictly less than the
original birth day-of-year (closest-before, not closest-overall).

When no such day exists in Y (birth very early in the year, or the tithi was
not hit by any civil day in that window) the year is skipped: it yields no
instance. The alternative of falling back to the last occurrence of Y is not
used anywhere, because it can put two instances a few days apart across a
year boundary.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from patro.core.time import day_of_year
from .tithi import tithi_index, tithi_number

DEFAULT_MAX_YEARS = 10


def _check_tithi(n: int) -> None:
    if not 1 <= n <= 30:
        raise ValueError(f"tithi number must be in 1..30, got {n}")


def resolve_lunar_occurrence(year: int, tithi: int, original_day_of_year: int) -> Optional[date]:
    """The single instance for ``year``, or None when the year is skipped."""
    _check_tithi(tithi)
    best: Optional[date] = None
    for d in tithi_index(year)[tithi]:
        if day_of_year(d) >= original_day_of_year:
            break
        best = d
    return best


def occurrences_by_year(year_from: int, year_to: int, tithi: int, original_day_of_year: int) -> List[Optional[date]]:
    """One entry per year in [year_from, year_to]; None marks a skipped year."""
    return [resolve_lunar_occurrence(y, tithi, original_day_of_year) for y in range(year_from, year_to + 1)]


def next_lunar_occurrences(
    original: date,
    tithi: Optional[int] = None,
    k: int = 3,
    from_date: Optional[date] = None,
    *,
    max_years: int = DEFAULT_MAX_YEARS,
    original_day_of_year: Optional[int] = None,
) -> List[date]:
    """
    The next ``k`` instances strictly after ``from_date`` (default: today).

    ``tithi`` defaults to the tithi of ``original``. Scanning covers the years
    from_date.year .. from_date.year + max_years - 1, so fewer than k dates
    come back when too many of those years are skipped. ``original_day_of_year``
    overrides the day-of-year taken from ``original``.
    """
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")
    if tithi is None:
        tithi = tithi_number(original)
    _check_tithi(tithi)
    if from_date is None:
        from_date = date.today()

    doy = original_day_of_year if original_day_of_year is not None else day_of_year(original)
    out: List[date] = []
    for y in range(from_date.year, from_date.year + max_years):
        if len(out) >= k:
            break
        occ = resolve_lunar_occurrence(y, tithi, doy)
        if occ is not None and occ > from_date:
            out.append(occ)
    return out
