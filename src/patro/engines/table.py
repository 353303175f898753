"""
patro.engines.table
-------------------
The calendar table provider: a pure data payload describing a Bikram Sambat
year range. The conversion engine trusts the table structurally only after
``validate()``; whether ``start_jdn`` really is Baisakh 1 of ``start_year``
can only be pinned by golden dates (see tests/test_conversion.py).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Sequence, Tuple

from patro.core.errors import CalendarTableError


@dataclass(frozen=True)
class CalendarTable:
    start_year: int
    # JDN of Baisakh 1 of start_year (inclusive)
    start_jdn: int
    # Sorted years that have 366 days
    leap_years: Tuple[int, ...]
    month_lengths: Mapping[int, Tuple[int, ...]] = field(repr=False)

    @classmethod
    def from_month_lengths(
        cls,
        start_year: int,
        start_jdn: int,
        month_lengths: Mapping[int, Sequence[int]],
    ) -> "CalendarTable":
        """Build a table, deriving the leap list from the year totals."""
        rows = {int(y): tuple(int(v) for v in row) for y, row in month_lengths.items()}
        leaps = tuple(sorted(y for y, row in rows.items() if sum(row) == 366))
        return cls(start_year=start_year, start_jdn=start_jdn, leap_years=leaps, month_lengths=rows)

    @property
    def end_year(self) -> int:
        return max(self.month_lengths)

    @property
    def end_jdn(self) -> int:
        """JDN of the last day of end_year."""
        total = sum(sum(self.month_lengths[y]) for y in range(self.start_year, self.end_year + 1))
        return self.start_jdn + total - 1

    def year_length(self, year: int) -> int:
        return sum(self.month_lengths[year])

    def validate(self) -> "CalendarTable":
        years = sorted(self.month_lengths)
        if not years:
            raise CalendarTableError("Calendar table has no years")
        if years[0] != self.start_year:
            raise CalendarTableError(f"Table starts at {years[0]}, expected start_year={self.start_year}")
        if years != list(range(years[0], years[-1] + 1)):
            raise CalendarTableError("Calendar table has missing years")

        for y in years:
            row = self.month_lengths[y]
            if len(row) != 12:
                raise CalendarTableError(f"Year {y}: expected 12 month lengths, got {len(row)}")
            if any(n < 29 or n > 32 for n in row):
                raise CalendarTableError(f"Year {y}: month length out of range {row}")
            total = sum(row)
            if total not in (365, 366):
                raise CalendarTableError(f"Year {y}: {total} days; only 365/366-day years are supported")

        if list(self.leap_years) != sorted(self.leap_years):
            raise CalendarTableError("leap_years must be sorted")
        derived = [y for y in years if sum(self.month_lengths[y]) == 366]
        if list(self.leap_years) != derived:
            raise CalendarTableError(
                f"leap_years disagree with month lengths: listed {list(self.leap_years)}, derived {derived}"
            )
        return self


def default_table() -> CalendarTable:
    from .bs_data import MONTH_LENGTHS, START_JDN, START_YEAR
    return CalendarTable.from_month_lengths(START_YEAR, START_JDN, MONTH_LENGTHS).validate()


def load_table(path: str | Path) -> CalendarTable:
    """
    Load a table from JSON:
      {"startYear": 2000, "startJulianDay": 2430829,
       "leapYears": [2003, ...], "monthLengths": {"2000": [30, 32, ...], ...}}
    ``leapYears`` is optional and derived when absent.
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    try:
        rows: Dict[int, Tuple[int, ...]] = {
            int(y): tuple(int(v) for v in row) for y, row in raw["monthLengths"].items()
        }
        start_year = int(raw["startYear"])
        start_jdn = int(raw["startJulianDay"])
    except (KeyError, TypeError, ValueError) as e:
        raise CalendarTableError(f"Malformed calendar table {path}: {e}") from e

    if "leapYears" in raw:
        table = CalendarTable(
            start_year=start_year,
            start_jdn=start_jdn,
            leap_years=tuple(int(y) for y in raw["leapYears"]),
            month_lengths=rows,
        )
    else:
        table = CalendarTable.from_month_lengths(start_year, start_jdn, rows)
    return table.validate()
