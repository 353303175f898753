"""
patro.engines.conversion
------------------------
Table-driven Gregorian <-> Bikram Sambat conversion through Julian Day Numbers.

Gregorian <-> JDN uses the closed-form Fliegel-Van Flandern pair in
patro.core.time. BS <-> JDN walks the sorted leap-year list in blocks of
365-day years closed by one 366-day year, then sums month lengths.

The total entry points (to_nepali / to_gregorian) never raise for an
out-of-range date: they log a warning and return FALLBACK_NEPALI /
FALLBACK_GREGORIAN. Use the strict JDN methods to get a ConversionError.
"""

from __future__ import annotations

import logging
from bisect import bisect_left
from datetime import date
from typing import Any, Dict, Optional, Tuple

from patro.core.errors import ConversionError
from patro.core.time import from_jdn, to_jdn
from patro.core.types import NepaliDate
from .table import CalendarTable

logger = logging.getLogger(__name__)

# Returned by the total conversions when the input is outside the table.
FALLBACK_NEPALI = NepaliDate(2082, 8, 1)
FALLBACK_GREGORIAN = date(2025, 11, 7)


class DateConversionEngine:
    """Stateless converter over one validated CalendarTable."""

    def __init__(self, table: CalendarTable, *, name: str = "bs"):
        self.table = table
        self.name = name

    def info(self) -> Dict[str, Any]:
        first, last = self.supported_range()
        return {
            "name": self.name,
            "start_year": self.table.start_year,
            "end_year": self.table.end_year,
            "start_jdn": self.table.start_jdn,
            "first_date": first.isoformat(),
            "last_date": last.isoformat(),
        }

    # ---------------------------------------------------------
    # Table queries
    # ---------------------------------------------------------
    def supported_range(self) -> Tuple[date, date]:
        """First and last Gregorian dates covered by the table."""
        return from_jdn(self.table.start_jdn), from_jdn(self.table.end_jdn)

    def month_length(self, year: int, month: int) -> int:
        if year not in self.table.month_lengths:
            raise ConversionError(f"Year {year} BS is outside the table {self.table.start_year}..{self.table.end_year}")
        if not 1 <= month <= 12:
            raise ConversionError(f"Month {month} is not in 1..12")
        return self.table.month_lengths[year][month - 1]

    def is_leap_year(self, year: int) -> bool:
        i = bisect_left(self.table.leap_years, year)
        return i < len(self.table.leap_years) and self.table.leap_years[i] == year

    def is_valid(self, n: NepaliDate) -> bool:
        row = self.table.month_lengths.get(n.year)
        if row is None or not 1 <= n.month <= 12:
            return False
        return 1 <= n.day <= row[n.month - 1]

    # ---------------------------------------------------------
    # Forward: BS date to JDN (strict)
    # ---------------------------------------------------------
    def nepali_to_jdn(self, n: NepaliDate) -> int:
        if not self.is_valid(n):
            raise ConversionError(
                f"{n} is not a valid BS date in {self.table.start_year}..{self.table.end_year}"
            )

        t = self.table
        d = t.start_jdn - 1
        y = t.start_year

        # Whole blocks: (ly - y) common years followed by the leap year ly
        for ly in t.leap_years:
            if ly >= n.year:
                break
            d += (ly - y) * 365 + 366
            y = ly + 1

        d += (n.year - y) * 365
        d += sum(t.month_lengths[n.year][: n.month - 1])
        return d + n.day

    # ---------------------------------------------------------
    # Inverse: JDN to BS date (strict)
    # ---------------------------------------------------------
    def jdn_to_nepali(self, jdn: int) -> NepaliDate:
        t = self.table
        if jdn < t.start_jdn or jdn > t.end_jdn:
            raise ConversionError(
                f"JDN {jdn} ({from_jdn(jdn)}) is outside the table range "
                f"{self.table.start_year}..{self.table.end_year} BS"
            )

        offset = jdn - t.start_jdn  # 0-based day within the table
        y = t.start_year

        for ly in t.leap_years:
            if ly < y:
                continue
            block = (ly - y) * 365 + 366
            if offset < block:
                # Target lies in y..ly; at most (ly - y) whole common years fit
                k = min(offset // 365, ly - y)
                y += k
                offset -= k * 365
                break
            offset -= block
            y = ly + 1
        else:
            k = offset // 365
            y += k
            offset -= k * 365

        row = t.month_lengths[y]
        month = 1
        while offset >= row[month - 1]:
            offset -= row[month - 1]
            month += 1
        return NepaliDate(y, month, offset + 1)

    # ---------------------------------------------------------
    # Total API: never raises for range errors
    # ---------------------------------------------------------
    def to_nepali(self, d: date) -> NepaliDate:
        try:
            return self.jdn_to_nepali(to_jdn(d))
        except ConversionError as e:
            logger.warning("Gregorian->BS conversion failed for %s: %s; using fallback %s", d, e, FALLBACK_NEPALI)
            return FALLBACK_NEPALI

    def to_gregorian(self, n: NepaliDate) -> date:
        try:
            return from_jdn(self.nepali_to_jdn(n))
        except ConversionError as e:
            logger.warning("BS->Gregorian conversion failed for %s: %s; using fallback %s", n, e, FALLBACK_GREGORIAN)
            return FALLBACK_GREGORIAN

    def try_to_gregorian(self, n: NepaliDate) -> Optional[date]:
        """Like to_gregorian, but None instead of the fallback date."""
        try:
            return from_jdn(self.nepali_to_jdn(n))
        except ConversionError as e:
            logger.warning("BS->Gregorian conversion failed for %s: %s", n, e)
            return None

    def month_bounds(self, year: int, month: int) -> Dict[str, Any]:
        length = self.month_length(year, month)
        first_jdn = self.nepali_to_jdn(NepaliDate(year, month, 1))
        last_jdn = first_jdn + length - 1
        return {
            "year": year,
            "month": month,
            "length": length,
            "first_jdn": first_jdn,
            "last_jdn": last_jdn,
            "first_date": from_jdn(first_jdn),
            "last_date": from_jdn(last_jdn),
        }
