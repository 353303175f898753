"""
patro.engines.tithi
-------------------
Lunar day (tithi) from a civil date, by a mean-motion approximation.

The moon's phase is taken as linear in time from one reference new moon
with a constant synodic month. There are no equation-of-centre or other
ephemeris terms, so a computed tithi can be off by one near a tithi
boundary and occasionally a tithi is never hit by any civil day (a tithi
lasts ~0.984 days). This is adequate for recurring reminders, not for
almanac work.
"""

from __future__ import annotations

import math
from datetime import date, timedelta
from functools import lru_cache
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from patro.core.time import to_jdn
from patro.core.types import TithiInfo

SYNODIC_MONTH = 29.530588
TITHI_LENGTH = SYNODIC_MONTH / 30

# 2025-05-09, a documented new moon; that civil day is tithi 1.
REFERENCE_NEW_MOON_JDN = 2460805

TITHI_NAMES = (
    "Pratipad", "Dwitiya", "Tritiya", "Chaturthi", "Panchami",
    "Shashthi", "Saptami", "Ashtami", "Navami", "Dashami",
    "Ekadashi", "Dwadashi", "Trayodashi", "Chaturdashi", "Purnima",
    "Pratipad", "Dwitiya", "Tritiya", "Chaturthi", "Panchami",
    "Shashthi", "Saptami", "Ashtami", "Navami", "Dashami",
    "Ekadashi", "Dwadashi", "Trayodashi", "Chaturdashi", "Amavasya",
)


def lunar_position(d: date) -> float:
    """Days since the most recent mean new moon, in [0, SYNODIC_MONTH)."""
    delta = to_jdn(d) - REFERENCE_NEW_MOON_JDN
    return ((delta % SYNODIC_MONTH) + SYNODIC_MONTH) % SYNODIC_MONTH


def tithi_number(d: date) -> int:
    n = math.floor(lunar_position(d) / TITHI_LENGTH) + 1
    return min(max(n, 1), 30)


def calculate_tithi(d: date) -> TithiInfo:
    n = tithi_number(d)
    return TithiInfo(
        number=n,
        phase="waxing" if n <= 15 else "waning",
        name=TITHI_NAMES[n - 1],
    )


@lru_cache(maxsize=64)
def tithi_index(year: int) -> Mapping[int, Tuple[date, ...]]:
    """
    Every civil day of a Gregorian year grouped by tithi number, in date order.
    Built once per year and shared, hence read-only.
    """
    buckets: Dict[int, list] = {n: [] for n in range(1, 31)}
    d = date(year, 1, 1)
    one = timedelta(days=1)
    while d.year == year:
        buckets[tithi_number(d)].append(d)
        d += one
    return MappingProxyType({n: tuple(ds) for n, ds in buckets.items()})
