"""
patro.sync.festivals
--------------------
Catalogue of major Nepali festivals, pinned to a BS month/day.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Tuple

from patro.core.types import NepaliDate
from patro.engines.conversion import DateConversionEngine
from .events import EventKind, LogicalEvent, Reminder

logger = logging.getLogger(__name__)

# (name, BS month or None when the date is not fixed in BS, day, lunar)
FESTIVALS: Tuple[Tuple[str, Optional[int], int, bool], ...] = (
    ("Prithvi Jayanti", 1, 1, False),
    ("Teej", 4, 16, True),
    ("Dashain", 6, 1, False),
    ("Tihar", 7, 1, False),
    ("Chhath", 7, 20, False),
    ("Maha Shivaratri", 11, 14, True),
    ("Holi", 11, 15, True),
    ("Eid", None, 1, True),  # follows the Islamic calendar
)


def festival_events(nepali_year: int, engine: DateConversionEngine) -> List[LogicalEvent]:
    """Festival events for one BS year; ids are ``festival_<index>_<year>``."""
    out = []
    for index, (name, month, day, _lunar) in enumerate(FESTIVALS):
        if month is None:
            continue
        nd = NepaliDate(nepali_year, month, day)
        gd = engine.try_to_gregorian(nd)
        if gd is None:
            logger.warning("Festival %s has no Gregorian date in %d BS", name, nepali_year)
            continue
        out.append(
            LogicalEvent(
                id=f"festival_{index}_{nepali_year}",
                title=name,
                kind=EventKind.FESTIVAL,
                nepali_date=nd,
                gregorian_date=gd,
                description=f"Nepali festival: {name}",
                reminder=Reminder(enabled=True, minutes_before=1440),
            )
        )
    return out


def upcoming_festivals(today: date, engine: DateConversionEngine) -> List[LogicalEvent]:
    """Festivals of the current and next BS year, so a sync window can cross Baisakh 1."""
    bs_year = engine.to_nepali(today).year
    return festival_events(bs_year, engine) + festival_events(bs_year + 1, engine)
