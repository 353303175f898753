"""
patro.sync.expansion
--------------------
Turns logical events into concrete dated instances, each with the derived id
under which its external event is tracked.

    FESTIVAL        one instance if its date is within [today, today + days_in_advance]
    CUSTOM          one per BS year over event_sync_years, future dates only;
                    id "<id>_<bs year>" when event_sync_years > 1
    BIRTHDAY_DATE   one instance: this year's month/day, or next year's once passed;
                    repeats yearly on the external calendar
    BIRTHDAY_TITHI  up to max_birthdays_to_sync future lunar instances, "<id>_<year>"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from patro.core.errors import ConversionError, ValidationError
from patro.core.types import NepaliDate, nepali_month_name
from patro.engines.conversion import DateConversionEngine
from patro.engines.recurrence import next_lunar_occurrences
from patro.engines.tithi import calculate_tithi
from .client import EventDraft
from .config import SyncConfig
from .events import EventKind, LogicalEvent, validate_event

logger = logging.getLogger(__name__)

TITHI_BIRTHDAY_SUFFIX = " (Tithi-based: repeats on lunar day)"


@dataclass(frozen=True)
class EventInstance:
    derived_id: str
    event: LogicalEvent
    gregorian_date: date
    nepali_date: Optional[NepaliDate]
    recurring: bool = False


@dataclass
class Expansion:
    instances: List[EventInstance] = field(default_factory=list)
    # (title, reason) of events rejected before expansion
    skipped: List[Tuple[str, str]] = field(default_factory=list)
    # (title, reason) of instances that could not be dated
    failed: List[Tuple[str, str]] = field(default_factory=list)


def _same_day_in_year(d: date, year: int) -> date:
    # Feb 29 falls back to Feb 28 in common years
    if d.month == 2 and d.day == 29:
        try:
            return date(year, 2, 29)
        except ValueError:
            return date(year, 2, 28)
    return date(year, d.month, d.day)


class EventExpander:
    def __init__(self, engine: DateConversionEngine, config: SyncConfig, today: date):
        self.engine = engine
        self.config = config
        self.today = today

    def _to_nepali(self, d: date) -> Optional[NepaliDate]:
        lo, hi = self.engine.supported_range()
        if not lo <= d <= hi:
            return None
        return self.engine.to_nepali(d)

    def expand(self, event: LogicalEvent) -> List[EventInstance]:
        """Instances for one validated event. Raises ConversionError for undatable ones."""
        match event.kind:
            case EventKind.FESTIVAL:
                return self._festival(event)
            case EventKind.CUSTOM:
                return self._custom(event)
            case EventKind.BIRTHDAY_DATE:
                return self._birthday_date(event)
            case EventKind.BIRTHDAY_TITHI:
                return self._birthday_tithi(event)
            case _:
                raise TypeError(f"Unknown event kind: {event.kind!r}")

    def _festival(self, event: LogicalEvent) -> List[EventInstance]:
        horizon = self.today + timedelta(days=self.config.days_in_advance)
        if not self.today <= event.gregorian_date <= horizon:
            return []
        return [EventInstance(event.id, event, event.gregorian_date, event.nepali_date)]

    def _custom(self, event: LogicalEvent) -> List[EventInstance]:
        years = self.config.event_sync_years
        this_year = self._to_nepali(self.today)
        if this_year is None:
            raise ConversionError(f"today ({self.today}) is outside the supported calendar range")

        out = []
        for bs_year in range(this_year.year, this_year.year + years):
            try:
                length = self.engine.month_length(bs_year, event.nepali_date.month)
            except ConversionError:
                if bs_year > this_year.year:
                    logger.warning("%s: stopping expansion at %d BS (outside table)", event.title, bs_year)
                    break
                raise
            nd = NepaliDate(bs_year, event.nepali_date.month, min(event.nepali_date.day, length))
            gd = self.engine.try_to_gregorian(nd)
            if gd is None:
                raise ConversionError(f"{nd} BS has no Gregorian date")
            if gd < self.today:
                continue
            derived = f"{event.id}_{bs_year}" if years > 1 else event.id
            out.append(EventInstance(derived, event, gd, nd))
        return out

    def _birthday_date(self, event: LogicalEvent) -> List[EventInstance]:
        birth = event.gregorian_date
        gd = _same_day_in_year(birth, self.today.year)
        if gd < self.today:
            gd = _same_day_in_year(birth, self.today.year + 1)
        return [EventInstance(event.id, event, gd, self._to_nepali(gd), recurring=True)]

    def _birthday_tithi(self, event: LogicalEvent) -> List[EventInstance]:
        dates = next_lunar_occurrences(
            event.gregorian_date,
            event.tithi_number,
            k=self.config.max_birthdays_to_sync,
            from_date=self.today,
            original_day_of_year=event.original_day_of_year,
        )
        return [EventInstance(f"{event.id}_{d.year}", event, d, self._to_nepali(d)) for d in dates]


def expand_events(
    events: Iterable[LogicalEvent],
    config: SyncConfig,
    engine: DateConversionEngine,
    today: date,
) -> Expansion:
    exp = Expansion()
    expander = EventExpander(engine, config, today)
    seen = set()
    for event in events:
        title = getattr(event, "title", None) or getattr(event, "id", None) or "?"
        try:
            validate_event(event)
        except ValidationError as e:
            logger.warning("Skipping invalid event %r: %s", title, e)
            exp.skipped.append((title, str(e)))
            continue
        try:
            instances = expander.expand(event)
        except ConversionError as e:
            logger.warning("Cannot date event %r: %s", title, e)
            exp.failed.append((title, str(e)))
            continue
        for inst in instances:
            if inst.derived_id in seen:
                logger.debug("Duplicate derived id %s ignored", inst.derived_id)
                continue
            seen.add(inst.derived_id)
            exp.instances.append(inst)
    return exp


def build_draft(inst: EventInstance) -> EventDraft:
    event = inst.event
    parts = []
    if inst.nepali_date is not None:
        nd = inst.nepali_date
        parts.append(f"Nepali Date: {nepali_month_name(nd.month)} {nd.day}, {nd.year} (BS)")
    if event.description:
        parts.append(event.description)

    if event.kind is EventKind.FESTIVAL:
        parts.append("This is a Nepali Festival")
    elif event.kind in (EventKind.BIRTHDAY_DATE, EventKind.BIRTHDAY_TITHI):
        bn = event.nepali_date
        line = f"Birthday (Nepali date: {bn.day}/{bn.month}/{bn.year})"
        if event.kind is EventKind.BIRTHDAY_TITHI:
            t = calculate_tithi(inst.gregorian_date)
            line += TITHI_BIRTHDAY_SUFFIX
            parts.append(line)
            parts.append(f"Tithi: {t.name} ({t.number}, {t.phase})")
        else:
            parts.append(line)

    reminder = event.reminder
    return EventDraft(
        summary=event.title,
        start=inst.gregorian_date,
        end=inst.gregorian_date + timedelta(days=1),
        description="\n".join(parts) or None,
        reminder_minutes=(reminder.minutes_before or 1440) if reminder and reminder.enabled else None,
        recurrence=("RRULE:FREQ=YEARLY",) if inst.recurring else (),
    )
