"""
patro.sync.events
-----------------
Logical calendar entries as the caller maintains them, and a small
in-process store keyed by event id.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from patro.core.errors import ValidationError
from patro.core.time import day_of_year, parse_ymd
from patro.core.types import NepaliDate
from patro.engines.tithi import tithi_number


class EventKind(enum.Enum):
    FESTIVAL = "festival"
    CUSTOM = "custom"
    BIRTHDAY_DATE = "birthday_date"
    BIRTHDAY_TITHI = "birthday_tithi"


@dataclass(frozen=True)
class Reminder:
    enabled: bool = True
    minutes_before: int = 1440


@dataclass(frozen=True)
class LogicalEvent:
    id: str
    title: str
    kind: EventKind
    nepali_date: NepaliDate
    gregorian_date: date
    description: Optional[str] = None
    reminder: Optional[Reminder] = None
    # BIRTHDAY_TITHI only; both are fixed from gregorian_date when omitted
    tithi_number: Optional[int] = None
    original_day_of_year: Optional[int] = None

    def __post_init__(self):
        if self.kind is EventKind.BIRTHDAY_TITHI and isinstance(self.gregorian_date, date):
            if self.tithi_number is None:
                object.__setattr__(self, "tithi_number", tithi_number(self.gregorian_date))
            if self.original_day_of_year is None:
                object.__setattr__(self, "original_day_of_year", day_of_year(self.gregorian_date))

    # ---------------------------------------------------------
    # JSON-friendly form (camelCase, as persisted by the app)
    # ---------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "kind": self.kind.value,
            "nepaliDate": str(self.nepali_date),
            "gregorianDate": self.gregorian_date.isoformat(),
        }
        if self.description is not None:
            out["description"] = self.description
        if self.reminder is not None:
            out["reminder"] = {"enabled": self.reminder.enabled, "minutesBefore": self.reminder.minutes_before}
        if self.kind is EventKind.BIRTHDAY_TITHI:
            out["tithiNumber"] = self.tithi_number
            out["originalDayOfYear"] = self.original_day_of_year
        return out

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "LogicalEvent":
        try:
            reminder = None
            if raw.get("reminder") is not None:
                r = raw["reminder"]
                reminder = Reminder(bool(r.get("enabled", True)), int(r.get("minutesBefore", 1440)))
            return cls(
                id=str(raw["id"]),
                title=str(raw["title"]),
                kind=EventKind(raw["kind"]),
                nepali_date=NepaliDate.parse(raw["nepaliDate"]),
                gregorian_date=parse_ymd(raw["gregorianDate"]),
                description=raw.get("description"),
                reminder=reminder,
                tithi_number=_optional_int(raw.get("tithiNumber")),
                original_day_of_year=_optional_int(raw.get("originalDayOfYear")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Malformed event {raw.get('title', raw.get('id', '?'))!r}: {e}") from e


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"expected an integer, got {value!r}")
    return int(value)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_event(event: LogicalEvent) -> None:
    """Raise ValidationError when an event cannot be expanded."""
    if not isinstance(event.id, str) or not event.id:
        raise ValidationError("missing id")
    if not isinstance(event.title, str) or not event.title.strip():
        raise ValidationError("missing title")
    if not isinstance(event.kind, EventKind):
        raise ValidationError(f"unknown kind {event.kind!r}")
    if not isinstance(event.nepali_date, NepaliDate):
        raise ValidationError("missing Nepali date")
    if not isinstance(event.gregorian_date, date):
        raise ValidationError("missing Gregorian date")
    if event.kind is EventKind.BIRTHDAY_TITHI:
        if not _is_int(event.tithi_number) or not 1 <= event.tithi_number <= 30:
            raise ValidationError(f"tithi number must be in 1..30, got {event.tithi_number}")
        if not _is_int(event.original_day_of_year) or not 1 <= event.original_day_of_year <= 366:
            raise ValidationError(f"invalid original day-of-year {event.original_day_of_year}")


@dataclass
class EventStore:
    _events: Dict[str, LogicalEvent] = field(default_factory=dict)

    def get(self, event_id: str) -> Optional[LogicalEvent]:
        return self._events.get(event_id)

    def all(self) -> List[LogicalEvent]:
        return list(self._events.values())

    def add(self, event: LogicalEvent) -> LogicalEvent:
        if event.id in self._events:
            raise KeyError(f"Event '{event.id}' already exists. Use upsert() to replace.")
        self._events[event.id] = event
        return event

    def upsert(self, event: LogicalEvent) -> LogicalEvent:
        """Insert or replace, keeping the caller's id."""
        self._events[event.id] = event
        return event

    def update(self, event_id: str, **changes: Any) -> Optional[LogicalEvent]:
        current = self._events.get(event_id)
        if current is None:
            return None
        changes.pop("id", None)
        updated = replace(current, **changes)
        self._events[event_id] = updated
        return updated

    def delete(self, event_id: str) -> bool:
        return self._events.pop(event_id, None) is not None

    def replace_all(self, events: Iterable[LogicalEvent]) -> None:
        """Make the store hold exactly ``events``, preserving their ids."""
        incoming = {e.id: e for e in events}
        for stale in set(self._events) - set(incoming):
            del self._events[stale]
        for e in incoming.values():
            self.upsert(e)

    def __len__(self) -> int:
        return len(self._events)
