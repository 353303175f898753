"""
patro.sync.client
-----------------
The external calendar capability the reconciler drives, and an in-process
implementation of it.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Protocol, Tuple

from patro.core.errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventDraft:
    """An all-day external event; ``end`` is exclusive (start + 1 day)."""
    summary: str
    start: date
    end: date
    description: Optional[str] = None
    reminder_minutes: Optional[int] = None
    recurrence: Tuple[str, ...] = ()

    def to_payload(self) -> Dict[str, Any]:
        """Google Calendar v3 event resource."""
        body: Dict[str, Any] = {
            "summary": self.summary,
            "start": {"date": self.start.isoformat()},
            "end": {"date": self.end.isoformat()},
        }
        if self.description and self.description.strip():
            body["description"] = self.description
        if self.recurrence:
            body["recurrence"] = list(self.recurrence)
        if self.reminder_minutes is not None:
            body["reminders"] = {
                "useDefault": False,
                "overrides": [{"method": "popup", "minutes": self.reminder_minutes}],
            }
        return body


class ExternalCalendarClient(Protocol):
    def create(self, calendar_id: str, draft: EventDraft) -> str: ...
    def update(self, calendar_id: str, external_id: str, draft: EventDraft) -> None: ...
    def delete(self, calendar_id: str, external_id: str) -> None: ...


@dataclass
class InMemoryCalendarClient:
    """Keeps events in a dict per calendar; used for dry runs."""
    calendars: Dict[str, Dict[str, EventDraft]] = field(default_factory=dict)
    calls: List[Tuple[str, str, Optional[str]]] = field(default_factory=list)
    _ids: Any = field(default_factory=lambda: itertools.count(1), repr=False)

    def create(self, calendar_id: str, draft: EventDraft) -> str:
        ext_id = f"mem{next(self._ids)}"
        self.calendars.setdefault(calendar_id, {})[ext_id] = draft
        self.calls.append(("create", calendar_id, ext_id))
        logger.debug("create %s/%s %s %s", calendar_id, ext_id, draft.start, draft.summary)
        return ext_id

    def update(self, calendar_id: str, external_id: str, draft: EventDraft) -> None:
        self.calls.append(("update", calendar_id, external_id))
        events = self.calendars.get(calendar_id, {})
        if external_id not in events:
            raise TransportError(f"Event {external_id} not found in calendar {calendar_id}")
        events[external_id] = draft

    def delete(self, calendar_id: str, external_id: str) -> None:
        self.calls.append(("delete", calendar_id, external_id))
        events = self.calendars.get(calendar_id, {})
        if events.pop(external_id, None) is None:
            raise TransportError(f"Event {external_id} not found in calendar {calendar_id}")
