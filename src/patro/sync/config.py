from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping

# camelCase keys as the app persists them
_CAMEL = {
    "calendarId": "calendar_id",
    "syncFestivals": "sync_festivals",
    "syncCustomEvents": "sync_custom_events",
    "syncBirthdays": "sync_birthdays",
    "daysInAdvance": "days_in_advance",
    "maxBirthdaysToSync": "max_birthdays_to_sync",
    "eventSyncYears": "event_sync_years",
}


@dataclass(frozen=True)
class SyncConfig:
    calendar_id: str = "primary"
    sync_festivals: bool = True
    sync_custom_events: bool = True
    sync_birthdays: bool = True
    days_in_advance: int = 90  # festival window
    max_birthdays_to_sync: int = 3  # future instances per tithi birthday
    event_sync_years: int = 1  # custom-event horizon

    def __post_init__(self):
        if not self.calendar_id:
            raise ValueError("calendar_id must be non-empty")
        if self.days_in_advance < 0:
            raise ValueError("days_in_advance must be >= 0")
        if self.max_birthdays_to_sync < 0:
            raise ValueError("max_birthdays_to_sync must be >= 0")
        if self.event_sync_years < 1:
            raise ValueError("event_sync_years must be >= 1")

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SyncConfig":
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in raw.items():
            name = _CAMEL.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown sync option '{key}'")
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        snake_to_camel = {v: k for k, v in _CAMEL.items()}
        return {snake_to_camel[k]: v for k, v in asdict(self).items()}


def load_config(path: str | Path) -> SyncConfig:
    return SyncConfig.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))
