"""patro: Bikram Sambat dates, tithis, lunar birthdays and calendar sync.

The conversion engine registry is built on import; the functions below use
the bundled "bs" engine unless told otherwise.
"""

# Initialize registry on import
from . import api_init as _api_init  # noqa: F401

from .api import (
    gregorian_to_nepali,
    nepali_to_gregorian,
    calculate_tithi,
    resolve_lunar_birthday,
    next_lunar_birthdays,
    sync_to_external_calendar,
    list_engines,
    engine_info,
    get_engine,
    register_engine,
)
from .core.types import NepaliDate, TithiInfo
from .core.errors import (
    PatroError,
    CalendarTableError,
    ConversionError,
    TransportError,
    ValidationError,
)
from .sync.config import SyncConfig
from .sync.events import EventKind, LogicalEvent, Reminder
from .sync.reconciler import SyncReconciler, SyncResult

__all__ = [
    "gregorian_to_nepali",
    "nepali_to_gregorian",
    "calculate_tithi",
    "resolve_lunar_birthday",
    "next_lunar_birthdays",
    "sync_to_external_calendar",
    "list_engines",
    "engine_info",
    "get_engine",
    "register_engine",
    "NepaliDate",
    "TithiInfo",
    "PatroError",
    "CalendarTableError",
    "ConversionError",
    "TransportError",
    "ValidationError",
    "SyncConfig",
    "EventKind",
    "LogicalEvent",
    "Reminder",
    "SyncReconciler",
    "SyncResult",
]
