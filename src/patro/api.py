from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from .core.engine import EngineRegistry
from .core.types import NepaliDate, TithiInfo
from .engines.conversion import DateConversionEngine
from .engines.recurrence import next_lunar_occurrences, resolve_lunar_occurrence
from .engines.tithi import calculate_tithi as _calculate_tithi
from .sync.client import ExternalCalendarClient
from .sync.config import SyncConfig
from .sync.events import LogicalEvent
from .sync.mapping import MappingStore
from .sync.reconciler import SyncReconciler, SyncResult

_registry: Optional[EngineRegistry] = None

def set_registry(reg: EngineRegistry) -> None:
    global _registry
    _registry = reg

def _reg() -> EngineRegistry:
    if _registry is None:
        raise RuntimeError("Engine registry not initialized")
    return _registry

def list_engines() -> List[str]:
    return _reg().list()

def engine_info(engine: str = "bs") -> Dict[str, Any]:
    return _reg().get(engine).info()

def get_engine(engine: str = "bs") -> DateConversionEngine:
    return _reg().get(engine)

def register_engine(name: str, engine: DateConversionEngine, *, overwrite: bool = False) -> None:
    _reg().register(name, engine, overwrite=overwrite)

# ============================================================
# Calendar math
# ============================================================

def gregorian_to_nepali(d: date, *, engine: str = "bs") -> NepaliDate:
    """Total: out-of-range dates give the documented fallback (see engines.conversion)."""
    return _reg().get(engine).to_nepali(d)

def nepali_to_gregorian(n: NepaliDate, *, engine: str = "bs") -> date:
    return _reg().get(engine).to_gregorian(n)

def calculate_tithi(d: date) -> TithiInfo:
    return _calculate_tithi(d)

def resolve_lunar_birthday(year: int, tithi: int, original_day_of_year: int) -> Optional[date]:
    return resolve_lunar_occurrence(year, tithi, original_day_of_year)

def next_lunar_birthdays(
    original: date,
    *,
    tithi: Optional[int] = None,
    k: int = 3,
    from_date: Optional[date] = None,
) -> List[date]:
    return next_lunar_occurrences(original, tithi, k, from_date)

# ============================================================
# Sync
# ============================================================

def sync_to_external_calendar(
    config: SyncConfig,
    events: Iterable[LogicalEvent],
    client: ExternalCalendarClient,
    store: MappingStore,
    *,
    engine: str = "bs",
    today: Optional[date] = None,
) -> SyncResult:
    reconciler = SyncReconciler(client, store, _reg().get(engine))
    return reconciler.sync(config, events, today=today)
