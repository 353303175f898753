"""
patro.sync.reconciler
---------------------
Idempotent projection of logical events onto one external calendar.

Per derived id:
    Unsynced --create ok--> Synced(ext) --update ok--> Synced(ext) --delete--> Unsynced

The mapping store is written after every successful create, so an
interrupted batch leaves valid mappings for everything completed so far.
One event failing never stops the batch; every failure is reported in the
result with the event's title.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from patro.core.errors import TransportError
from .client import ExternalCalendarClient
from .config import SyncConfig
from .events import EventKind, LogicalEvent
from .expansion import EventInstance, build_draft, expand_events
from .mapping import KeyedLocks, MappingStore
from patro.engines.conversion import DateConversionEngine

logger = logging.getLogger(__name__)

# Years of derived ids probed when deleting one event
DELETE_YEARS_AHEAD = 10


@dataclass
class SyncResult:
    success_count: int = 0
    failure_count: int = 0
    skipped_count: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failure_count == 0

    def summary(self) -> str:
        return f"Synced {self.success_count} events. {self.failure_count} failed."


def _message(e: BaseException) -> str:
    return str(e) or type(e).__name__


class SyncReconciler:
    def __init__(
        self,
        client: ExternalCalendarClient,
        store: MappingStore,
        engine: Optional[DateConversionEngine] = None,
    ):
        if engine is None:
            from patro.api import get_engine
            engine = get_engine()
        self.client = client
        self.store = store
        self.engine = engine
        locks = getattr(store, "locks", None)
        self.locks = locks if locks is not None else KeyedLocks()

    # ---------------------------------------------------------
    # Sync
    # ---------------------------------------------------------
    def sync(
        self,
        config: SyncConfig,
        events: Iterable[LogicalEvent],
        *,
        today: Optional[date] = None,
    ) -> SyncResult:
        today = today or date.today()
        result = SyncResult()

        wanted = [e for e in events if self._category_enabled(config, e)]
        exp = expand_events(wanted, config, self.engine, today)

        for title, reason in exp.skipped:
            result.skipped_count += 1
            result.errors.append(f'Skipped invalid event "{title}": {reason}')
        for title, reason in exp.failed:
            result.failure_count += 1
            result.errors.append(f'Failed to sync event "{title}": {reason}')

        for inst in exp.instances:
            try:
                self._reconcile(config.calendar_id, inst)
            except Exception as e:  # any client failure is per-event
                result.failure_count += 1
                result.errors.append(f'Failed to sync event "{inst.event.title}": {_message(e)}')
                logger.warning("Sync of %s (%s) failed: %s", inst.event.title, inst.derived_id, e)
            else:
                result.success_count += 1

        logger.info(
            "Sync to %s: %d ok, %d failed, %d skipped",
            config.calendar_id, result.success_count, result.failure_count, result.skipped_count,
        )
        return result

    @staticmethod
    def _category_enabled(config: SyncConfig, event: LogicalEvent) -> bool:
        kind = getattr(event, "kind", None)
        if kind is EventKind.FESTIVAL:
            return config.sync_festivals
        if kind is EventKind.CUSTOM:
            return config.sync_custom_events
        if kind in (EventKind.BIRTHDAY_DATE, EventKind.BIRTHDAY_TITHI):
            return config.sync_birthdays
        # let validation report it
        return True

    def _reconcile(self, calendar_id: str, inst: EventInstance) -> None:
        draft = build_draft(inst)
        with self.locks.lock(inst.derived_id):
            existing = self.store.get(inst.derived_id)
            if existing:
                self.client.update(calendar_id, existing, draft)
                logger.debug("Updated %s -> %s", inst.derived_id, existing)
            else:
                ext_id = self.client.create(calendar_id, draft)
                if not ext_id:
                    raise TransportError("create returned no id")
                self.store.set(inst.derived_id, ext_id)
                logger.debug("Created %s -> %s", inst.derived_id, ext_id)

    # ---------------------------------------------------------
    # Delete one logical event
    # ---------------------------------------------------------
    def delete_event(
        self,
        event_id: str,
        calendar_id: str,
        *,
        kind: Optional[EventKind] = None,
        today: Optional[date] = None,
    ) -> SyncResult:
        """
        Delete the external events of one logical event: its base id and, for
        tithi-based birthdays, "<id>_<year>" for the current year and the nine
        after. Multi-year custom events are probed the same way over BS years.
        An unknown ``kind`` probes both. Ids without a mapping are skipped.
        """
        today = today or date.today()
        keys = [event_id]
        if kind is None or kind is EventKind.BIRTHDAY_TITHI:
            keys += [f"{event_id}_{today.year + i}" for i in range(DELETE_YEARS_AHEAD)]
        if kind is None or kind is EventKind.CUSTOM:
            lo, hi = self.engine.supported_range()
            if lo <= today <= hi:
                bs_year = self.engine.to_nepali(today).year
                keys += [f"{event_id}_{bs_year + i}" for i in range(DELETE_YEARS_AHEAD)]
        keys = list(dict.fromkeys(keys))

        result = SyncResult()
        for key in keys:
            with self.locks.lock(key):
                ext_id = self.store.get(key)
                if not ext_id:
                    continue
                try:
                    self.client.delete(calendar_id, ext_id)
                except Exception as e:
                    result.failure_count += 1
                    result.errors.append(f"Failed to remove event {ext_id}: {_message(e)}")
                    logger.warning("Delete of %s (%s) failed: %s", key, ext_id, e)
                    continue
                self.store.remove(key)
                result.success_count += 1
        logger.info("Deleted %d external event(s) for %s", result.success_count, event_id)
        return result

    # ---------------------------------------------------------
    # Unsync everything
    # ---------------------------------------------------------
    def unsync(self, calendar_id: str) -> SyncResult:
        """
        Delete every mapped external event. The mapping entry is dropped even
        when the remote delete fails, so events already gone remotely cannot
        block cleanup.
        """
        result = SyncResult()
        for key, ext_id in sorted(self.store.snapshot().items()):
            with self.locks.lock(key):
                try:
                    self.client.delete(calendar_id, ext_id)
                except Exception as e:
                    result.failure_count += 1
                    result.errors.append(f"Failed to remove event {ext_id}: {_message(e)}")
                    logger.warning("Unsync of %s (%s) failed: %s", key, ext_id, e)
                else:
                    result.success_count += 1
                finally:
                    self.store.remove(key)
        return result
