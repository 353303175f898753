# tests/test_reconciler.py

import json
import threading
import time
from dataclasses import replace
from datetime import date

import pytest

import patro
from patro.core.errors import TransportError
from patro.core.types import NepaliDate
from patro.sync.client import InMemoryCalendarClient
from patro.sync.config import SyncConfig
from patro.sync.events import EventKind, LogicalEvent
from patro.sync.mapping import InMemoryMappingStore, JsonFileMappingStore
from patro.sync.reconciler import SyncReconciler

TODAY = date(2026, 10, 18)


class FlakyClient(InMemoryCalendarClient):
    """Fails create for the given titles and delete for the given external ids."""

    def __init__(self, fail_titles=(), fail_deletes=()):
        super().__init__()
        self.fail_titles = set(fail_titles)
        self.fail_deletes = set(fail_deletes)

    def create(self, calendar_id, draft):
        if draft.summary in self.fail_titles:
            self.calls.append(("create", calendar_id, None))
            raise TransportError("HTTP 500 backend error")
        return super().create(calendar_id, draft)

    def delete(self, calendar_id, external_id):
        if external_id in self.fail_deletes:
            self.calls.append(("delete", calendar_id, external_id))
            raise TransportError("HTTP 503 unavailable")
        super().delete(calendar_id, external_id)


def _events():
    return [
        LogicalEvent(
            id="b1",
            title="Aama",
            kind=EventKind.BIRTHDAY_TITHI,
            nepali_date=NepaliDate(2048, 3, 12),
            gregorian_date=date(1991, 6, 26),
        ),
        LogicalEvent(
            id="c1",
            title="Puja",
            kind=EventKind.CUSTOM,
            nepali_date=NepaliDate(2050, 8, 15),
            gregorian_date=date(1993, 11, 30),
        ),
    ]


@pytest.fixture
def client():
    return FlakyClient()


@pytest.fixture
def store():
    return InMemoryMappingStore()


def _kinds(client):
    return [c[0] for c in client.calls]


def test_first_sync_creates_and_maps(client, store):
    res = SyncReconciler(client, store).sync(SyncConfig(), _events(), today=TODAY)
    assert (res.success_count, res.failure_count, res.errors) == (4, 0, [])
    assert res.ok
    assert res.summary() == "Synced 4 events. 0 failed."
    assert sorted(store.snapshot()) == ["b1_2027", "b1_2028", "b1_2029", "c1"]
    assert _kinds(client) == ["create"] * 4


def test_resync_updates_in_place(client, store):
    rec = SyncReconciler(client, store)
    rec.sync(SyncConfig(), _events(), today=TODAY)
    before = store.snapshot()
    client.calls.clear()

    res = rec.sync(SyncConfig(), _events(), today=TODAY)
    assert res.success_count == 4
    assert _kinds(client) == ["update"] * 4
    assert store.snapshot() == before
    assert len(client.calendars["primary"]) == 4


def test_one_failure_does_not_stop_batch(store):
    client = FlakyClient(fail_titles={"Aama"})
    res = SyncReconciler(client, store).sync(SyncConfig(), _events(), today=TODAY)
    assert res.success_count == 1
    assert res.failure_count == 3
    assert res.errors[0] == 'Failed to sync event "Aama": HTTP 500 backend error'
    assert not res.ok
    assert store.snapshot() == {"c1": "mem1"}


def test_category_gates(client, store):
    res = SyncReconciler(client, store).sync(SyncConfig(sync_birthdays=False), _events(), today=TODAY)
    assert res.success_count == 1
    assert list(store.snapshot()) == ["c1"]


def test_calendar_id_is_used(client, store):
    SyncReconciler(client, store).sync(SyncConfig(calendar_id="family"), _events(), today=TODAY)
    assert {c[1] for c in client.calls} == {"family"}


def test_invalid_event_reported_as_skipped(client, store):
    bad = LogicalEvent(
        id="x",
        title="Bad",
        kind=EventKind.BIRTHDAY_TITHI,
        nepali_date=NepaliDate(2048, 3, 12),
        gregorian_date=date(1991, 6, 26),
        tithi_number=31,
    )
    res = SyncReconciler(client, store).sync(SyncConfig(), [bad] + _events(), today=TODAY)
    assert res.skipped_count == 1
    assert res.failure_count == 0
    assert res.success_count == 4
    assert res.errors == ['Skipped invalid event "Bad": tithi number must be in 1..30, got 31']


def test_undatable_event_is_a_failure(client, store):
    res = SyncReconciler(client, store).sync(SyncConfig(), _events()[1:], today=date(2040, 1, 1))
    assert res.failure_count == 1
    assert res.errors[0].startswith('Failed to sync event "Puja": ')


def test_mapping_persisted_per_create(tmp_path):
    path = tmp_path / "mapping.json"
    client = FlakyClient(fail_titles={"Puja"})
    res = SyncReconciler(client, JsonFileMappingStore(path)).sync(SyncConfig(), _events(), today=TODAY)
    assert res.failure_count == 1
    assert json.loads(path.read_text()) == {"b1_2027": "mem1", "b1_2028": "mem2", "b1_2029": "mem3"}

    # a fresh run against the same file updates instead of duplicating
    client2 = FlakyClient()
    client2.calendars = client.calendars
    SyncReconciler(client2, JsonFileMappingStore(path)).sync(SyncConfig(), _events(), today=TODAY)
    assert _kinds(client2) == ["update", "update", "update", "create"]


def test_delete_tithi_birthday(client, store):
    rec = SyncReconciler(client, store)
    rec.sync(SyncConfig(), _events(), today=TODAY)
    client.calls.clear()

    res = rec.delete_event("b1", "primary", kind=EventKind.BIRTHDAY_TITHI, today=TODAY)
    assert res.success_count == 3
    assert _kinds(client) == ["delete"] * 3
    assert list(store.snapshot()) == ["c1"]


def test_delete_unknown_kind_probes_everything(client, store):
    rec = SyncReconciler(client, store)
    rec.sync(SyncConfig(event_sync_years=2), _events()[1:], today=TODAY)
    assert sorted(store.snapshot()) == ["c1_2083", "c1_2084"]

    res = rec.delete_event("c1", "primary", today=TODAY)
    assert res.success_count == 2
    assert store.snapshot() == {}


def test_delete_failure_keeps_mapping(store):
    client = FlakyClient(fail_deletes={"mem4"})
    rec = SyncReconciler(client, store)
    rec.sync(SyncConfig(), _events(), today=TODAY)

    res = rec.delete_event("c1", "primary", kind=EventKind.CUSTOM, today=TODAY)
    assert res.failure_count == 1
    assert res.errors == ["Failed to remove event mem4: HTTP 503 unavailable"]
    assert store.get("c1") == "mem4"


def test_unsync_clears_mapping_even_on_failure(store):
    client = FlakyClient(fail_deletes={"mem2"})
    rec = SyncReconciler(client, store)
    rec.sync(SyncConfig(), _events(), today=TODAY)

    res = rec.unsync("primary")
    assert res.success_count == 3
    assert res.failure_count == 1
    assert res.errors == ["Failed to remove event mem2: HTTP 503 unavailable"]
    assert store.snapshot() == {}


def test_public_sync_entry_point(client, store):
    res = patro.sync_to_external_calendar(SyncConfig(), _events(), client, store, today=TODAY)
    assert res.success_count == 4


def _custom(id, title, month):
    return LogicalEvent(
        id=id,
        title=title,
        kind=EventKind.CUSTOM,
        nepali_date=NepaliDate(2050, month, 15),
        gregorian_date=date(1993, 11, 30),
    )


def test_exactly_one_failed_create(store):
    events = [_custom("c1", "One", 8), _custom("c2", "Two", 9), _custom("c3", "Three", 10)]
    client = FlakyClient(fail_titles={"Two"})
    res = SyncReconciler(client, store).sync(SyncConfig(), events, today=TODAY)
    assert res.failure_count == 1
    assert res.success_count == len(events) - 1
    assert res.errors == ['Failed to sync event "Two": HTTP 500 backend error']
    assert sorted(store.snapshot()) == ["c1", "c3"]


def test_malformed_events_do_not_abort_batch(client, store):
    bad_tithi = LogicalEvent(
        id="x1",
        title="Bad tithi",
        kind=EventKind.BIRTHDAY_TITHI,
        nepali_date=NepaliDate(2048, 3, 12),
        gregorian_date=date(1991, 6, 26),
        tithi_number="3",
    )
    bad_title = replace(_custom("x2", "ignored", 8), title=42)
    res = SyncReconciler(client, store).sync(SyncConfig(), [bad_tithi, bad_title, _custom("c1", "Puja", 8)], today=TODAY)
    assert res.skipped_count == 2
    assert res.failure_count == 0
    assert res.success_count == 1
    assert store.snapshot() == {"c1": "mem1"}


class EmptyIdClient(InMemoryCalendarClient):
    def create(self, calendar_id, draft):
        self.calls.append(("create", calendar_id, None))
        return ""


def test_create_without_id_is_a_failure(store):
    res = SyncReconciler(EmptyIdClient(), store).sync(SyncConfig(), [_custom("c1", "Puja", 8)], today=TODAY)
    assert (res.success_count, res.failure_count) == (0, 1)
    assert res.errors == ['Failed to sync event "Puja": create returned no id']
    assert store.snapshot() == {}


class SlowClient(InMemoryCalendarClient):
    def create(self, calendar_id, draft):
        time.sleep(0.05)
        return super().create(calendar_id, draft)


def test_concurrent_public_syncs_share_key_locks(store):
    client = SlowClient()
    start = threading.Barrier(2)
    results = []

    def run():
        start.wait()
        results.append(
            patro.sync_to_external_calendar(SyncConfig(), [_custom("c1", "Puja", 8)], client, store, today=TODAY)
        )

    threads = [threading.Thread(target=run) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert [r.success_count for r in results] == [1, 1]
    assert sorted(_kinds(client)) == ["create", "update"]
    assert store.snapshot() == {"c1": "mem1"}
    assert list(client.calendars["primary"]) == ["mem1"]
    assert len(store.locks) == 0
