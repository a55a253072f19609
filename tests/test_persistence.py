"""Tests for load/save, the auto-save debounce and save response sequencing."""
from __future__ import annotations

import httpx
import pytest
from PyQt6.QtTest import QTest

from api.client import AnnotationApi
from editing.store import RectangleStore
from errors import LoadFailure, SaveFailure
from models import Rectangle
from sync.persistence import PersistenceSync
from sync.worker import InlineRunner

BASE = "http://server.test"


def _rect(rid="a", w=20.0):
    return Rectangle(rid, 1.0, 2.0, w, w, "#ABCDEF")


class ManualRunner:
    """Holds requests until the test completes them, in any order."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, on_done, on_error, label=""):
        self.pending.append((label, fn, on_done, on_error))

    def complete(self, index):
        label, fn, on_done, on_error = self.pending.pop(index)
        try:
            result = fn()
        except Exception as e:
            on_error(e)
        else:
            on_done(result)


class Events:
    def __init__(self, sync):
        self.failures = []
        self.successes = 0
        self.loading = []
        sync.failed.connect(self.failures.append)
        sync.succeeded.connect(self._ok)
        sync.loading_changed.connect(self.loading.append)

    def _ok(self):
        self.successes += 1


@pytest.fixture()
def store(qapp):
    return RectangleStore()


@pytest.fixture()
def api(fake_server):
    return AnnotationApi(BASE, token="tok", transport=fake_server.transport())


@pytest.fixture()
def sync(store, api):
    return PersistenceSync(store, api, InlineRunner())


# ---------------------------------------------------------------------------
# load
# ---------------------------------------------------------------------------

class TestLoad:
    def test_adopts_last_set(self, sync, store, fake_server):
        fake_server.sets = [
            {"_id": "old", "rectangles": [_rect("x").to_dict()]},
            {"_id": "new", "rectangles": [_rect("a").to_dict(), _rect("b").to_dict()]},
        ]
        ev = Events(sync)
        sync.load()
        assert [r.id for r in store.rectangles] == ["a", "b"]
        assert sync.annotation_set_id == "new"
        assert ev.loading == [True, False]
        assert ev.successes == 1

    def test_no_sets_leaves_empty(self, sync, store):
        sync.load()
        assert len(store) == 0
        assert sync.annotation_set_id is None

    def test_network_failure(self, sync, store, fake_server):
        fake_server.fail_with = 500
        ev = Events(sync)
        sync.load()
        (err,) = ev.failures
        assert isinstance(err, LoadFailure)
        assert err.user_message == "Failed to load annotations"
        assert not sync.loading
        assert len(store) == 0

    def test_malformed_set_is_load_failure(self, sync, store, fake_server):
        fake_server.sets = [{"_id": "s", "rectangles": [{"id": "a", "x": "bad"}]}]
        ev = Events(sync)
        sync.load()
        assert isinstance(ev.failures[0], LoadFailure)
        assert len(store) == 0
        assert sync.annotation_set_id is None

    def test_non_finite_server_numbers_are_load_failure(self, store):
        body = b'[{"_id": "s", "rectangles": [{"id": "a", "x": 0, "y": 0, "width": NaN, "height": 10, "color": "#000"}]}]'
        transport = httpx.MockTransport(lambda r: httpx.Response(200, content=body))
        sync = PersistenceSync(store, AnnotationApi(BASE, transport=transport), InlineRunner())
        ev = Events(sync)
        sync.load()
        assert isinstance(ev.failures[0], LoadFailure)
        assert len(store) == 0
        assert sync.annotation_set_id is None

    def test_set_without_rectangles_is_load_failure(self, sync, fake_server):
        fake_server.sets = [{"_id": "s"}]
        ev = Events(sync)
        sync.load()
        assert isinstance(ev.failures[0], LoadFailure)


# ---------------------------------------------------------------------------
# save
# ---------------------------------------------------------------------------

class TestSave:
    def test_first_save_creates_then_updates(self, sync, store, fake_server):
        store.commit(_rect("a"))
        sync.save()
        assert fake_server.requests[-1].method == "POST"
        assert sync.annotation_set_id == "set1"

        store.commit(_rect("b"))
        sync.save()
        assert fake_server.requests[-1].method == "PUT"
        assert fake_server.requests[-1].url.path == "/api/annotations/set1"
        assert len(fake_server.sets) == 1
        assert [r["id"] for r in fake_server.sets[0]["rectangles"]] == ["a", "b"]

    def test_after_load_updates_loaded_set(self, sync, store, fake_server):
        fake_server.sets = [{"_id": "mine", "rectangles": []}]
        sync.load()
        store.commit(_rect("a"))
        sync.save()
        assert fake_server.requests[-1].method == "PUT"
        assert fake_server.requests[-1].url.path == "/api/annotations/mine"

    def test_failure_keeps_edits(self, sync, store, fake_server):
        store.commit(_rect("a"))
        fake_server.fail_with = 503
        ev = Events(sync)
        sync.save()
        (err,) = ev.failures
        assert isinstance(err, SaveFailure)
        assert err.user_message == "Failed to save annotations"
        assert [r.id for r in store.rectangles] == ["a"]
        assert sync.annotation_set_id is None

    def test_success_signals(self, sync, store):
        saved = []
        sync.saved.connect(saved.append)
        store.commit(_rect("a"))
        sync.save()
        assert saved == ["set1"]


class TestSequencing:
    def test_stale_create_cannot_override_newer_id(self, store, api, fake_server):
        runner = ManualRunner()
        sync = PersistenceSync(store, api, runner)
        store.commit(_rect("a"))
        sync.save()
        sync.save()
        # Newer request answers first
        runner.complete(1)
        adopted = sync.annotation_set_id
        runner.complete(0)
        assert sync.annotation_set_id == adopted
        # Both creates reached the server; the older one is orphaned
        assert len(fake_server.sets) == 2

    def test_stale_failure_is_dropped(self, store, api, fake_server):
        runner = ManualRunner()
        sync = PersistenceSync(store, api, runner)
        ev = Events(sync)
        store.commit(_rect("a"))
        sync.save()
        sync.save()
        runner.complete(1)
        fake_server.fail_with = 500
        runner.complete(0)
        assert ev.failures == []

    def test_in_order_responses_all_applied(self, store, api):
        runner = ManualRunner()
        sync = PersistenceSync(store, api, runner)
        saved = []
        sync.saved.connect(saved.append)
        store.commit(_rect("a"))
        sync.save()
        runner.complete(0)
        sync.save()
        runner.complete(0)
        assert len(saved) == 2


# ---------------------------------------------------------------------------
# auto-save
# ---------------------------------------------------------------------------

class TestAutoSave:
    def test_disabled_by_default(self, sync, store):
        store.commit(_rect("a"))
        assert not sync.auto_save_pending

    def test_mutation_schedules(self, sync, store):
        sync.set_auto_save(True)
        store.commit(_rect("a"))
        assert sync.auto_save_pending
        assert sync.auto_save_delay_ms == 2000

    def test_empty_list_does_not_schedule(self, sync, store):
        sync.set_auto_save(True)
        store.commit(_rect("a"))
        store.clear()
        assert not sync.auto_save_pending

    def test_enable_with_rectangles_schedules(self, sync, store):
        store.commit(_rect("a"))
        sync.set_auto_save(True)
        assert sync.auto_save_pending

    def test_disable_cancels(self, sync, store):
        sync.set_auto_save(True)
        store.commit(_rect("a"))
        sync.set_auto_save(False)
        assert not sync.auto_save_pending

    def test_selection_does_not_schedule(self, sync, store):
        store.commit(_rect("a"))
        sync.set_auto_save(True)
        sync.shutdown()
        store.select("a")
        assert not sync.auto_save_pending

    def test_manual_save_cancels_pending(self, sync, store):
        sync.set_auto_save(True)
        store.commit(_rect("a"))
        sync.save()
        assert not sync.auto_save_pending

    def test_load_does_not_schedule(self, sync, store, fake_server):
        fake_server.sets = [{"_id": "s", "rectangles": [_rect("a").to_dict()]}]
        sync.set_auto_save(True)
        sync.load()
        assert not sync.auto_save_pending

    def test_burst_of_edits_saves_once(self, sync, store, fake_server):
        sync.set_auto_save_delay(50)
        sync.set_auto_save(True)
        for i in range(5):
            store.commit(_rect(f"r{i}"))
        QTest.qWait(300)
        writes = [r for r in fake_server.requests if r.method in ("POST", "PUT")]
        assert len(writes) == 1
        assert len(fake_server.sets[0]["rectangles"]) == 5

    def test_quiet_period_restarts(self, sync, store, fake_server):
        sync.set_auto_save_delay(150)
        sync.set_auto_save(True)
        store.commit(_rect("a"))
        QTest.qWait(100)
        store.commit(_rect("b"))
        QTest.qWait(100)
        assert not [r for r in fake_server.requests if r.method == "POST"]
        QTest.qWait(200)
        assert [r for r in fake_server.requests if r.method == "POST"]
