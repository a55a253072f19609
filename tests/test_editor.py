"""Tests for AnnotationEditor: message handling, import/export, drawing and deletion."""
from __future__ import annotations

import json

import pytest

from api.client import AnnotationApi
from editing.editor import AnnotationEditor
from editing.events import PointerEvent
from errors import SaveFailure
from models import Rectangle
from sync.persistence import PersistenceSync
from sync.worker import InlineRunner

VALID_DOC = json.dumps([
    {"id": "i1", "x": 1, "y": 2, "width": 30, "height": 40, "color": "#112233"},
    {"id": "i2", "x": 5, "y": 6, "width": 70, "height": 80, "color": "#445566"},
])


@pytest.fixture()
def editor(qapp):
    ids = iter(f"rect-{i}" for i in range(100))
    return AnnotationEditor(make_id=lambda: next(ids), make_color=lambda: "#000000")


def _draw(editor, x0, y0, x1, y1):
    editor.handle_pointer(PointerEvent.down(x0, y0))
    editor.handle_pointer(PointerEvent.move(x1, y1))
    editor.handle_pointer(PointerEvent.up(x1, y1))


class TestDrawing:
    def test_toggle(self, editor):
        modes = []
        editor.drawing_mode_changed.connect(modes.append)
        assert editor.toggle_drawing() is True
        assert editor.state.drawing_mode
        assert editor.toggle_drawing() is False
        assert modes == [True, False]

    def test_draw_and_provisional_state(self, editor):
        editor.set_drawing_mode(True)
        editor.handle_pointer(PointerEvent.down(10, 10))
        editor.handle_pointer(PointerEvent.move(40, 50))
        assert editor.state.provisional is not None
        editor.handle_pointer(PointerEvent.up(40, 50))
        assert editor.state.provisional is None
        assert [r.id for r in editor.store.rectangles] == ["rect-0"]

    def test_toggle_off_mid_gesture_commits(self, editor):
        editor.set_drawing_mode(True)
        editor.handle_pointer(PointerEvent.down(10, 10))
        editor.handle_pointer(PointerEvent.move(40, 50))
        editor.set_drawing_mode(False)
        assert len(editor.store) == 1
        assert editor.state.provisional is None


class TestDelete:
    def test_delete_selected(self, editor):
        editor.set_drawing_mode(True)
        _draw(editor, 0, 0, 20, 20)
        _draw(editor, 50, 50, 90, 90)
        editor.select("rect-0")
        assert editor.state.selected_id == "rect-0"
        assert editor.delete_selected()
        assert [r.id for r in editor.store.rectangles] == ["rect-1"]
        assert editor.state.selected_id is None

    def test_delete_without_selection(self, editor):
        editor.set_drawing_mode(True)
        _draw(editor, 0, 0, 20, 20)
        assert not editor.delete_selected()
        assert len(editor.store) == 1

    def test_clear_all(self, editor):
        editor.set_drawing_mode(True)
        _draw(editor, 0, 0, 20, 20)
        editor.select("rect-0")
        editor.clear_all()
        assert len(editor.store) == 0
        assert editor.state.selected_id is None


class TestImportExport:
    def test_import_replaces(self, editor):
        editor.set_drawing_mode(True)
        _draw(editor, 0, 0, 20, 20)
        editor.select("rect-0")
        assert editor.import_text(VALID_DOC)
        assert [r.id for r in editor.store.rectangles] == ["i1", "i2"]
        assert editor.state.selected_id is None

    def test_import_invalid_sets_message(self, editor):
        editor.set_drawing_mode(True)
        _draw(editor, 0, 0, 20, 20)
        assert not editor.import_text("{ nope")
        assert editor.message == "Invalid file format"
        assert [r.id for r in editor.store.rectangles] == ["rect-0"]

    def test_import_object_root_rejected(self, editor):
        assert not editor.import_text('{"rectangles": []}')
        assert editor.message == "Invalid file format"

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "1" + "0" * 400, "1e400"])
    def test_unrepresentable_numbers_rejected(self, editor, value):
        editor.set_drawing_mode(True)
        _draw(editor, 0, 0, 20, 20)
        text = f'[{{"id": "a", "x": {value}, "y": 0, "width": 10, "height": 10, "color": "#000"}}]'
        assert not editor.import_text(text)
        assert editor.message == "Invalid file format"
        assert [r.id for r in editor.store.rectangles] == ["rect-0"]

    def test_successful_import_clears_message(self, editor):
        editor.import_text("garbage")
        assert editor.import_text(VALID_DOC)
        assert editor.message == ""

    def test_import_file(self, editor, tmp_path):
        p = tmp_path / "doc.json"
        p.write_text(VALID_DOC, encoding="utf-8")
        assert editor.import_file(p)
        assert len(editor.store) == 2

    def test_export_file(self, editor, tmp_path):
        editor.import_text(VALID_DOC)
        out = editor.export(tmp_path / "out")
        assert json.loads(out.read_text(encoding="utf-8")) == json.loads(VALID_DOC)


class TestMessages:
    def test_report_and_clear(self, editor):
        seen = []
        editor.message_changed.connect(seen.append)
        editor.report(SaveFailure("boom"))
        editor.clear_message()
        assert seen == ["Failed to save annotations", ""]

    def test_persistence_outcomes_drive_message(self, editor, fake_server):
        api = AnnotationApi("http://server.test", token="t", transport=fake_server.transport())
        editor.attach_persistence(PersistenceSync(editor.store, api, InlineRunner()))
        editor.store.commit(Rectangle("a", 0, 0, 10, 10, "#000000"))

        fake_server.fail_with = 500
        editor.save()
        assert editor.message == "Failed to save annotations"

        fake_server.fail_with = None
        editor.save()
        assert editor.message == ""

    def test_load_failure_message(self, editor, fake_server):
        api = AnnotationApi("http://server.test", token="t", transport=fake_server.transport())
        editor.attach_persistence(PersistenceSync(editor.store, api, InlineRunner()))
        fake_server.fail_with = 401
        editor.load()
        assert editor.message == "Failed to load annotations"
        assert not editor.state.loading

    def test_auto_save_flag_forwarded(self, editor, fake_server):
        api = AnnotationApi("http://server.test", transport=fake_server.transport())
        sync = PersistenceSync(editor.store, api, InlineRunner())
        editor.attach_persistence(sync)
        editor.set_auto_save(True)
        assert editor.state.auto_save_enabled
        assert sync.auto_save_enabled
