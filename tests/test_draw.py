"""Tests for the draw state machine."""
from __future__ import annotations

import pytest

from editing.draw import DrawController
from editing.events import PointerEvent
from editing.store import RectangleStore
from models import DrawState


@pytest.fixture()
def store(qapp):
    return RectangleStore()


@pytest.fixture()
def draw(store):
    ids = iter(f"rect-{i}" for i in range(100))
    return DrawController(store, make_id=lambda: next(ids), make_color=lambda: "#123456")


def _gesture(draw, start, *moves):
    draw.handle(PointerEvent.down(*start))
    for m in moves:
        draw.handle(PointerEvent.move(*m))
    last = moves[-1] if moves else start
    draw.handle(PointerEvent.up(*last))


class TestStates:
    def test_idle_ignores_pointer(self, draw, store):
        assert draw.state is DrawState.IDLE
        assert not draw.handle(PointerEvent.down(10, 10))
        assert draw.provisional is None
        assert len(store) == 0

    def test_enable_arms(self, draw):
        draw.set_drawing_mode(True)
        assert draw.state is DrawState.ARMED
        assert draw.drawing_mode

    def test_down_on_rectangle_does_not_start(self, draw):
        draw.set_drawing_mode(True)
        assert not draw.handle(PointerEvent.down(10, 10, on_background=False))
        assert draw.state is DrawState.ARMED

    def test_down_starts_tracking(self, draw):
        draw.set_drawing_mode(True)
        draw.handle(PointerEvent.down(10, 20))
        assert draw.state is DrawState.TRACKING
        p = draw.provisional
        assert (p.x, p.y, p.width, p.height, p.color) == (10, 20, 0, 0, "#123456")

    def test_up_returns_to_armed(self, draw):
        draw.set_drawing_mode(True)
        _gesture(draw, (10, 10), (60, 60))
        assert draw.state is DrawState.ARMED
        assert draw.provisional is None


class TestCommit:
    def test_forward_drag(self, draw, store):
        draw.set_drawing_mode(True)
        _gesture(draw, (10, 10), (30, 30), (60, 50))
        (r,) = store.rectangles
        assert (r.x, r.y, r.width, r.height) == (10, 10, 50, 40)
        assert r.id == "rect-0"

    def test_backward_drag_is_normalized(self, draw, store):
        draw.set_drawing_mode(True)
        _gesture(draw, (100, 100), (40, 70))
        (r,) = store.rectangles
        assert (r.x, r.y, r.width, r.height) == (40, 70, 60, 30)

    def test_mixed_direction(self, draw, store):
        draw.set_drawing_mode(True)
        _gesture(draw, (100, 100), (150, 80))
        (r,) = store.rectangles
        assert (r.x, r.y, r.width, r.height) == (100, 80, 50, 20)

    def test_tiny_drag_discarded(self, draw, store):
        draw.set_drawing_mode(True)
        _gesture(draw, (10, 10), (15, 40))
        assert len(store) == 0
        assert draw.provisional is None

    def test_click_without_move_discarded(self, draw, store):
        draw.set_drawing_mode(True)
        _gesture(draw, (10, 10))
        assert len(store) == 0

    def test_several_rectangles_in_one_session(self, draw, store):
        draw.set_drawing_mode(True)
        _gesture(draw, (0, 0), (20, 20))
        _gesture(draw, (100, 100), (150, 150))
        assert [r.id for r in store.rectangles] == ["rect-0", "rect-1"]

    def test_committed_callback(self, draw):
        seen = []
        draw.set_committed_callback(seen.append)
        draw.set_drawing_mode(True)
        _gesture(draw, (0, 0), (20, 20))
        assert [r.id for r in seen] == ["rect-0"]


class TestProvisional:
    def test_signed_size_while_tracking(self, draw):
        seen = []
        draw.set_provisional_callback(seen.append)
        draw.set_drawing_mode(True)
        draw.handle(PointerEvent.down(50, 50))
        draw.handle(PointerEvent.move(20, 30))
        assert (seen[-1].width, seen[-1].height) == (-30, -20)
        draw.handle(PointerEvent.up(20, 30))
        assert seen[-1] is None


class TestToggleOffMidGesture:
    def test_commits_qualifying_rectangle(self, draw, store):
        draw.set_drawing_mode(True)
        draw.handle(PointerEvent.down(10, 10))
        draw.handle(PointerEvent.move(60, 60))
        draw.set_drawing_mode(False)
        assert draw.state is DrawState.IDLE
        assert len(store) == 1
        assert draw.provisional is None

    def test_discards_small_rectangle(self, draw, store):
        draw.set_drawing_mode(True)
        draw.handle(PointerEvent.down(10, 10))
        draw.handle(PointerEvent.move(12, 12))
        draw.set_drawing_mode(False)
        assert len(store) == 0
        assert draw.state is DrawState.IDLE

    def test_late_pointer_up_is_ignored(self, draw, store):
        draw.set_drawing_mode(True)
        draw.handle(PointerEvent.down(10, 10))
        draw.handle(PointerEvent.move(60, 60))
        draw.set_drawing_mode(False)
        assert not draw.handle(PointerEvent.up(60, 60))
        assert len(store) == 1
