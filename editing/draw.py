"""
editing/draw.py

Draw state machine: turns pointer events into a provisional rectangle and
commits it to the store when the gesture ends.

States:
    IDLE      drawing mode off
    ARMED     drawing mode on, waiting for a pointer-down on the background
    TRACKING  pointer down, provisional rectangle follows the pointer
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional, Tuple

from editing.events import PointerEvent, PointerKind
from editing.store import RectangleStore
from models import DrawState, Rectangle, new_rect_id, random_color
from debug_trace import trace

log = logging.getLogger(__name__)


class DrawController:
    """
    Converts pointer-down/move/up into a committed rectangle.

    The provisional rectangle keeps signed width/height while tracking;
    it is normalized to a top-left origin only on pointer-up.

    Args:
        store: Store that receives the committed rectangle.
        make_id: Factory for new rectangle ids.
        make_color: Factory for new rectangle colors.
    """

    def __init__(
        self,
        store: RectangleStore,
        make_id: Callable[[], str] = new_rect_id,
        make_color: Callable[[], str] = random_color,
    ):
        self.store = store
        self._make_id = make_id
        self._make_color = make_color
        self.state = DrawState.IDLE
        self._start: Optional[Tuple[float, float]] = None
        self.provisional: Optional[Rectangle] = None
        self._on_provisional_changed: Optional[Callable[[Optional[Rectangle]], None]] = None
        self._on_committed: Optional[Callable[[Rectangle], None]] = None

    def set_provisional_callback(self, callback: Optional[Callable[[Optional[Rectangle]], None]]):
        """Set callback for provisional rectangle changes (used for the dashed preview)."""
        self._on_provisional_changed = callback

    def set_committed_callback(self, callback: Optional[Callable[[Rectangle], None]]):
        """Set callback fired after a rectangle has been committed."""
        self._on_committed = callback

    @property
    def drawing_mode(self) -> bool:
        return self.state is not DrawState.IDLE

    def set_drawing_mode(self, enabled: bool) -> None:
        """Turn drawing mode on or off.

        Turning it off mid-gesture finishes the gesture as if the pointer
        had been released at its last position, then goes idle.
        """
        if enabled:
            if self.state is DrawState.IDLE:
                self.state = DrawState.ARMED
            return
        if self.state is DrawState.TRACKING:
            self._finish()
        self.state = DrawState.IDLE

    def handle(self, event: PointerEvent) -> bool:
        """Apply one pointer event.

        Returns:
            True if the event was consumed by the state machine.
        """
        if event.kind is PointerKind.DOWN:
            return self._on_down(event)
        if event.kind is PointerKind.MOVE:
            return self._on_move(event)
        if event.kind is PointerKind.UP:
            return self._on_up(event)
        return False

    def _on_down(self, event: PointerEvent) -> bool:
        if self.state is not DrawState.ARMED or not event.on_background:
            return False
        self._start = (event.x, event.y)
        self.provisional = Rectangle(
            id=self._make_id(),
            x=event.x,
            y=event.y,
            width=0.0,
            height=0.0,
            color=self._make_color(),
        )
        self.state = DrawState.TRACKING
        trace(f"Draw start at ({event.x:.1f}, {event.y:.1f})", "DRAW")
        self._notify_provisional()
        return True

    def _on_move(self, event: PointerEvent) -> bool:
        if self.state is not DrawState.TRACKING or self._start is None or self.provisional is None:
            return False
        sx, sy = self._start
        self.provisional = replace(self.provisional, width=event.x - sx, height=event.y - sy)
        trace(f"Draw move {self.provisional.width:.1f} x {self.provisional.height:.1f}", "POINTER")
        self._notify_provisional()
        return True

    def _on_up(self, event: PointerEvent) -> bool:
        if self.state is not DrawState.TRACKING:
            return False
        self._finish()
        self.state = DrawState.ARMED
        return True

    def _finish(self) -> None:
        """Commit the normalized provisional rectangle and clear it.

        The size is the one from the last pointer-move; a release without
        any movement leaves a zero-size rectangle, which is discarded.
        """
        rect = self.provisional
        if rect is not None:
            final = rect.normalized()
            if self.store.commit(final):
                if self._on_committed:
                    self._on_committed(final)
            else:
                log.debug("Discarded %s: %.1f x %.1f", rect.id, rect.width, rect.height)
        self._start = None
        self.provisional = None
        self._notify_provisional()

    def _notify_provisional(self) -> None:
        if self._on_provisional_changed:
            self._on_provisional_changed(self.provisional)
