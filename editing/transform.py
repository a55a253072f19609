"""
editing/transform.py

Drag and resize of an existing, selected rectangle.

The canvas reports resize results the way the rendering layer sees them:
a final position plus scale factors relative to the last committed size.
They are folded back into absolute width/height here, so scale factors are
never stored and never compound across edits.
"""

from __future__ import annotations

import logging
from typing import Optional

from editing.store import RectangleStore
from models import MIN_SIZE, Box, Rectangle

log = logging.getLogger(__name__)


def bound_box(old: Box, new: Box, min_size: float = MIN_SIZE) -> Box:
    """Clamp a proposed resize bounding box.

    Args:
        old: The last accepted box.
        new: The box the resize handle is trying to apply.
        min_size: Smallest allowed width/height.

    Returns:
        *old* when *new* would be smaller than ``min_size`` in either
        dimension, otherwise *new*.
    """
    if new.width < min_size or new.height < min_size:
        return old
    return new


class TransformController:
    """
    Applies drag-end and resize-end results to the selected rectangle.

    Both gestures are ignored (return None) for a rectangle that is not the
    current selection or no longer exists.
    """

    def __init__(self, store: RectangleStore, min_size: float = MIN_SIZE):
        self.store = store
        self.min_size = min_size

    def _selected_target(self, rect_id: str) -> Optional[Rectangle]:
        if self.store.selected_id != rect_id:
            log.debug("Ignoring transform of unselected rectangle %s", rect_id)
            return None
        return self.store.get(rect_id)

    def drag_end(self, rect_id: str, x: float, y: float) -> Optional[Rectangle]:
        """Move the rectangle to its final rendered position; size unchanged."""
        if self._selected_target(rect_id) is None:
            return None
        self.store.update(rect_id, {"x": x, "y": y})
        return self.store.get(rect_id)

    def resize_end(self, rect_id: str, x: float, y: float, scale_x: float, scale_y: float) -> Optional[Rectangle]:
        """Fold a finished resize into absolute geometry.

        Args:
            rect_id: Rectangle being resized.
            x: Final rendered left edge.
            y: Final rendered top edge.
            scale_x: Rendered width / committed width.
            scale_y: Rendered height / committed height.

        Returns:
            The updated rectangle, or None if the gesture was ignored.
        """
        rect = self._selected_target(rect_id)
        if rect is None:
            return None
        width = max(self.min_size, rect.width * scale_x)
        height = max(self.min_size, rect.height * scale_y)
        self.store.update(rect_id, {"x": x, "y": y, "width": width, "height": height})
        log.debug("Resized %s to %.1f x %.1f (scale %.3f, %.3f)", rect_id, width, height, scale_x, scale_y)
        return self.store.get(rect_id)

    def bound_box(self, old: Box, new: Box) -> Box:
        """Clamp a live resize proposal to the minimum size."""
        return bound_box(old, new, self.min_size)
