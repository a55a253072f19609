"""
editing/store.py

The canonical ordered collection of rectangles and the single selection.

Every mutation of the rectangle list goes through ``RectangleStore``; the
draw and transform controllers only propose changes.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Iterator, List, Optional, Tuple

from PyQt6.QtCore import QObject, pyqtSignal

from errors import ImportFormatError
from models import MIN_SIZE, PATCHABLE_FIELDS, Rectangle
from schemas import validate_rectangles

log = logging.getLogger(__name__)


class RectangleStore(QObject):
    """
    Ordered rectangle list plus the selected-id reference.

    Signals:
        changed(): Emitted after any mutation of the rectangle list.
        selection_changed(object): Emitted with the new selected id (or None).

    Update and remove calls that reference an id not in the list are
    silent no-ops: a stale id is a normal transient condition.
    """

    changed = pyqtSignal()
    selection_changed = pyqtSignal(object)

    def __init__(self, min_size: float = MIN_SIZE, parent=None):
        super().__init__(parent)
        self.min_size = min_size
        self._rects: List[Rectangle] = []
        self._selected_id: Optional[str] = None

    # ---- read access ----

    @property
    def rectangles(self) -> Tuple[Rectangle, ...]:
        """Snapshot of the rectangle list in order."""
        return tuple(self._rects)

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    def __len__(self) -> int:
        return len(self._rects)

    def __iter__(self) -> Iterator[Rectangle]:
        return iter(tuple(self._rects))

    def _index_of(self, rect_id: str) -> int:
        for i, r in enumerate(self._rects):
            if r.id == rect_id:
                return i
        return -1

    def get(self, rect_id: Optional[str]) -> Optional[Rectangle]:
        """Return the rectangle with *rect_id*, or None."""
        if rect_id is None:
            return None
        idx = self._index_of(rect_id)
        return self._rects[idx] if idx >= 0 else None

    def selected(self) -> Optional[Rectangle]:
        """Return the selected rectangle, or None."""
        return self.get(self._selected_id)

    # ---- mutations ----

    def commit(self, rect: Rectangle) -> bool:
        """Append *rect* if both dimensions exceed the minimum size.

        Returns:
            True if the rectangle was appended.
        """
        if not rect.meets_min_size(self.min_size):
            log.debug("Rejected %s: %.1f x %.1f is below the minimum size", rect.id, rect.width, rect.height)
            return False
        self._rects.append(rect)
        log.debug("Committed %s at (%.1f, %.1f) %.1f x %.1f", rect.id, rect.x, rect.y, rect.width, rect.height)
        self.changed.emit()
        return True

    def update(self, rect_id: str, patch: Dict[str, Any]) -> bool:
        """Replace the attributes in *patch* on the rectangle with *rect_id*.

        Keys other than the patchable fields (including ``id``) are logged
        and ignored.

        Returns:
            True if a rectangle matched and was updated.
        """
        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            log.warning("Ignoring unpatchable rectangle fields %s", sorted(unknown))
            patch = {k: v for k, v in patch.items() if k in PATCHABLE_FIELDS}
            if not patch:
                return False
        idx = self._index_of(rect_id)
        if idx < 0:
            log.debug("Ignoring update for unknown id %s", rect_id)
            return False
        self._rects[idx] = replace(self._rects[idx], **patch)
        self.changed.emit()
        return True

    def remove(self, rect_id: str) -> bool:
        """Delete the rectangle with *rect_id*, clearing selection if it was selected."""
        idx = self._index_of(rect_id)
        if idx < 0:
            return False
        del self._rects[idx]
        if self._selected_id == rect_id:
            self._set_selected(None)
        self.changed.emit()
        return True

    def clear(self) -> None:
        """Empty the list and clear the selection."""
        self._rects.clear()
        self._set_selected(None)
        self.changed.emit()

    def replace_all(self, records: Any) -> None:
        """Replace the whole list with untrusted *records*.

        *records* must be a list of well-formed rectangle dicts. On success
        the selection is cleared; on failure nothing changes.

        Raises:
            ImportFormatError: If *records* is not a valid rectangle document.
        """
        ok, problems = validate_rectangles(records)
        if not ok:
            log.warning("Rejected rectangle document: %s", "; ".join(problems[:5]))
            raise ImportFormatError("; ".join(problems), problems=problems)
        self._rects = [Rectangle.from_dict(rec) for rec in records]
        self._set_selected(None)
        self.changed.emit()

    # ---- selection ----

    def select(self, rect_id: Optional[str]) -> None:
        """Select *rect_id*, replacing any previous selection.

        An id that is not in the list is ignored; ``None`` clears.
        """
        if rect_id is not None and self._index_of(rect_id) < 0:
            return
        self._set_selected(rect_id)

    def clear_selection(self) -> None:
        self._set_selected(None)

    def _set_selected(self, rect_id: Optional[str]) -> None:
        if rect_id == self._selected_id:
            return
        self._selected_id = rect_id
        self.selection_changed.emit(rect_id)

    def to_records(self) -> List[Dict[str, Any]]:
        """Return the list as plain dicts for serialization."""
        return [r.to_dict() for r in self._rects]
