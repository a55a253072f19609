"""
editing/editor.py

AnnotationEditor: the single owner of editor state.

It ties the rectangle store to the draw and transform controllers, keeps
the ``EditorState`` value object current, and is the one place where
failures turn into the user-visible message.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Optional, Union

from PyQt6.QtCore import QObject, pyqtSignal

from editing.draw import DrawController
from editing.events import PointerEvent
from editing.file_transfer import export_to_file, parse_document, read_document
from editing.store import RectangleStore
from editing.transform import TransformController
from errors import AnnotatorError, ImportFormatError
from models import MIN_SIZE, EditorState, Rectangle, new_rect_id, random_color

log = logging.getLogger(__name__)


class AnnotationEditor(QObject):
    """
    Editor session: rectangles, selection, drawing mode and message.

    Signals:
        message_changed(str): The transient message was set or cleared
        drawing_mode_changed(bool): Drawing mode toggled
        provisional_changed(object): Provisional rectangle (or None) for the preview
        auto_save_changed(bool): Auto-save toggled
    """

    message_changed = pyqtSignal(str)
    drawing_mode_changed = pyqtSignal(bool)
    provisional_changed = pyqtSignal(object)
    auto_save_changed = pyqtSignal(bool)

    def __init__(
        self,
        min_size: float = MIN_SIZE,
        make_id: Callable[[], str] = new_rect_id,
        make_color: Callable[[], str] = random_color,
        parent=None,
    ):
        super().__init__(parent)
        self.state = EditorState()
        self.store = RectangleStore(min_size=min_size, parent=self)
        self.draw = DrawController(self.store, make_id=make_id, make_color=make_color)
        self.transform = TransformController(self.store, min_size=min_size)
        self.persistence = None

        self.draw.set_provisional_callback(self._on_provisional)
        self.store.selection_changed.connect(self._on_selection_changed)

    # ---- persistence wiring ----

    def attach_persistence(self, persistence) -> None:
        """Route load/save outcomes into the message and loading flag."""
        self.persistence = persistence
        persistence.failed.connect(self.report)
        persistence.succeeded.connect(self.clear_message)
        persistence.loading_changed.connect(self._on_loading_changed)
        persistence.set_auto_save(self.state.auto_save_enabled)

    def load(self) -> None:
        if self.persistence is not None:
            self.persistence.load()

    def save(self) -> None:
        if self.persistence is not None:
            self.persistence.save()

    def set_auto_save(self, enabled: bool) -> None:
        enabled = bool(enabled)
        if enabled == self.state.auto_save_enabled:
            return
        self.state.auto_save_enabled = enabled
        if self.persistence is not None:
            self.persistence.set_auto_save(enabled)
        self.auto_save_changed.emit(enabled)

    # ---- message ----

    @property
    def message(self) -> str:
        return self.state.message

    def report(self, error: AnnotatorError) -> None:
        """Show the user-facing text of *error* in the message banner."""
        self._set_message(error.user_message)

    def clear_message(self) -> None:
        self._set_message("")

    def _set_message(self, text: str) -> None:
        if text == self.state.message:
            return
        self.state.message = text
        self.message_changed.emit(text)

    # ---- drawing ----

    @property
    def drawing_mode(self) -> bool:
        return self.state.drawing_mode

    def set_drawing_mode(self, enabled: bool) -> None:
        enabled = bool(enabled)
        self.draw.set_drawing_mode(enabled)
        if enabled != self.state.drawing_mode:
            self.state.drawing_mode = enabled
            self.drawing_mode_changed.emit(enabled)

    def toggle_drawing(self) -> bool:
        self.set_drawing_mode(not self.state.drawing_mode)
        return self.state.drawing_mode

    def handle_pointer(self, event: PointerEvent) -> bool:
        return self.draw.handle(event)

    def _on_provisional(self, rect: Optional[Rectangle]) -> None:
        self.state.provisional = rect
        self.provisional_changed.emit(rect)

    # ---- selection and edits ----

    def _on_selection_changed(self, rect_id) -> None:
        self.state.selected_id = rect_id

    def _on_loading_changed(self, loading: bool) -> None:
        self.state.loading = loading

    def select(self, rect_id: Optional[str]) -> None:
        self.store.select(rect_id)

    def delete_selected(self) -> bool:
        rect_id = self.store.selected_id
        if rect_id is None:
            return False
        return self.store.remove(rect_id)

    def clear_all(self) -> None:
        self.store.clear()

    # ---- import / export ----

    def import_text(self, text: str) -> bool:
        """Replace all rectangles with the document in *text*."""
        try:
            self.store.replace_all(parse_document(text))
        except ImportFormatError as e:
            log.warning("Import failed: %s", e.detail)
            self.report(e)
            return False
        self.clear_message()
        log.info("Imported %d rectangles", len(self.store))
        return True

    def import_file(self, path: Union[str, os.PathLike]) -> bool:
        try:
            records = read_document(path)
            self.store.replace_all(records)
        except ImportFormatError as e:
            log.warning("Import of %s failed: %s", path, e.detail)
            self.report(e)
            return False
        self.clear_message()
        log.info("Imported %d rectangles from %s", len(self.store), path)
        return True

    def export(self, path: Union[str, os.PathLike]) -> Path:
        out = export_to_file(path, self.store.rectangles)
        log.info("Exported %d rectangles to %s", len(self.store), out)
        return out
