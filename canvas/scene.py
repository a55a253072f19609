"""
canvas/scene.py

QGraphicsScene that renders the rectangle store and routes mouse input.

The store is the source of truth. The scene mirrors it into ``RectItem``
instances on every ``changed`` signal and keeps the Qt selection in step
with the store's single selected id.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from PyQt6.QtCore import Qt, QPointF, QRectF
from PyQt6.QtGui import QBrush, QColor
from PyQt6.QtWidgets import QGraphicsScene

from canvas.items import PreviewItem, RectItem
from editing.editor import AnnotationEditor
from editing.events import PointerEvent
from models import DrawState
from settings import get_settings

log = logging.getLogger(__name__)


class AnnotatorScene(QGraphicsScene):
    """
    Graphics scene bound to an ``AnnotationEditor``.

    In drawing mode a left press on empty background starts a new
    rectangle; presses on existing rectangles select and drag them as in
    selecting mode.
    """

    def __init__(self, editor: AnnotationEditor, parent=None):
        super().__init__(parent)
        self.editor = editor
        canvas = get_settings().settings.canvas
        self.setSceneRect(QRectF(0, 0, canvas.width, canvas.height))
        self.setBackgroundBrush(QBrush(QColor("#FFFFFF")))
        self.clear_selection_on_background_click = canvas.clear_selection_on_background_click

        self._items: Dict[str, RectItem] = {}
        self._syncing_selection = False

        self._preview = PreviewItem()
        self.addItem(self._preview)

        editor.store.changed.connect(self.sync_from_store)
        editor.store.selection_changed.connect(self._on_store_selection_changed)
        editor.provisional_changed.connect(self._preview.show_rect)
        self.selectionChanged.connect(self._on_scene_selection_changed)

        self.sync_from_store()

    # ---- store -> items ----

    def item_for(self, rect_id: str) -> Optional[RectItem]:
        return self._items.get(rect_id)

    @property
    def rect_items(self):
        return list(self._items.values())

    @property
    def preview_item(self) -> PreviewItem:
        return self._preview

    def sync_from_store(self) -> None:
        """Add, update, remove and restack items to match the store."""
        rects = self.editor.store.rectangles
        live = {r.id for r in rects}

        for rect_id in [k for k in self._items if k not in live]:
            item = self._items.pop(rect_id)
            self.removeItem(item)

        for z, rect in enumerate(rects):
            item = self._items.get(rect.id)
            if item is None:
                item = RectItem(
                    rect,
                    on_drag_finished=self._on_drag_finished,
                    on_resize_finished=self._on_resize_finished,
                    bound_box=self.editor.transform.bound_box,
                )
                self._items[rect.id] = item
                self.addItem(item)
            else:
                item.apply(rect)
            item.setZValue(z)

        self._on_store_selection_changed(self.editor.store.selected_id)

    def _on_drag_finished(self, rect_id: str, x: float, y: float) -> None:
        if self.editor.transform.drag_end(rect_id, x, y) is None:
            self._restore(rect_id)

    def _on_resize_finished(self, rect_id: str, x: float, y: float, sx: float, sy: float) -> None:
        if self.editor.transform.resize_end(rect_id, x, y, sx, sy) is None:
            self._restore(rect_id)

    def _restore(self, rect_id: str) -> None:
        rect = self.editor.store.get(rect_id)
        item = self._items.get(rect_id)
        if rect is not None and item is not None:
            item.apply(rect)

    # ---- selection sync ----

    def _on_store_selection_changed(self, rect_id) -> None:
        self._syncing_selection = True
        try:
            for item_id, item in self._items.items():
                want = item_id == rect_id
                if item.isSelected() != want:
                    item.setSelected(want)
        finally:
            self._syncing_selection = False

    def _on_scene_selection_changed(self) -> None:
        if self._syncing_selection:
            return
        selected = [it for it in self.selectedItems() if isinstance(it, RectItem)]
        if selected:
            self.editor.select(selected[-1].rect_id)
        # Qt may drop the selection on its own (e.g. item removed); keep the store's
        self._on_store_selection_changed(self.editor.store.selected_id)

    # ---- input ----

    def _is_background(self, pos: QPointF) -> bool:
        for item in self.items(pos):
            if isinstance(item, RectItem):
                return False
        return True

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            sp = event.scenePos()
            on_background = self._is_background(sp)
            if self.editor.handle_pointer(PointerEvent.down(sp.x(), sp.y(), on_background)):
                event.accept()
                return
            if on_background:
                if self.clear_selection_on_background_click:
                    self.editor.store.clear_selection()
                # Swallow the press so Qt does not clear the selection itself
                event.accept()
                return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self.editor.draw.state is DrawState.TRACKING:
            sp = event.scenePos()
            self.editor.handle_pointer(PointerEvent.move(sp.x(), sp.y()))
            event.accept()
            return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton and self.editor.draw.state is DrawState.TRACKING:
            sp = event.scenePos()
            self.editor.handle_pointer(PointerEvent.up(sp.x(), sp.y()))
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def keyPressEvent(self, event):
        if event.key() == Qt.Key.Key_Escape and self.editor.drawing_mode:
            self.editor.set_drawing_mode(False)
            event.accept()
            return
        super().keyPressEvent(event)
