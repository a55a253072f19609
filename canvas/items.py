"""
canvas/items.py

Graphics item for a rectangle annotation, with drag and eight resize handles.

The item never edits the rectangle store itself. It shows the gesture live
and reports the outcome when the mouse is released:

- drag:   ``on_drag_finished(rect_id, x, y)``
- resize: ``on_resize_finished(rect_id, x, y, scale_x, scale_y)``

While a resize handle is held the committed rect stays as-is and a scale
transform stretches it; the transform is reset to identity on release.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from PyQt6.QtCore import Qt, QPointF, QRectF, QLineF
from PyQt6.QtGui import QBrush, QPen, QColor, QPainter, QPainterPath, QTransform
from PyQt6.QtWidgets import (
    QGraphicsItem,
    QGraphicsRectItem,
    QStyle,
    QStyleOptionGraphicsItem,
)

from models import RECT_ID_KEY, Box, Rectangle
from settings import get_settings
from utils import hex_to_qcolor, with_opacity
from debug_trace import trace


# =============================================================================
# Cached canvas settings - initialized once at first access to avoid
# repeated settings lookups during paint operations.
# =============================================================================

class _CachedCanvasSettings:
    """Cache for canvas settings values to avoid repeated lookups during paint."""

    _instance = None

    def __init__(self):
        s = get_settings().settings.canvas
        self.handle_size = s.handles.size
        self.hit_distance = s.handles.hit_distance
        self.min_size = s.shapes.min_size
        self.handle_border_color = QColor(s.handles.border_color)
        self.handle_fill_color = QColor(s.handles.fill_color)
        self.pen_color = QColor(s.shapes.pen_color)
        self.pen_width = s.shapes.pen_width
        self.selection_color = QColor(s.selection.outline_color)
        self.selection_width = s.selection.outline_width
        self.fill_opacity = s.fill_opacity

    @classmethod
    def get(cls) -> "_CachedCanvasSettings":
        """Get the singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the cache so the next access re-reads settings."""
        cls._instance = None


def draw_handles(painter: QPainter, handle_positions: Dict[str, QPointF], handle_size: Optional[float] = None):
    """Draw resize handles at the given positions."""
    cached = _CachedCanvasSettings.get()
    if handle_size is None:
        handle_size = cached.handle_size
    painter.setPen(QPen(cached.handle_border_color, 1))
    painter.setBrush(QBrush(cached.handle_fill_color))

    half = handle_size / 2
    for pos in handle_positions.values():
        painter.drawRect(QRectF(pos.x() - half, pos.y() - half, handle_size, handle_size))


def shape_with_handles(base_shape: QPainterPath, handle_positions: Dict[str, QPointF], handle_size: Optional[float] = None) -> QPainterPath:
    """Create a shape path that includes handle hit areas."""
    if handle_size is None:
        handle_size = _CachedCanvasSettings.get().hit_distance
    result = QPainterPath(base_shape)
    half = handle_size / 2
    for pos in handle_positions.values():
        result.addRect(QRectF(pos.x() - half, pos.y() - half, handle_size, handle_size))
    return result


DragCallback = Callable[[str, float, float], None]
ResizeCallback = Callable[[str, float, float, float, float], None]
BoundBox = Callable[[Box, Box], Box]


class RectItem(QGraphicsRectItem):
    """Rectangle annotation with drag, selection outline and resize handles."""

    def __init__(
        self,
        rect: Rectangle,
        on_drag_finished: Optional[DragCallback] = None,
        on_resize_finished: Optional[ResizeCallback] = None,
        bound_box: Optional[BoundBox] = None,
    ):
        super().__init__(QRectF(0, 0, rect.width, rect.height))
        self.rect_id = rect.id
        self.setData(RECT_ID_KEY, rect.id)
        self.on_drag_finished = on_drag_finished
        self.on_resize_finished = on_resize_finished
        self.bound_box = bound_box

        self.setAcceptHoverEvents(True)
        self.setFlags(
            QGraphicsItem.GraphicsItemFlag.ItemIsSelectable
            | QGraphicsItem.GraphicsItemFlag.ItemIsMovable
            | QGraphicsItem.GraphicsItemFlag.ItemSendsGeometryChanges
        )

        self._active_handle: Optional[str] = None
        self._resizing = False
        self._press_scene: Optional[QPointF] = None
        self._start_pos: Optional[QPointF] = None
        self._start_box: Optional[Box] = None
        self._live_box: Optional[Box] = None

        self.fill_color = QColor(Qt.GlobalColor.gray)
        self.setPos(QPointF(rect.x, rect.y))
        self.apply(rect)

    # ---- state from the store ----

    def apply(self, rect: Rectangle) -> None:
        """Show the committed geometry and color of *rect*."""
        if self._resizing:
            return
        self.setTransform(QTransform())
        if self.pos() != QPointF(rect.x, rect.y):
            self.setPos(QPointF(rect.x, rect.y))
        if self.rect() != QRectF(0, 0, rect.width, rect.height):
            self.prepareGeometryChange()
            self.setRect(QRectF(0, 0, rect.width, rect.height))
        self.fill_color = hex_to_qcolor(rect.color, self.fill_color)
        self._apply_pen_brush()

    def _apply_pen_brush(self):
        cached = _CachedCanvasSettings.get()
        if self.isSelected():
            pen = QPen(cached.selection_color, cached.selection_width)
        else:
            pen = QPen(cached.pen_color, cached.pen_width)
        # Keep the outline width constant while a scale transform is applied
        pen.setCosmetic(True)
        self.setPen(pen)
        self.setBrush(QBrush(with_opacity(self.fill_color, cached.fill_opacity)))

    # ---- handles ----

    def _handle_points_local(self) -> Dict[str, QPointF]:
        """Return handle positions in local coordinates for painting."""
        r = self.rect()
        cx = r.left() + r.width() / 2
        cy = r.top() + r.height() / 2
        return {
            "tl": QPointF(r.left(), r.top()),
            "tr": QPointF(r.right(), r.top()),
            "bl": QPointF(r.left(), r.bottom()),
            "br": QPointF(r.right(), r.bottom()),
            "t":  QPointF(cx, r.top()),
            "b":  QPointF(cx, r.bottom()),
            "l":  QPointF(r.left(), cy),
            "r":  QPointF(r.right(), cy),
        }

    def _handle_points_scene(self) -> Dict[str, QPointF]:
        """Return handle positions in scene coordinates (corners and sides)."""
        return {k: self.mapToScene(p) for k, p in self._handle_points_local().items()}

    def hit_test_handle(self, scene_pt: QPointF) -> Optional[str]:
        if not self.isSelected():
            return None
        hit_dist = _CachedCanvasSettings.get().hit_distance
        for k, hp in self._handle_points_scene().items():
            if QLineF(scene_pt, hp).length() <= hit_dist:
                return k
        return None

    def hoverMoveEvent(self, event):
        h = self.hit_test_handle(event.scenePos())
        if h in ("tl", "br"):
            self.setCursor(Qt.CursorShape.SizeFDiagCursor)
        elif h in ("tr", "bl"):
            self.setCursor(Qt.CursorShape.SizeBDiagCursor)
        elif h in ("t", "b"):
            self.setCursor(Qt.CursorShape.SizeVerCursor)
        elif h in ("l", "r"):
            self.setCursor(Qt.CursorShape.SizeHorCursor)
        else:
            self.setCursor(Qt.CursorShape.ArrowCursor)
        super().hoverMoveEvent(event)

    # ---- resize gesture ----

    def begin_resize(self, handle: str, scene_pt: QPointF) -> None:
        """Start resizing from *handle* at *scene_pt*."""
        self._active_handle = handle
        self._resizing = True
        self._press_scene = QPointF(scene_pt)
        r = self.rect()
        self._start_box = Box(self.pos().x(), self.pos().y(), r.width(), r.height())
        self._live_box = self._start_box
        trace(f"Resize start {self.rect_id} handle={handle}", "TRANSFORM")

    def update_resize(self, scene_pt: QPointF) -> None:
        """Stretch the item to follow the active handle."""
        if not (self._resizing and self._active_handle and self._press_scene and self._start_box):
            return
        dx = scene_pt.x() - self._press_scene.x()
        dy = scene_pt.y() - self._press_scene.y()

        x0, y0, w0, h0 = self._start_box
        left, top, right, bottom = x0, y0, x0 + w0, y0 + h0

        h = self._active_handle
        if h in ("tl", "bl", "l"):
            left += dx
        if h in ("tr", "br", "r"):
            right += dx
        if h in ("tl", "tr", "t"):
            top += dy
        if h in ("bl", "br", "b"):
            bottom += dy

        proposed = Box(left, top, right - left, bottom - top)
        if self.bound_box is not None:
            proposed = self.bound_box(self._live_box, proposed)
        elif proposed.width < 0 or proposed.height < 0:
            proposed = self._live_box
        self._live_box = proposed

        self.setPos(QPointF(proposed.x, proposed.y))
        if w0 > 0 and h0 > 0:
            self.setTransform(QTransform.fromScale(proposed.width / w0, proposed.height / h0))

    def end_resize(self) -> None:
        """Report the finished resize and drop the scale transform."""
        if not self._resizing:
            return
        start = self._start_box
        box = self._live_box or start
        self._resizing = False
        self._active_handle = None
        self._press_scene = None
        self._start_box = None
        self._live_box = None
        self.setTransform(QTransform())

        if start is None or box is None or start.width <= 0 or start.height <= 0:
            return
        scale_x = box.width / start.width
        scale_y = box.height / start.height
        trace(f"Resize end {self.rect_id} scale=({scale_x:.3f}, {scale_y:.3f})", "TRANSFORM")
        if self.on_resize_finished:
            self.on_resize_finished(self.rect_id, box.x, box.y, scale_x, scale_y)

    @property
    def resizing(self) -> bool:
        return self._resizing

    # ---- mouse ----

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            h = self.hit_test_handle(event.scenePos())
            if h:
                self.begin_resize(h, event.scenePos())
                event.accept()
                return
            self._start_pos = QPointF(self.pos())
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self._resizing:
            self.update_resize(event.scenePos())
            event.accept()
            return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if self._resizing:
            self.end_resize()
            event.accept()
            return
        super().mouseReleaseEvent(event)
        start = self._start_pos
        self._start_pos = None
        if start is not None and self.pos() != start and self.on_drag_finished:
            p = self.pos()
            trace(f"Drag end {self.rect_id} at ({p.x():.1f}, {p.y():.1f})", "TRANSFORM")
            self.on_drag_finished(self.rect_id, p.x(), p.y())

    # ---- painting ----

    def shape(self) -> QPainterPath:
        """Return shape including handle areas when selected."""
        base = super().shape()
        if self.isSelected():
            return shape_with_handles(base, self._handle_points_local())
        return base

    def boundingRect(self) -> QRectF:
        """Expand bounding rect to include resize handles and the selection outline."""
        r = super().boundingRect()
        cached = _CachedCanvasSettings.get()
        margin = max(cached.handle_size / 2, cached.selection_width) + 1
        return r.adjusted(-margin, -margin, margin, margin)

    def paint(self, painter: QPainter, option, widget=None):
        # Remove selection state from option to suppress default selection rectangle
        my_option = QStyleOptionGraphicsItem(option)
        my_option.state &= ~QStyle.StateFlag.State_Selected
        super().paint(painter, my_option, widget)

        if self.isSelected():
            draw_handles(painter, self._handle_points_local())

    def itemChange(self, change, value):
        out = super().itemChange(change, value)
        if change == QGraphicsItem.GraphicsItemChange.ItemSelectedHasChanged:
            # Update shape when selection changes to include/exclude handle areas
            self.prepareGeometryChange()
            self._apply_pen_brush()
        return out


class PreviewItem(QGraphicsRectItem):
    """Dashed, translucent outline of the rectangle being drawn."""

    def __init__(self):
        super().__init__()
        s = get_settings().settings.canvas.preview
        pen = QPen(QColor(s.outline_color), 1, Qt.PenStyle.DashLine)
        self.setPen(pen)
        self.setBrush(QBrush(hex_to_qcolor(s.fill_color, QColor(0, 0, 255, 76))))
        self.setAcceptedMouseButtons(Qt.MouseButton.NoButton)
        self.setZValue(1_000_000)
        self.hide()

    def show_rect(self, rect: Optional[Rectangle]) -> None:
        """Show the normalized form of *rect*, or hide when None."""
        if rect is None:
            self.hide()
            return
        n = rect.normalized()
        self.setRect(QRectF(n.x, n.y, n.width, n.height))
        self.show()
