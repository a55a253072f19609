"""
canvas/view.py

QGraphicsView for the annotation canvas.
"""

from __future__ import annotations

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QPainter
from PyQt6.QtWidgets import QGraphicsView

from canvas.scene import AnnotatorScene


class AnnotatorView(QGraphicsView):
    """
    Fixed-size view of the annotation canvas.

    The cursor turns into a crosshair while drawing mode is on.
    """

    def __init__(self, scene: AnnotatorScene, parent=None):
        super().__init__(scene, parent)
        self.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        self.setDragMode(QGraphicsView.DragMode.NoDrag)
        self.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        r = scene.sceneRect()
        frame = 2 * self.frameWidth()
        self.setMinimumSize(int(r.width()) + frame, int(r.height()) + frame)

        scene.editor.drawing_mode_changed.connect(self._on_drawing_mode_changed)

    def _on_drawing_mode_changed(self, enabled: bool) -> None:
        if enabled:
            self.viewport().setCursor(Qt.CursorShape.CrossCursor)
        else:
            self.viewport().unsetCursor()

