"""
properties/panel.py

Info panel for the selected rectangle.

Shows position, size and color of the selection, rounded to whole units.
The panel hides itself while nothing is selected.
"""

from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QColor
from PyQt6.QtWidgets import (
    QColorDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from editing.store import RectangleStore
from models import Rectangle
from utils import hex_to_qcolor, qcolor_to_hex


def format_position(rect: Rectangle) -> str:
    return f"X={round(rect.x)}, Y={round(rect.y)}"


def format_size(rect: Rectangle) -> str:
    return f"{round(rect.width)} x {round(rect.height)}"


class SelectionPanel(QWidget):
    """
    Read-out of the selected rectangle with a color picker.

    Follows the store: any change to the list or the selection refreshes
    the labels.
    """

    def __init__(self, store: RectangleStore, parent=None):
        super().__init__(parent)
        self.store = store

        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)

        title = QLabel("Selected Rectangle")
        title.setObjectName("panelTitle")
        layout.addWidget(title)

        self.position_label = QLabel("-")
        self.size_label = QLabel("-")

        self.color_preview = QLabel()
        self.color_preview.setFixedSize(20, 20)
        self.color_value = QLabel("-")
        self.color_value.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        self.color_btn = QPushButton("Change...")
        self.color_btn.clicked.connect(self.pick_color)

        color_row = QWidget()
        color_layout = QHBoxLayout(color_row)
        color_layout.setContentsMargins(0, 0, 0, 0)
        color_layout.addWidget(self.color_preview)
        color_layout.addWidget(self.color_value)
        color_layout.addWidget(self.color_btn)
        color_layout.addStretch(1)

        form = QFormLayout()
        form.addRow("Position:", self.position_label)
        form.addRow("Size:", self.size_label)
        form.addRow("Color:", color_row)
        layout.addLayout(form)
        layout.addStretch(1)

        store.changed.connect(self.refresh)
        store.selection_changed.connect(self.refresh)
        self.refresh()

    def refresh(self, *_args) -> None:
        rect = self.store.selected()
        self.setVisible(rect is not None)
        if rect is None:
            self.position_label.setText("-")
            self.size_label.setText("-")
            self.color_value.setText("-")
            self._set_preview(None)
            return
        self.position_label.setText(format_position(rect))
        self.size_label.setText(format_size(rect))
        self.color_value.setText(rect.color)
        self._set_preview(rect.color)

    def _set_preview(self, color: Optional[str]) -> None:
        if color is None:
            self.color_preview.setStyleSheet("")
        else:
            self.color_preview.setStyleSheet(f"background-color: {color}; border: 1px solid #888;")

    def pick_color(self) -> None:
        """Pick a new fill color for the selected rectangle."""
        rect = self.store.selected()
        if rect is None:
            return
        initial = hex_to_qcolor(rect.color, QColor("gray"))
        c = QColorDialog.getColor(initial, self, "Pick Rectangle Color")
        if not c.isValid():
            return
        self.store.update(rect.id, {"color": qcolor_to_hex(c)})
