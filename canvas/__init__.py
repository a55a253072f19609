"""
canvas package

PyQt6 graphics items, scene, and view for rectangle annotation.
"""

from canvas.items import PreviewItem, RectItem
from canvas.scene import AnnotatorScene
from canvas.view import AnnotatorView

__all__ = [
    "PreviewItem",
    "RectItem",
    "AnnotatorScene",
    "AnnotatorView",
]
