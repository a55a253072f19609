"""
editing package

Rectangle store, draw and transform controllers, file transfer and the
editor session that ties them together. Nothing in here touches widgets.
"""

from editing.draw import DrawController
from editing.editor import AnnotationEditor
from editing.events import PointerEvent, PointerKind
from editing.store import RectangleStore
from editing.transform import TransformController, bound_box

__all__ = [
    "AnnotationEditor",
    "DrawController",
    "PointerEvent",
    "PointerKind",
    "RectangleStore",
    "TransformController",
    "bound_box",
]
