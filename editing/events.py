"""
editing/events.py

Pointer event messages consumed by the draw state machine.

The canvas translates Qt mouse events into these plain values so the
controllers never depend on Qt event objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PointerKind(Enum):
    """Types of pointer events."""
    DOWN = "down"
    MOVE = "move"
    UP = "up"


@dataclass(frozen=True)
class PointerEvent:
    """A pointer event in canvas coordinates.

    Attributes:
        kind: Down, move, or up.
        x: Canvas x coordinate.
        y: Canvas y coordinate.
        on_background: True when the pointer is over the empty canvas
            rather than an existing rectangle.
    """
    kind: PointerKind
    x: float
    y: float
    on_background: bool = True

    @classmethod
    def down(cls, x: float, y: float, on_background: bool = True) -> "PointerEvent":
        return cls(PointerKind.DOWN, x, y, on_background)

    @classmethod
    def move(cls, x: float, y: float) -> "PointerEvent":
        return cls(PointerKind.MOVE, x, y)

    @classmethod
    def up(cls, x: float, y: float) -> "PointerEvent":
        return cls(PointerKind.UP, x, y)
