"""
models.py

Data models and constants for the RectMark annotation editor.
"""

from __future__ import annotations

import random
import time
import uuid
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional


# ----------------------------
# Constants
# ----------------------------

# Rectangles must be strictly larger than this in both dimensions to be
# committed, and resizing never shrinks them below it.
MIN_SIZE = 5.0

# Attributes of a Rectangle that an update patch may change
PATCHABLE_FIELDS = frozenset({"x", "y", "width", "height", "color"})


# ----------------------------
# Rectangle record
# ----------------------------

@dataclass(frozen=True)
class Rectangle:
    """An axis-aligned rectangle annotation.

    ``id`` is generated once at creation and stays stable across edits.
    ``width`` and ``height`` are non-negative once normalized; a provisional
    rectangle being drawn may carry signed values that encode drag direction.
    """
    id: str
    x: float
    y: float
    width: float
    height: float
    color: str

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Rectangle":
        """Build a Rectangle from a record dict, ignoring unknown keys.

        The persistence service may attach its own keys (``_id``); only the
        six rectangle fields are kept.
        """
        return cls(
            id=str(d["id"]),
            x=float(d["x"]),
            y=float(d["y"]),
            width=float(d["width"]),
            height=float(d["height"]),
            color=str(d["color"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a plain dict with keys in canonical order."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def normalized(self) -> "Rectangle":
        """Return the top-left-origin, non-negative-size form of this rectangle.

        A negative width means the pointer moved left of the start point, so
        the left edge is ``x + width``; likewise for height.
        """
        x = self.x if self.width > 0 else self.x + self.width
        y = self.y if self.height > 0 else self.y + self.height
        return replace(self, x=x, y=y, width=abs(self.width), height=abs(self.height))

    def meets_min_size(self, threshold: float = MIN_SIZE) -> bool:
        """Check both dimensions are strictly above *threshold* (sign ignored)."""
        return abs(self.width) > threshold and abs(self.height) > threshold


class Box(NamedTuple):
    """Bounding box proposed by a resize handle."""
    x: float
    y: float
    width: float
    height: float


def new_rect_id() -> str:
    """Generate a unique rectangle id of the form ``rect-<epoch ms>-<suffix>``."""
    return f"rect-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def random_color(rng: Optional[random.Random] = None) -> str:
    """Return a random ``#RRGGBB`` color."""
    value = (rng or random).randrange(0x1000000)
    return "#{:06X}".format(value)


# ----------------------------
# Editor state
# ----------------------------

class DrawState(Enum):
    """States of the draw state machine."""
    IDLE = "idle"          # drawing mode off
    ARMED = "armed"        # drawing mode on, no gesture
    TRACKING = "tracking"  # pointer down, dragging out a rectangle


@dataclass
class EditorState:
    """Transient editor state; never persisted.

    ``selected_id`` is a weak reference into the rectangle list and must be
    cleared when that rectangle disappears.
    """
    selected_id: Optional[str] = None
    drawing_mode: bool = False
    provisional: Optional[Rectangle] = None
    auto_save_enabled: bool = False
    loading: bool = False
    message: str = ""


# ----------------------------
# Graphics item constants
# ----------------------------

RECT_ID_KEY = 1  # QGraphicsItem.data key for rectangle id
