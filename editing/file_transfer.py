"""
editing/file_transfer.py

Export and import of the flat rectangle document.

The document is a JSON array of ``{id, x, y, width, height, color}``
records. Parsing here only checks that the text is JSON with an array
root; record-level validation is done by ``RectangleStore.replace_all``.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from errors import ImportFormatError
from models import Rectangle

EXPORT_PREFIX = "annotations"


def export_document(rectangles: Iterable[Rectangle]) -> str:
    """Serialize rectangles to an indented JSON array."""
    return json.dumps([r.to_dict() for r in rectangles], indent=2)


def default_export_name(now: Optional[datetime] = None) -> str:
    """
    Build the default export filename with a generation timestamp.

    Example: ``annotations-2026-10-18T01-37-00.123Z.json``. Colons in the ISO
    timestamp are replaced so the name is valid on every platform.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    stamp = stamp.replace("+00:00", "Z").replace(":", "-")
    return f"{EXPORT_PREFIX}-{stamp}.json"


def export_to_file(path: Union[str, os.PathLike], rectangles: Iterable[Rectangle]) -> Path:
    """Write the rectangle document to *path*, adding a .json extension if missing."""
    out = Path(path)
    if out.suffix.lower() != ".json":
        out = out.with_name(out.name + ".json")
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as f:
        f.write(export_document(rectangles))
    return out


def _reject_constant(name: str):
    raise ValueError(f"{name} is not a valid number")


def parse_document(text: str) -> List[Any]:
    """
    Parse a rectangle document.

    Args:
        text: Document contents

    Returns:
        The parsed array (records not yet validated)

    Raises:
        ImportFormatError: If the text is not JSON or the root is not an array
    """
    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, TypeError) as e:
        raise ImportFormatError(f"Not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise ImportFormatError(f"Document root must be an array, got {type(data).__name__}")
    return data


def read_document(path: Union[str, os.PathLike]) -> List[Any]:
    """Read and parse a rectangle document from disk."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise ImportFormatError(f"Not a text document: {e}") from e
    return parse_document(text)
