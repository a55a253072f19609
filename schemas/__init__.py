"""
schemas/__init__.py

JSON Schema definition and validation utilities for rectangle documents.
Used for every untrusted rectangle list: imported files and data loaded
from the persistence service.
"""

from __future__ import annotations

import json
import math
import os
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft202012Validator

# Numeric rectangle fields; must also be finite floats
NUMERIC_FIELDS = ("x", "y", "width", "height")

# Schema file paths
SCHEMA_DIR = os.path.dirname(os.path.abspath(__file__))
RECTANGLE_SCHEMA_PATH = os.path.join(SCHEMA_DIR, "rectangle_schema.json")

# Cached schema and validator
_rectangle_schema: Optional[Dict] = None
_validator: Optional[Draft202012Validator] = None


def get_rectangle_schema() -> Dict:
    """Load and return the rectangle document schema."""
    global _rectangle_schema
    if _rectangle_schema is None:
        with open(RECTANGLE_SCHEMA_PATH, "r", encoding="utf-8") as f:
            _rectangle_schema = json.load(f)
    return _rectangle_schema


def _get_validator() -> Draft202012Validator:
    global _validator
    if _validator is None:
        _validator = Draft202012Validator(get_rectangle_schema())
    return _validator


def validate_rectangles(data: Any) -> Tuple[bool, List[str]]:
    """
    Validate a rectangle document (a list of rectangle records).

    Besides the schema, ids must be unique within the document and every
    coordinate must convert to a finite float. JSON parsers accept NaN,
    Infinity and integers too large for a float, none of which the schema
    type "number" rules out.

    Args:
        data: Parsed JSON data

    Returns:
        Tuple of (is_valid, list_of_error_messages)
    """
    errors = sorted(_get_validator().iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])

    error_messages = []
    for error in errors:
        path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        error_messages.append(f"{path}: {error.message}")

    if not error_messages:
        seen = set()
        for idx, rec in enumerate(data):
            rid = rec["id"]
            if rid in seen:
                error_messages.append(f"{idx} -> id: duplicate id {rid!r}")
            seen.add(rid)
            for key in NUMERIC_FIELDS:
                problem = _float_problem(rec[key])
                if problem:
                    error_messages.append(f"{idx} -> {key}: {problem}")

    return not error_messages, error_messages


def _float_problem(value: Any) -> Optional[str]:
    try:
        f = float(value)
    except OverflowError:
        return "number is too large"
    if not math.isfinite(f):
        return f"{value!r} is not a finite number"
    return None
