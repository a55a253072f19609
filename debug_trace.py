"""
debug_trace.py

Logging setup and trace helpers.

``setup_logging()`` is called once at startup from the settings; modules
either use ``logging.getLogger(__name__)`` directly or the ``trace`` helpers
below for event-level tracing.
"""

from __future__ import annotations

import logging
import sys
import traceback
from functools import wraps
from typing import Optional

LOG_FORMAT = "[%(asctime)s.%(msecs)03d] [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Set to True to trace pointer-move events (very verbose)
TRACE_POINTER = False

_log = logging.getLogger("rectmark.trace")
_file_handler: Optional[logging.Handler] = None


def setup_logging(level: str = "INFO", log_file: str = "") -> None:
    """Configure the root logger with a stderr handler and optional log file.

    Args:
        level: Level name such as "DEBUG" or "INFO".
        log_file: Path of the log file; empty for stderr only.
    """
    global _file_handler
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    if not any(getattr(h, "_rectmark", False) for h in root.handlers):
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(formatter)
        stream._rectmark = True
        root.addHandler(stream)

    if log_file and _file_handler is None:
        try:
            _file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        except OSError as e:
            root.warning("Could not open log file %s: %s", log_file, e)
        else:
            _file_handler.setFormatter(formatter)
            root.addHandler(_file_handler)


def trace(msg: str, category: str = "INFO"):
    """Log a trace message tagged with a category."""
    if category == "POINTER" and not TRACE_POINTER:
        return
    _log.debug("[%s] %s", category, msg)


def trace_exception(msg: str = "Exception"):
    """Log the current exception with its traceback."""
    _log.error("%s: %s", msg, traceback.format_exc())


def trace_call(category: str = "CALL"):
    """Decorator to trace function calls."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            func_name = func.__qualname__
            trace(f">>> {func_name}", category)
            try:
                result = func(*args, **kwargs)
                trace(f"<<< {func_name}", category)
                return result
            except Exception as e:
                _log.error("!!! %s raised %s: %s", func_name, type(e).__name__, e)
                raise
        return wrapper
    return decorator


def close_log():
    """Close the log file handler."""
    global _file_handler
    if _file_handler is not None:
        logging.getLogger().removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None
