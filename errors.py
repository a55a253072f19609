"""
errors.py

Failure taxonomy for the annotation editor.

None of these are fatal: the editor catches them at the operation boundary
and turns them into the transient user-visible message. Updates and removals
that reference a stale rectangle id are not errors at all; they are silent
no-ops.
"""

from __future__ import annotations

from typing import List, Optional


class AnnotatorError(Exception):
    """Base class for recoverable editor failures.

    Attributes:
        user_message: Short text shown in the message banner.
    """

    user_message = "An error occurred"

    def __init__(self, detail: str = "", user_message: Optional[str] = None):
        super().__init__(detail or self.user_message)
        self.detail = detail
        if user_message is not None:
            self.user_message = user_message


class LoadFailure(AnnotatorError):
    """Fetching the saved annotation sets failed (network, auth, bad data)."""

    user_message = "Failed to load annotations"


class SaveFailure(AnnotatorError):
    """Creating or updating the annotation set failed."""

    user_message = "Failed to save annotations"


class ImportFormatError(AnnotatorError):
    """A rectangle document is malformed or not an array."""

    user_message = "Invalid file format"

    def __init__(self, detail: str = "", problems: Optional[List[str]] = None):
        super().__init__(detail)
        self.problems = list(problems or [])


class AuthFailure(AnnotatorError):
    """Login or registration was rejected."""
