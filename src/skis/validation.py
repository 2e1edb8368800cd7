"""Shared validation functions for all entry points.

Pure functions with no FastAPI or Click dependencies.  Each returns
``(cleaned, None)`` on success or ``("", error_message)`` on failure; the
store turns the message into an ``InvalidInputError``.
"""

from __future__ import annotations

import unicodedata
from typing import Any

_MAX_TITLE_LENGTH = 500
_MAX_LABEL_NAME_LENGTH = 64


def _first_control_char(value: str, *, allow_newlines: bool = False) -> str | None:
    for ch in value:
        if allow_newlines and ch in "\n\r\t":
            continue
        if unicodedata.category(ch) == "Cc":
            return ch
    return None


def sanitize_title(value: Any) -> tuple[str, str | None]:
    """Validate and clean an issue title.

    Strips surrounding whitespace, then checks: non-empty, max length,
    single line with no control chars.  Format characters such as
    ZWJ inside emoji are ordinary text and pass.
    """
    if not isinstance(value, str):
        return ("", "title must be a string")
    bad = _first_control_char(value.strip())
    if bad is not None:
        return ("", f"title must not contain control characters (found U+{ord(bad):04X})")
    cleaned = value.strip()
    if not cleaned:
        return ("", "Title cannot be empty")
    if len(cleaned) > _MAX_TITLE_LENGTH:
        return ("", f"title must be at most {_MAX_TITLE_LENGTH} characters")
    return (cleaned, None)


def sanitize_label_name(value: Any) -> tuple[str, str | None]:
    """Validate and clean a label name (case is preserved)."""
    if not isinstance(value, str):
        return ("", "label name must be a string")
    # Check before stripping: reject "\nbad" rather than absorbing the newline.
    bad = _first_control_char(value)
    if bad is not None:
        return ("", f"label name must not contain control characters (found U+{ord(bad):04X})")
    cleaned = value.strip()
    if not cleaned:
        return ("", "Label name cannot be empty")
    if len(cleaned) > _MAX_LABEL_NAME_LENGTH:
        return ("", f"label name must be at most {_MAX_LABEL_NAME_LENGTH} characters")
    return (cleaned, None)


def sanitize_comment_body(value: Any) -> tuple[str, str | None]:
    """Validate a comment body.  Multi-line text is kept verbatim."""
    if not isinstance(value, str):
        return ("", "comment body must be a string")
    if not value.strip():
        return ("", "Comment body cannot be empty")
    bad = _first_control_char(value, allow_newlines=True)
    if bad is not None:
        return ("", f"comment body must not contain control characters (found U+{ord(bad):04X})")
    return (value, None)
