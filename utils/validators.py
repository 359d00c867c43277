"""
Input parsing and sanitization helpers for untrusted query/path values.
Never raise: callers fall back to defaults when a value is unusable.
"""

import re
from typing import Any

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_SORT_FIELD_DISALLOWED = re.compile(r"[^A-Za-z0-9_.]")
OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


def parse_leading_int(value: Any) -> int | None:
    """
    Parse the integer prefix of a value: "12abc" -> 12, " -3" -> -3, "3.9" -> 3.
    Returns None when there is no leading integer, or when the digit run is
    too long for int() to convert.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        return None


def sanitize_sort_field(value: str) -> str:
    """Keep only [A-Za-z0-9_.]; blocks operator injection into sort clauses."""
    return _SORT_FIELD_DISALLOWED.sub("", value)


def is_object_id(value: str) -> bool:
    """24 hex chars, the shape of every record id."""
    return bool(OBJECT_ID_PATTERN.match(value))
