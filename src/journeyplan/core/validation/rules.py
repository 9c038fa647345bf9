# src/journeyplan/core/validation/rules.py
"""Built-in validation rules.

Only the ``optional`` marker rule lives here; concrete field rules
(required, email, date ranges, ...) are supplied by the application.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def is_empty(value: Any) -> bool:
    """None, "", and containers holding only empty values are empty."""
    if value is None or value == "":
        return True
    if isinstance(value, Mapping):
        return all(is_empty(v) for v in value.values())
    if isinstance(value, list | tuple):
        return all(is_empty(v) for v in value)
    return False


def optional(value: Any) -> bool:
    """Marker rule: when present and the value is empty, skip all other rules.

    Returns True when the field may be skipped.
    """
    return is_empty(value)
