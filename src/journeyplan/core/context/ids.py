# src/journeyplan/core/context/ids.py
"""Journey context identifiers."""

from __future__ import annotations

import re
import uuid
from collections.abc import Collection
from typing import Any

from journeyplan.contracts import ContextFormatError

DEFAULT_CONTEXT_ID = "default"

_UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


def validate_context_id(context_id: Any) -> str:
    """Accept the literal "default" or a UUID string.

    Raises:
        TypeError: If the id is not a string
        ContextFormatError: If the id is neither "default" nor a UUID
    """
    if context_id == DEFAULT_CONTEXT_ID:
        return DEFAULT_CONTEXT_ID
    if not isinstance(context_id, str):
        raise TypeError(f"Context ID must be a string, got {type(context_id).__name__}")
    if not _UUID_PATTERN.match(context_id):
        raise ContextFormatError(f"Context ID is not in the correct format: {context_id!r}")
    return context_id


def generate_context_id(reserved: Collection[str] = ()) -> str:
    """Generate a fresh UUID context id not already in ``reserved``."""
    while True:
        context_id = str(uuid.uuid4())
        if context_id not in reserved:
            return context_id
