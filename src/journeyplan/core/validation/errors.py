# src/journeyplan/core/validation/errors.py
"""Field error records.

A FieldError is what the journey context stores against a failed field:
``validation[waypoint][field] == [FieldError, ...]``. Records are frozen;
binding one to a field produces a new record.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, model_validator


class FieldError(BaseModel):
    """A single validation failure for a field.

    ``summary`` is usually a message key resolved by the (external)
    internationalisation layer, with ``variables`` interpolated into it.
    """

    model_config = {"frozen": True}

    summary: str
    inline: str | None = None
    focus_suffix: tuple[str, ...] = ()
    field_key_suffix: str | None = None
    variables: dict[str, Any] = Field(default_factory=dict)
    field: str | None = None
    field_href: str | None = None
    validator: str | None = None

    @model_validator(mode="before")
    @classmethod
    def default_inline_and_suffix(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            data = dict(data)
            if data.get("inline") is None and "summary" in data:
                data["inline"] = data["summary"]
            suffix = data.get("focus_suffix")
            if isinstance(suffix, str):
                data["focus_suffix"] = (suffix,)
        return data

    @classmethod
    def make(cls, error: Any) -> FieldError:
        """Coerce a string, mapping, exception or FieldError into a record.

        Raises:
            TypeError: If the value cannot describe an error.
        """
        if isinstance(error, FieldError):
            return error
        if isinstance(error, str):
            return cls(summary=error)
        if isinstance(error, Mapping):
            return cls.model_validate(error)
        if isinstance(error, Exception):
            return cls(summary=str(error), focus_suffix=tuple(getattr(error, "focus_suffix", ())))
        raise TypeError(f"Cannot build a field error from {type(error).__name__}")

    def bind(self, field_name: str, validator: str | None = None) -> FieldError:
        """Attach the field (and validator) this error was raised for.

        The field's anchor is ``#f-<field>`` plus the key suffix, or else the
        first focus suffix.
        """
        href = f"#f-{field_name}"
        focus: tuple[str, ...] = ()
        if self.field_key_suffix:
            href += self.field_key_suffix
        elif self.focus_suffix:
            focus = self.focus_suffix
            href += focus[0]
        return self.model_copy(
            update={
                "field": field_name + (self.field_key_suffix or ""),
                "field_href": href,
                "focus_suffix": focus,
                "validator": validator,
            }
        )


def flatten_errors(payload: Any) -> list[FieldError]:
    """Flatten an arbitrarily nested list of error values into records."""
    if not isinstance(payload, list | tuple):
        return [FieldError.make(payload)]
    flat: list[FieldError] = []
    for item in payload:
        flat.extend(flatten_errors(item))
    return flat
