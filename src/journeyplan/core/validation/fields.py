# src/journeyplan/core/validation/fields.py
"""Validator contract and per-field validator groups."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias

if TYPE_CHECKING:
    from journeyplan.core.context import JourneyContext


@dataclass(frozen=True, slots=True)
class ValidatorContext:
    """What a validator may look at besides the field value itself."""

    field_name: str
    page_data: Mapping[str, Any]
    waypoint_id: str | None = None
    journey_context: JourneyContext | None = None


class Validator(Protocol):
    """A field validation rule.

    Returns normally when the value is acceptable. Rejects the value by
    raising journeyplan.contracts.ValidationError; any other exception is a
    fault and propagates out of the validation processor.
    """

    def __call__(self, value: Any, context: ValidatorContext, /) -> None: ...


FieldCondition: TypeAlias = Callable[[Mapping[str, Any], str], bool]


def _always(page_data: Mapping[str, Any], field_name: str) -> bool:
    return True


@dataclass(frozen=True)
class SimpleField:
    """The validators for one field, applied only while ``condition`` holds.

    Example:
        SimpleField(
            [optional, max_length(100)],
            condition=lambda data, name: data.get("has_partner") == "yes",
        )
    """

    validators: Sequence[Validator | Callable[[Any], bool]] = ()
    condition: FieldCondition | None = None

    def __post_init__(self) -> None:
        for validator in self.validators:
            if not callable(validator):
                raise TypeError(f"Validators must be callable, got {type(validator).__name__}")
        if self.condition is not None and not callable(self.condition):
            raise TypeError(f"Conditional must be callable, got {type(self.condition).__name__}")
        # Freeze the list so instances can be shared between pages
        object.__setattr__(self, "validators", tuple(self.validators))

    def applies(self, page_data: Mapping[str, Any], field_name: str) -> bool:
        return bool((self.condition or _always)(page_data, field_name))
