# src/journeyplan/core/validation/processor.py
"""Run a page's field validators over submitted page data."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog

from journeyplan.contracts import ValidationError
from journeyplan.core.validation.errors import FieldError, flatten_errors
from journeyplan.core.validation.fields import SimpleField, ValidatorContext
from journeyplan.core.validation.rules import optional

if TYPE_CHECKING:
    from journeyplan.core.context import JourneyContext

logger = structlog.get_logger(__name__)

# Summary used when a validator rejects a value without describing why
DEFAULT_ERROR_SUMMARY = "validation:rule.invalid"


def _validator_name(validator: Any) -> str:
    return getattr(validator, "__name__", type(validator).__name__)


def _run_field(
    field_name: str,
    field: SimpleField,
    page_data: Mapping[str, Any],
    context: ValidatorContext,
) -> list[FieldError]:
    if not field.applies(page_data, field_name):
        return []

    value = page_data.get(field_name)
    if optional in field.validators and optional(value):
        return []

    errors: list[FieldError] = []
    for validator in field.validators:
        if validator is optional:
            continue
        name = _validator_name(validator)
        try:
            validator(value, context)
        except ValidationError as e:
            # Rejections are data; every other exception is a real fault
            payload = DEFAULT_ERROR_SUMMARY if e.payload is None else e.payload
            errors.extend(error.bind(field_name, name) for error in flatten_errors(payload))
    return errors


def process_validators(
    field_validators: Mapping[str, SimpleField],
    page_data: Mapping[str, Any] | None,
    *,
    waypoint_id: str | None = None,
    journey_context: JourneyContext | None = None,
    reduce_errors: bool = False,
) -> dict[str, list[FieldError]]:
    """Validate every field of a page.

    Args:
        field_validators: Validators keyed by field name.
        page_data: The page's submitted data.
        waypoint_id: Waypoint being validated, passed through to validators.
        journey_context: Context being validated, passed through to validators.
        reduce_errors: Keep only the first error of each field.

    Returns:
        Errors grouped by field name. Empty when the page is valid.

    Raises:
        Exception: Whatever a validator raises other than ValidationError.
    """
    data: Mapping[str, Any] = page_data if isinstance(page_data, Mapping) else {}
    grouped: dict[str, list[FieldError]] = {}

    for field_name, field in field_validators.items():
        context = ValidatorContext(
            field_name=field_name,
            page_data=data,
            waypoint_id=waypoint_id,
            journey_context=journey_context,
        )
        for error in _run_field(field_name, field, data, context):
            grouped.setdefault(error.field or field_name, []).append(error)

    if reduce_errors:
        grouped = {name: errors[:1] for name, errors in grouped.items()}

    if grouped:
        logger.debug(
            "Page failed validation",
            waypoint=waypoint_id,
            fields=sorted(grouped),
            error_count=sum(len(errors) for errors in grouped.values()),
        )
    return grouped
