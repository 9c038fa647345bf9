"""Exception taxonomy for the journey engine.

Configuration errors are raised synchronously while a Plan or context is
being set up. Traversal never raises for a misbehaving route condition;
that outcome is recorded as ConditionOutcome.ERRORED instead.
"""

from __future__ import annotations

from typing import Any


class PlanConfigurationError(ValueError):
    """Raised when a Plan is defined or queried with invalid values.

    Covers unknown route names, malformed exit nodes, unknown start
    waypoints and Plans with no origin to start from.
    """

    pass


class ContextFormatError(ValueError):
    """Raised when journey context state is malformed.

    Covers invalid context ids, validation errors that are not a mapping
    of field name to a list of error records, and reserved object keys.
    """

    pass


class ContextIdentityError(TypeError):
    """Raised when a context without an identity id is stored in a session."""

    pass


class ValidationError(Exception):
    """Raised by a field validator to reject a value.

    This is a control flow signal, not a system failure. The payload may be
    a string, an error record (FieldError or mapping), an Exception, or an
    arbitrarily nested list of those; the validation processor flattens it
    into a list of FieldError records for the field being validated.

    Any other exception raised from a validator is treated as a genuine
    fault and propagates to the caller.

    Example:
        def no_digits(value, context):
            if any(ch.isdigit() for ch in value):
                raise ValidationError("validation:rule.no-digits")
    """

    def __init__(self, payload: Any = None) -> None:
        self.payload = payload
        super().__init__(_describe(payload))


def _describe(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    if isinstance(payload, list):
        return f"{len(payload)} validation error(s)"
    summary = getattr(payload, "summary", None)
    if summary is not None:
        return str(summary)
    if isinstance(payload, dict) and "summary" in payload:
        return str(payload["summary"])
    return repr(payload)
