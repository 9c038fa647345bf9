"""Per-user journey state and its session-backed store."""

from journeyplan.core.context.events import ContextEvent, ContextEventType
from journeyplan.core.context.ids import DEFAULT_CONTEXT_ID, generate_context_id, validate_context_id
from journeyplan.core.context.journey_context import JourneyContext, validate_object_key

__all__ = [
    "DEFAULT_CONTEXT_ID",
    "ContextEvent",
    "ContextEventType",
    "JourneyContext",
    "generate_context_id",
    "validate_context_id",
    "validate_object_key",
]
