# src/journeyplan/core/__init__.py
"""Core infrastructure: Plan graph, JourneyContext, Validation, Configuration, Logging."""

from journeyplan.core.config import JourneySettings, LoggingSettings, PlanSettings, load_settings
from journeyplan.core.context import DEFAULT_CONTEXT_ID, ContextEvent, ContextEventType, JourneyContext
from journeyplan.core.logging import configure_logging, get_logger
from journeyplan.core.plan import Plan, PlanDefinition, PlanOrigin, build_plan, load_plan
from journeyplan.core.validation import FieldError, SimpleField, optional, process_validators

__all__ = [
    "DEFAULT_CONTEXT_ID",
    "ContextEvent",
    "ContextEventType",
    "FieldError",
    "JourneyContext",
    "JourneySettings",
    "LoggingSettings",
    "Plan",
    "PlanDefinition",
    "PlanOrigin",
    "PlanSettings",
    "SimpleField",
    "build_plan",
    "configure_logging",
    "get_logger",
    "load_plan",
    "load_settings",
    "optional",
    "process_validators",
]
