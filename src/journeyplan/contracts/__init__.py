"""Shared value types and error contracts.

Leaf package: no imports from journeyplan.core or journeyplan.engine at
runtime (prevents import cycles).
"""

from journeyplan.contracts.errors import (
    ContextFormatError,
    ContextIdentityError,
    PlanConfigurationError,
    ValidationError,
)
from journeyplan.contracts.pages import FieldReader, FieldWriter, PageDescriptor
from journeyplan.contracts.routes import (
    ORIGIN_NODE,
    ConditionOutcome,
    Route,
    RouteCondition,
    RouteLabel,
    RouteName,
    WaypointRef,
    is_exit_node,
)
from journeyplan.contracts.session import CONTEXT_LIST_KEY, LEGACY_CONTEXT_KEY, Session

__all__ = [
    "CONTEXT_LIST_KEY",
    "LEGACY_CONTEXT_KEY",
    "ORIGIN_NODE",
    "ConditionOutcome",
    "ContextFormatError",
    "ContextIdentityError",
    "FieldReader",
    "FieldWriter",
    "PageDescriptor",
    "PlanConfigurationError",
    "Route",
    "RouteCondition",
    "RouteLabel",
    "RouteName",
    "Session",
    "ValidationError",
    "WaypointRef",
    "is_exit_node",
]
