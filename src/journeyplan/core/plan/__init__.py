"""Route graph, traversal walker and plan-file loading."""

from journeyplan.core.plan.graph import Plan
from journeyplan.core.plan.loader import PlanDefinition, build_plan, load_plan
from journeyplan.core.plan.models import (
    Arbiter,
    PlanOptions,
    PlanOrigin,
    TraverseOptions,
    default_next_condition,
    default_prev_condition,
)

__all__ = [
    "Arbiter",
    "Plan",
    "PlanDefinition",
    "PlanOptions",
    "PlanOrigin",
    "TraverseOptions",
    "build_plan",
    "default_next_condition",
    "default_prev_condition",
    "load_plan",
]
