# src/journeyplan/core/plan/models.py
"""Types, default conditions and argument checks for Plan operations.

Leaf module within core.plan: imports only from contracts.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Protocol, TypeAlias

from journeyplan.contracts import PlanConfigurationError, Route, RouteCondition, RouteName

if TYPE_CHECKING:
    from journeyplan.core.context import JourneyContext


class Arbiter(Protocol):
    """Chooses between simultaneously satisfied routes.

    An arbiter is called with the satisfied candidate routes when more than
    one route of the same name could be followed, and returns the routes to
    keep. Returning anything other than exactly one route stops traversal.
    """

    def __call__(
        self,
        *,
        targets: list[Route],
        journey_context: JourneyContext,
        traverse_options: TraverseOptions,
    ) -> Sequence[Route]: ...


ArbiterSetting: TypeAlias = Literal["auto"] | Arbiter | None
StopCondition: TypeAlias = Callable[[Route], bool]


@dataclass(frozen=True, slots=True)
class PlanOptions:
    """Options fixed when a Plan is created."""

    validate_before_route_condition: bool = False
    arbiter: ArbiterSetting = None


@dataclass(frozen=True, slots=True)
class PlanOrigin:
    """An entry point into the Plan."""

    origin_id: str | None
    waypoint: str


def _never(route: Route) -> bool:
    return False


@dataclass(frozen=True, slots=True)
class TraverseOptions:
    """Resolved options for one traversal call.

    Passed to custom arbiters so they can run their own traversals with
    the same start point and stop condition.
    """

    route_name: RouteName
    start_waypoint: str
    stop_condition: StopCondition = field(default=_never)
    arbiter: ArbiterSetting = None


# =============================================================================
# Default route conditions
# =============================================================================


def default_next_condition(route: Route, context: JourneyContext) -> bool:
    """Follow when the source waypoint has explicitly passed validation."""
    validation = context.get_validation_errors()
    return route.source in validation and validation[route.source] is None


def default_prev_condition(route: Route, context: JourneyContext) -> bool:
    """Follow when the target waypoint (the one moved back to) has passed validation."""
    validation = context.get_validation_errors()
    return route.target in validation and validation[route.target] is None


def always(route: Route, context: JourneyContext) -> bool:
    return True


def default_condition(name: RouteName) -> RouteCondition:
    if name is RouteName.NEXT:
        return default_next_condition
    if name is RouteName.PREV:
        return default_prev_condition
    return always


def require_valid(name: RouteName, condition: RouteCondition) -> RouteCondition:
    """AND a custom condition with the default validity check for ``name``.

    The custom condition is not evaluated unless the validity check passes.
    """
    check = default_condition(name)

    @functools.wraps(condition)
    def guarded(route: Route, context: JourneyContext) -> bool:
        return check(route, context) and bool(condition(route, context))

    return guarded


def inverted(condition: RouteCondition) -> RouteCondition:
    """Evaluate ``condition`` against the inverted route.

    Lets a "prev" route reuse the condition written for its "next" route,
    which expects ``source`` to be the waypoint moved away from.
    """

    @functools.wraps(condition)
    def mirrored(route: Route, context: JourneyContext) -> bool:
        return bool(condition(route.inverted(), context))

    return mirrored


# =============================================================================
# Argument checks
# =============================================================================


def validate_waypoint_id(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"Expected waypoint id to be a string, got {type(value).__name__}")
    if value.startswith("url://") and not value.endswith("/"):
        raise PlanConfigurationError(f"url:// waypoints must include a trailing /, got {value!r}")
    return value


def validate_route_name(value: Any) -> RouteName:
    if value is None:
        raise PlanConfigurationError("A route name is required")
    if not isinstance(value, str):
        raise TypeError(f"Expected route name to be a string, got {type(value).__name__}")
    try:
        return RouteName(value)
    except ValueError:
        allowed = ", ".join(n.value for n in RouteName)
        raise PlanConfigurationError(f"Expected route name to be one of {allowed}. Got {value!r}") from None


def validate_route_condition(value: Any) -> RouteCondition:
    if not callable(value):
        raise TypeError(f"Expected route condition to be callable, got {type(value).__name__}")
    return value  # type: ignore[no-any-return]
