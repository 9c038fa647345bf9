# src/journeyplan/core/plan/traversal.py
"""Single-path walk over the Plan graph.

Traversal is forward-only and non-exhaustive: from the start waypoint it
follows the one satisfied route of the requested name, then repeats from
that route's target. It stops when no route is satisfied, when several are
satisfied and no arbiter settles it, when the caller's stop condition
fires, or when a route is about to be followed a second time.

The walk is an explicit loop with a local visited-edge set, so stack depth
never grows with journey length.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from journeyplan.contracts import ORIGIN_NODE, ConditionOutcome, Route, RouteLabel, RouteName
from journeyplan.core.plan.models import TraverseOptions

if TYPE_CHECKING:
    from networkx import MultiDiGraph

    from journeyplan.contracts import RouteCondition
    from journeyplan.core.context import JourneyContext

logger = structlog.get_logger(__name__)


def route_from_edge(source: str, target: str, key: str, data: dict[str, Any]) -> Route:
    """Build the userland Route for a graph edge."""
    return Route(source=source, target=target, name=RouteName(key), label=data["label"])


def terminal_route(source: str, name: RouteName) -> Route:
    return Route(source=source, target=None, name=name, label=RouteLabel())


def origin_waypoints(graph: MultiDiGraph[str]) -> list[str]:
    """Waypoints reachable from the synthetic origin node, in registration order."""
    return [target for _, target, key in graph.out_edges(ORIGIN_NODE, keys=True) if key == RouteName.ORIGIN]


def evaluate_condition(
    route: Route,
    condition: RouteCondition,
    context: JourneyContext,
) -> ConditionOutcome:
    """Evaluate one route condition without letting it abort traversal."""
    try:
        satisfied = condition(route, context)
    except Exception as e:
        logger.warning(
            "Route condition raised, treating route as unsatisfied",
            source=route.source,
            target=route.target,
            route_name=route.name.value,
            error=str(e),
            error_type=type(e).__name__,
        )
        return ConditionOutcome.ERRORED
    return ConditionOutcome.SATISFIED if satisfied else ConditionOutcome.UNSATISFIED


def satisfied_routes(
    graph: MultiDiGraph[str],
    waypoint: str,
    route_name: RouteName,
    context: JourneyContext,
) -> list[Route]:
    """Routes named ``route_name`` out of ``waypoint`` whose condition holds."""
    satisfied = []
    for source, target, key, data in graph.out_edges(waypoint, keys=True, data=True):
        if key != route_name:
            continue
        route = route_from_edge(source, target, key, data)
        if evaluate_condition(route, data["condition"], context) is ConditionOutcome.SATISFIED:
            satisfied.append(route)
    return satisfied


def _arbitrate(
    graph: MultiDiGraph[str],
    candidates: list[Route],
    context: JourneyContext,
    options: TraverseOptions,
) -> list[Route]:
    arbiter = options.arbiter
    description = [f"{r.source} -> {r.target}" for r in candidates]

    if arbiter == "auto" and options.route_name is RouteName.PREV:
        # Keep whichever candidate the user actually passed through on the
        # forward journey
        starts = origin_waypoints(graph)
        if not starts:
            return []
        candidate_targets = {r.target for r in candidates}
        forward = walk_routes(
            graph,
            context,
            TraverseOptions(
                route_name=RouteName.NEXT,
                start_waypoint=starts[0],
                stop_condition=lambda r: r.source in candidate_targets,
            ),
        )
        resolved = forward[-1].source
        logger.debug("Arbitrated ambiguous routes automatically", candidates=description, resolved=resolved)
        return [r for r in candidates if r.target == resolved]

    if callable(arbiter):
        chosen = list(arbiter(targets=list(candidates), journey_context=context, traverse_options=options))
        logger.debug(
            "Arbitrated ambiguous routes with custom arbiter",
            candidates=description,
            chosen=[f"{r.source} -> {r.target}" for r in chosen],
        )
        return chosen

    logger.warning(
        "Multiple routes satisfied, unable to arbitrate; stopping traversal",
        waypoint=candidates[0].source,
        route_name=options.route_name.value,
        candidates=description,
    )
    return []


def walk_routes(
    graph: MultiDiGraph[str],
    context: JourneyContext,
    options: TraverseOptions,
) -> list[Route]:
    """Walk satisfied routes from ``options.start_waypoint``.

    Returns the routes followed, in order. Unless the stop condition fired,
    the last entry is a terminal route (``target=None``) whose source is the
    last waypoint reached.
    """
    followed: list[Route] = []
    visited: set[tuple[str, str, str | None]] = set()
    current = options.start_waypoint

    while True:
        candidates = satisfied_routes(graph, current, options.route_name, context)
        if len(candidates) > 1:
            candidates = _arbitrate(graph, candidates, context, options)

        if len(candidates) == 1:
            route = candidates[0]
            if options.stop_condition(route):
                followed.append(route)
                return followed
            if route.key not in visited and route.target is not None:
                visited.add(route.key)
                followed.append(route)
                current = route.target
                continue
            logger.debug(
                "Encountered loop, stopping traversal",
                source=route.source,
                target=route.target,
                route_name=route.name.value,
            )

        followed.append(terminal_route(current, options.route_name))
        return followed
