# src/journeyplan/core/plan/graph.py
"""Plan: the route graph of a journey.

Wraps a NetworkX MultiDiGraph keyed by route name, so two waypoints may be
joined by a "next" route and a "prev" route at the same time, but never by
two routes of the same name. Each edge carries its RouteLabel and the
condition that decides whether it can be followed.

The graph is built once at startup and treated as read-only afterwards;
traversal never mutates it.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any

import networkx as nx
import structlog
from networkx import MultiDiGraph

from journeyplan.contracts import (
    ORIGIN_NODE,
    PlanConfigurationError,
    Route,
    RouteLabel,
    RouteName,
    WaypointRef,
    is_exit_node,
)
from journeyplan.core.context import JourneyContext
from journeyplan.core.plan.models import (
    ArbiterSetting,
    PlanOptions,
    PlanOrigin,
    StopCondition,
    TraverseOptions,
    always,
    default_condition,
    inverted,
    require_valid,
    validate_route_condition,
    validate_route_name,
    validate_waypoint_id,
)
from journeyplan.core.plan.traversal import origin_waypoints, route_from_edge, walk_routes

if TYPE_CHECKING:
    from journeyplan.contracts import RouteCondition
    from journeyplan.core.config import PlanSettings

logger = structlog.get_logger(__name__)


class Plan:
    """Directed multigraph of waypoints joined by named, conditional routes.

    Example:
        plan = Plan()
        plan.add_origin("main", "name")
        plan.add_sequence("name", "date-of-birth", "review")
        plan.traverse(context)  # ["name", ...]
    """

    def __init__(
        self,
        *,
        validate_before_route_condition: bool = False,
        arbiter: ArbiterSetting = None,
    ) -> None:
        if arbiter is not None and arbiter != "auto" and not callable(arbiter):
            raise TypeError(f"Expected arbiter to be 'auto', a callable or None, got {type(arbiter).__name__}")
        self._options = PlanOptions(
            validate_before_route_condition=validate_before_route_condition,
            arbiter=arbiter,
        )
        self._graph: MultiDiGraph[str] = nx.MultiDiGraph()
        self._graph.add_node(ORIGIN_NODE)
        self._skippables: list[str] = []

    @classmethod
    def from_settings(cls, settings: PlanSettings) -> Plan:
        """Create an empty Plan configured from settings."""
        return cls(
            validate_before_route_condition=settings.validate_before_route_condition,
            arbiter=settings.arbiter,
        )

    @staticmethod
    def is_exit_node(waypoint: str) -> bool:
        """Whether the waypoint links out to another Plan (``url://`` and similar)."""
        return is_exit_node(waypoint)

    @property
    def options(self) -> PlanOptions:
        return self._options

    def get_options(self) -> PlanOptions:
        return self._options

    # =========================================================================
    # Origins and skippables
    # =========================================================================

    def add_origin(self, origin_id: str, waypoint: str, condition: RouteCondition | None = None) -> Plan:
        """Register ``waypoint`` as an entry point, namespaced by ``origin_id``."""
        if not isinstance(origin_id, str):
            raise TypeError(f"Expected origin id to be a string, got {type(origin_id).__name__}")
        validate_waypoint_id(waypoint)
        self._set_edge(
            ORIGIN_NODE,
            waypoint,
            RouteName.ORIGIN,
            RouteLabel(target_origin=origin_id),
            validate_route_condition(condition) if condition is not None else always,
        )
        return self

    def get_origins(self) -> list[PlanOrigin]:
        return [
            PlanOrigin(origin_id=data["label"].target_origin, waypoint=target)
            for _, target, key, data in self._graph.out_edges(ORIGIN_NODE, keys=True, data=True)
            if key == RouteName.ORIGIN
        ]

    def add_skippables(self, *waypoints: str) -> Plan:
        self._skippables.extend(waypoints)
        return self

    def get_skippables(self) -> list[str]:
        return list(self._skippables)

    def is_skippable(self, waypoint: str) -> bool:
        return waypoint in self._skippables

    # =========================================================================
    # Structural queries
    # =========================================================================

    def get_waypoints(self) -> list[str]:
        """All waypoints in the Plan, in the order they were first added."""
        return [node for node in self._graph.nodes if node != ORIGIN_NODE]

    def contains_waypoint(self, waypoint: str) -> bool:
        return waypoint != ORIGIN_NODE and self._graph.has_node(waypoint)

    def get_routes(self) -> list[Route]:
        return [route_from_edge(s, t, k, d) for s, t, k, d in self._graph.edges(keys=True, data=True)]

    def get_outward_routes(self, source: str, target: str | None = None) -> list[Route]:
        """Routes leaving ``source``, optionally only those arriving at ``target``."""
        if not self._graph.has_node(source):
            return []
        return [
            route_from_edge(s, t, k, d)
            for s, t, k, d in self._graph.out_edges(source, keys=True, data=True)
            if target is None or t == target
        ]

    def get_prev_outward_routes(self, source: str, target: str | None = None) -> list[Route]:
        return [r for r in self.get_outward_routes(source, target) if r.name is RouteName.PREV]

    def get_route_condition(self, source: str, target: str, name: str) -> RouteCondition | None:
        """The effective condition of a route, or None if there is no such route."""
        route_name = validate_route_name(name)
        src = WaypointRef.parse(source).waypoint
        tgt = WaypointRef.parse(target).waypoint
        data = self._graph.get_edge_data(src, tgt, key=route_name.value)
        if data is None:
            return None
        condition: RouteCondition = data["condition"]
        return condition

    def get_graph_structure(self) -> MultiDiGraph[str]:
        """Return a frozen copy of the underlying NetworkX graph.

        Suitable for visualisation and analysis with NetworkX algorithms.
        Mutation attempts raise nx.NetworkXError.
        """
        return nx.freeze(self._graph.copy())  # type: ignore[no-any-return]

    def find_unreachable_waypoints(self) -> list[str]:
        """Waypoints that no chain of origin/next routes leads to.

        Conditions are ignored: a waypoint is reachable if some data could
        lead the user there.
        """
        forward = nx.subgraph_view(self._graph, filter_edge=lambda s, t, k: k != RouteName.PREV)
        reachable = nx.descendants(forward, ORIGIN_NODE)
        return [waypoint for waypoint in self.get_waypoints() if waypoint not in reachable]

    # =========================================================================
    # Route definition
    # =========================================================================

    def add_sequence(self, *waypoints: str) -> Plan:
        """Join consecutive waypoints with default next/prev routes."""
        for source, target in zip(waypoints, waypoints[1:], strict=False):
            self.set_route(source, target)
        return self

    def set_next_route(self, source: str, target: str, condition: RouteCondition | None = None) -> Plan:
        return self.set_named_route(source, target, RouteName.NEXT, condition)

    def set_prev_route(self, source: str, target: str, condition: RouteCondition | None = None) -> Plan:
        return self.set_named_route(source, target, RouteName.PREV, condition)

    def set_route(
        self,
        source: str,
        target: str,
        next_condition: RouteCondition | None = None,
        prev_condition: RouteCondition | None = None,
    ) -> Plan:
        """Create a "next" route and its mirrored "prev" route.

        Without ``prev_condition``, the prev route reuses ``next_condition``,
        which is given the inverted route so that ``source`` still refers to
        the waypoint the next route leaves from.
        """
        self.set_named_route(source, target, RouteName.NEXT, next_condition)
        if prev_condition is None and next_condition is not None:
            prev_condition = inverted(validate_route_condition(next_condition))
        self.set_named_route(target, source, RouteName.PREV, prev_condition)
        return self

    def set_named_route(
        self,
        source: str,
        target: str,
        name: str,
        condition: RouteCondition | None = None,
    ) -> Plan:
        """Create or overwrite the route ``name`` from ``source`` to ``target``.

        Either id may carry an origin prefix (``origin:waypoint``); the
        prefix is stored on the route label and the graph keeps the plain
        waypoint id. Without a condition the route uses the default check
        for its name.
        """
        validate_waypoint_id(source)
        validate_waypoint_id(target)
        route_name = validate_route_name(name)
        if condition is not None:
            validate_route_condition(condition)

        src = WaypointRef.parse(source)
        tgt = WaypointRef.parse(target)

        if condition is None:
            effective = default_condition(route_name)
        elif self._options.validate_before_route_condition and route_name is not RouteName.ORIGIN:
            effective = require_valid(route_name, condition)
        else:
            effective = condition

        self._set_edge(
            src.waypoint,
            tgt.waypoint,
            route_name,
            RouteLabel(source_origin=src.origin, target_origin=tgt.origin),
            effective,
        )
        return self

    def _set_edge(
        self,
        source: str,
        target: str,
        name: RouteName,
        label: RouteLabel,
        condition: RouteCondition,
    ) -> None:
        if self._graph.has_edge(source, target, key=name.value):
            logger.warning(
                "Route already exists and will be overwritten",
                source=source,
                target=target,
                route_name=name.value,
            )
        self._graph.add_edge(source, target, key=name.value, label=label, condition=condition)

    # =========================================================================
    # Traversal
    # =========================================================================

    def traverse(self, context: JourneyContext, **options: Any) -> list[str]:
        """Waypoints visited by following "next" routes, in order."""
        return [route.source for route in self.traverse_next_routes(context, **options)]

    def traverse_next_routes(self, context: JourneyContext, **options: Any) -> list[Route]:
        return self.traverse_routes(context, **{**options, "route_name": RouteName.NEXT})

    def traverse_prev_routes(self, context: JourneyContext, **options: Any) -> list[Route]:
        return self.traverse_routes(context, **{**options, "route_name": RouteName.PREV})

    def traverse_routes(
        self,
        context: JourneyContext,
        *,
        route_name: str | None = None,
        start_waypoint: str | None = None,
        stop_condition: StopCondition | None = None,
        arbiter: ArbiterSetting = None,
    ) -> list[Route]:
        """Follow satisfied routes of one name from a start waypoint.

        Args:
            context: Journey context the route conditions are evaluated against.
            route_name: "next" or "prev".
            start_waypoint: Where to start; defaults to the first origin's waypoint.
            stop_condition: Called with each route about to be followed; when it
                returns True the route is included and traversal stops.
            arbiter: Overrides the Plan's arbiter for this call.

        Returns:
            Routes followed, in order. The last one is a terminal route
            (``target=None``) unless the stop condition fired.

        Raises:
            TypeError: If context is not a JourneyContext.
            PlanConfigurationError: If the start waypoint is unknown, or no
                route name is given.
        """
        if not isinstance(context, JourneyContext):
            raise TypeError(f"Expected context to be an instance of JourneyContext, got {type(context).__name__}")

        if start_waypoint is None:
            origins = origin_waypoints(self._graph)
            if not origins:
                raise PlanConfigurationError("Plan has no origins and no start waypoint was given")
            start_waypoint = origins[0]
        if not self._graph.has_node(start_waypoint):
            raise PlanConfigurationError(f"Plan does not contain waypoint '{start_waypoint}'")

        resolved = TraverseOptions(
            route_name=validate_route_name(route_name),
            start_waypoint=start_waypoint,
            arbiter=arbiter if arbiter is not None else self._options.arbiter,
        )
        if stop_condition is not None:
            resolved = replace(resolved, stop_condition=stop_condition)
        return walk_routes(self._graph, context, resolved)
