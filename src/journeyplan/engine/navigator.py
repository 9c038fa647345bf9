# src/journeyplan/engine/navigator.py
"""Keep users on the rails of their journey.

Works out where a user goes after submitting a page outside edit mode, and
whether a requested waypoint is reachable at all given the data gathered so
far. Each call traverses the Plan afresh; nothing is cached between
requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from journeyplan.contracts import PlanConfigurationError, Route
from journeyplan.core.plan import PlanOrigin
from journeyplan.engine.edit_continuation import EditState
from journeyplan.engine.urls import join_path, sanitise_url, waypoint_url

if TYPE_CHECKING:
    from journeyplan.core.context import JourneyContext
    from journeyplan.core.plan import Plan

logger = structlog.get_logger(__name__)


def resolve_origin(plan: Plan, origin: PlanOrigin | None = None) -> PlanOrigin:
    """The origin a journey runs from; the Plan's first origin by default."""
    if origin is not None:
        return origin
    origins = plan.get_origins()
    if not origins:
        raise PlanConfigurationError("Plan has no origins")
    return origins[0]


def _origin_at(routes: list[Route], index: int, default: str | None) -> str | None:
    """Origin of the waypoint at ``index``: whatever the route into it leads to."""
    if index <= 0:
        return default
    return routes[index - 1].label.target_origin or default


def next_route(
    plan: Plan,
    journey_context: JourneyContext,
    *,
    waypoint: str,
    origin: PlanOrigin | None = None,
) -> Route | None:
    """The route from ``waypoint`` to the next waypoint on the current journey.

    None when the waypoint is off the journey or is the last one reachable.
    """
    if not plan.contains_waypoint(waypoint):
        return None
    origin = resolve_origin(plan, origin)
    routes = plan.traverse_next_routes(journey_context, start_waypoint=origin.waypoint)
    for route in routes:
        if route.source == waypoint:
            return None if route.target is None else route
    return None


def next_waypoint_url(
    plan: Plan,
    journey_context: JourneyContext,
    *,
    waypoint: str,
    current_url: str,
    mount_url: str = "/",
    origin: PlanOrigin | None = None,
) -> str:
    """URL of the waypoint after ``waypoint`` on the current journey.

    The submitted waypoint itself is returned when it is the last one
    reachable. A waypoint the Plan does not know stays where it is.
    """
    if not plan.contains_waypoint(waypoint):
        return sanitise_url(current_url)

    origin = resolve_origin(plan, origin)
    routes = plan.traverse_next_routes(journey_context, start_waypoint=origin.waypoint)
    waypoints = [route.source for route in routes]

    index = waypoints.index(waypoint) if waypoint in waypoints else -1
    position = min(index, len(waypoints) - 2)
    if position < 0:
        return sanitise_url(current_url)

    return waypoint_url(
        waypoints[position + 1],
        mount_url=mount_url,
        origin_id=routes[position].label.target_origin or origin.origin_id,
        journey_context=journey_context,
    )


@dataclass(frozen=True, slots=True)
class JourneySteer:
    """Result of steering a request for one waypoint.

    Attributes:
        redirect_url: Where to send the user instead, or None to serve the
            requested waypoint.
        previous_url: The "back" link for the waypoint, if it has one.
        edit_state: Edit mode for the rest of the request.
    """

    redirect_url: str | None = None
    previous_url: str | None = None
    edit_state: EditState = EditState()


def steer_journey(
    plan: Plan,
    journey_context: JourneyContext,
    *,
    waypoint: str,
    mount_url: str = "/",
    origin: PlanOrigin | None = None,
    edit_state: EditState | None = None,
) -> JourneySteer:
    """Decide whether a request for ``waypoint`` may proceed.

    A waypoint the Plan contains but the current traversal does not reach
    redirects to the furthest reachable waypoint. Otherwise the back link
    is found by following one satisfied "prev" route.
    """
    edit_state = edit_state or EditState()
    if not plan.contains_waypoint(waypoint):
        return JourneySteer(edit_state=edit_state)

    origin = resolve_origin(plan, origin)
    routes = plan.traverse_next_routes(journey_context, start_waypoint=origin.waypoint)
    waypoints = [route.source for route in routes]

    if waypoint not in waypoints:
        last = len(waypoints) - 1
        redirect_url = waypoint_url(
            waypoints[last],
            mount_url=mount_url,
            origin_id=_origin_at(routes, last, origin.origin_id),
            journey_context=journey_context,
        )
        logger.info(
            "Waypoint not reachable on current journey, redirecting",
            waypoint=waypoint,
            redirect_url=redirect_url,
        )
        return JourneySteer(redirect_url=redirect_url, edit_state=edit_state)

    current_origin = _origin_at(routes, waypoints.index(waypoint), origin.origin_id)
    if edit_state.in_edit_mode:
        here = join_path(mount_url, current_origin, waypoint)
        if here == edit_state.edit_origin_url.rstrip("/"):
            logger.debug("Reached edit origin, leaving edit mode", waypoint=waypoint)
            edit_state = EditState()

    back = plan.traverse_prev_routes(
        journey_context,
        start_waypoint=waypoint,
        stop_condition=lambda route: True,
    )[0]
    previous_url = None
    if back.target is not None:
        previous_url = waypoint_url(
            back.target,
            mount_url=mount_url,
            origin_id=back.label.target_origin or current_origin,
            journey_context=journey_context,
            edit=edit_state.in_edit_mode,
            edit_origin=edit_state.edit_origin_url or None,
        )
    return JourneySteer(previous_url=previous_url, edit_state=edit_state)
