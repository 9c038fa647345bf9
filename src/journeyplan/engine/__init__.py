# src/journeyplan/engine/__init__.py
"""Journey engine: request-level navigation over a Plan.

This module provides what a web layer calls on each request:
- parse_edit_mode: Read edit mode from request parameters
- steer_journey: Keep a request on the reachable journey, find the back link
- submit_page: Gather, validate and store a page, then pick the redirect
- resolve_edit_target: Where an edit lands the user
- waypoint_url: URL building for waypoints and exit nodes

Example:
    from journeyplan.core import JourneyContext, load_plan
    from journeyplan.engine import parse_edit_mode, submit_page

    plan = load_plan(Path("plan.yaml"))
    context = JourneyContext.extract_context(session, params.get("contextid"))
    edit_state = parse_edit_mode(params, allow_page_edit=True, current_url=request_path)

    outcome = submit_page(
        plan,
        pages["name"],
        session=session,
        journey_context=context,
        form_data=form,
        edit_state=edit_state,
        save_session=session.save,
    )
"""

from journeyplan.engine.edit_continuation import (
    EditOutcome,
    EditState,
    EditTarget,
    parse_edit_mode,
    resolve_edit_target,
)
from journeyplan.engine.navigator import JourneySteer, next_route, next_waypoint_url, resolve_origin, steer_journey
from journeyplan.engine.submission import SubmissionOutcome, gather_fields, submit_page
from journeyplan.engine.urls import (
    context_id_params,
    edit_search_params,
    join_path,
    sanitise_absolute_path,
    sanitise_url,
    sanitise_waypoint,
    waypoint_url,
)

__all__ = [
    "EditOutcome",
    "EditState",
    "EditTarget",
    "JourneySteer",
    "SubmissionOutcome",
    "context_id_params",
    "edit_search_params",
    "gather_fields",
    "join_path",
    "next_route",
    "next_waypoint_url",
    "parse_edit_mode",
    "resolve_edit_target",
    "resolve_origin",
    "sanitise_absolute_path",
    "sanitise_url",
    "sanitise_waypoint",
    "steer_journey",
    "submit_page",
    "waypoint_url",
]
