# src/journeyplan/engine/submission.py
"""Page submission pipeline.

Order matters and is fixed:

1. snapshot the journey as traversed before any data changes
2. gather the submitted fields into the context
3. validate the page
4. store the context in the session
5. work out where to go next, unless validation failed
6. save the session

The outcome is only handed back once the session has been saved, so the
next request, or the re-rendered page, always sees the stored state.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from journeyplan.core.config import JourneySettings
from journeyplan.core.context import JourneyContext
from journeyplan.core.validation import FieldError, process_validators
from journeyplan.engine.edit_continuation import EditState, resolve_edit_target
from journeyplan.engine.navigator import next_route, next_waypoint_url, resolve_origin
from journeyplan.engine.urls import waypoint_url

if TYPE_CHECKING:
    from journeyplan.contracts import PageDescriptor
    from journeyplan.core.plan import Plan, PlanOrigin

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    """What happened to a submitted page.

    ``redirect_url`` is None when validation failed and the page should be
    rendered again with ``errors``.
    """

    journey_context: JourneyContext
    errors: dict[str, list[FieldError]] = field(default_factory=dict)
    redirect_url: str | None = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


def gather_fields(page: PageDescriptor, form_data: Mapping[str, Any]) -> dict[str, Any]:
    """Keep only submitted fields the page validates, when it validates any."""
    if not page.field_validators:
        return dict(form_data)
    return {name: value for name, value in form_data.items() if name in page.field_validators}


def _open_exit_node(
    plan: Plan,
    journey_context: JourneyContext,
    session: MutableMapping[str, Any],
    *,
    waypoint: str,
    origin: PlanOrigin,
    user_info: Any,
) -> None:
    """Mark an exit node that follows ``waypoint`` as passed.

    Exit nodes have no page of their own; clearing their validation state
    lets traversal continue past them.
    """
    route = next_route(plan, journey_context, waypoint=waypoint, origin=origin)
    if route is None or route.target is None or not plan.is_exit_node(route.target):
        return
    journey_context.clear_validation_errors_for_page(route.target)
    JourneyContext.put_context(session, journey_context, user_info)
    logger.debug("Leaving plan through exit node", waypoint=waypoint, exit_node=route.target)


def submit_page(
    plan: Plan,
    page: PageDescriptor,
    *,
    session: MutableMapping[str, Any],
    journey_context: JourneyContext,
    form_data: Mapping[str, Any],
    origin: PlanOrigin | None = None,
    edit_state: EditState | None = None,
    settings: JourneySettings | None = None,
    save_session: Callable[[], None] | None = None,
    user_info: Any = None,
) -> SubmissionOutcome:
    """Process a page's submitted form data.

    Args:
        plan: The journey's Plan.
        page: Descriptor of the submitted page; its id is the waypoint.
        session: Session mapping the context is stored in.
        journey_context: Context the submission belongs to. Updated in place.
        form_data: Submitted form fields.
        origin: Origin the journey runs from; the Plan's first by default.
        edit_state: Edit mode of the request.
        settings: Journey settings; defaults apply when omitted.
        save_session: Persists the session. Called before the outcome is
            returned.
        user_info: Passed through to context event handlers.

    Returns:
        The outcome, with a redirect URL unless validation failed.

    Raises:
        Exception: Whatever a validator raises other than ValidationError,
            or whatever save_session raises.
    """
    settings = settings or JourneySettings()
    edit_state = edit_state or EditState()
    origin = resolve_origin(plan, origin)
    waypoint = page.id

    pre_snapshot = plan.traverse(journey_context, start_waypoint=origin.waypoint)

    journey_context.set_data_for_page(page, gather_fields(page, form_data))

    errors = process_validators(
        page.field_validators,
        journey_context.get_data_for_page(page),
        waypoint_id=waypoint,
        journey_context=journey_context,
        reduce_errors=settings.reduce_errors,
    )
    if errors:
        journey_context.set_validation_errors_for_page(waypoint, errors)
    else:
        journey_context.clear_validation_errors_for_page(waypoint)

    JourneyContext.put_context(session, journey_context, user_info)

    redirect_url: str | None = None
    if not errors and edit_state.in_edit_mode and edit_state.edit_origin_url:
        current_routes = plan.traverse_next_routes(journey_context, start_waypoint=origin.waypoint)
        redirect_url = resolve_edit_target(
            pre_snapshot,
            current_routes,
            edit_origin_url=edit_state.edit_origin_url,
            mount_url=settings.mount_url,
            origin_id=origin.origin_id,
            journey_context=journey_context,
            use_sticky_edit=settings.use_sticky_edit,
        ).url
    elif not errors:
        _open_exit_node(plan, journey_context, session, waypoint=waypoint, origin=origin, user_info=user_info)
        redirect_url = next_waypoint_url(
            plan,
            journey_context,
            waypoint=waypoint,
            current_url=waypoint_url(waypoint, mount_url=settings.mount_url, origin_id=origin.origin_id),
            mount_url=settings.mount_url,
            origin=origin,
        )

    # Saved on both the redirect and the re-render path
    if save_session is not None:
        try:
            save_session()
        except Exception as e:
            logger.error(
                "Failed to save session",
                waypoint=waypoint,
                redirect_url=redirect_url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

    logger.debug("Page submitted", waypoint=waypoint, redirect_url=redirect_url, valid=not errors)
    return SubmissionOutcome(journey_context=journey_context, errors=errors, redirect_url=redirect_url)
