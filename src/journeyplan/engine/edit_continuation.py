# src/journeyplan/engine/edit_continuation.py
"""Where to send a user after they edit an earlier answer.

A user in edit mode arrives at an earlier waypoint from an "edit origin"
(usually a review page). After their change is stored, the journey is
traversed again and compared with the traversal taken before the change:

- if the walk reaches the edit origin without diverging, return there
- if a waypoint was inserted or removed, stop at the first divergence
- if the new journey runs past the end of the old one, stop at the first
  waypoint the user has not seen
- if the new journey ends first, stop at its last waypoint

The user always lands on the earliest waypoint that needs attention.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode, urlsplit

import structlog

from journeyplan.contracts import Route
from journeyplan.engine.urls import (
    context_id_params,
    edit_search_params,
    join_path,
    sanitise_absolute_path,
    waypoint_url,
)

if TYPE_CHECKING:
    from journeyplan.core.context import JourneyContext

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class EditState:
    """Whether the current request is editing, and where it should return to."""

    in_edit_mode: bool = False
    edit_origin_url: str = ""

    @property
    def search_params(self) -> str:
        return edit_search_params(self.edit_origin_url) if self.in_edit_mode else ""


def parse_edit_mode(
    params: Mapping[str, Any],
    *,
    allow_page_edit: bool,
    current_url: str,
) -> EditState:
    """Read the ``edit`` and ``editorigin`` request parameters.

    Without an ``editorigin``, the current URL is assumed to be the page to
    return to. Only the path of the origin is kept, sanitised to an
    absolute path.
    """
    if not allow_page_edit:
        return EditState()
    in_edit_mode = "edit" in params
    raw_origin = params.get("editorigin", current_url)
    path = urlsplit(str(raw_origin)).path if raw_origin is not None else ""
    return EditState(in_edit_mode=in_edit_mode, edit_origin_url=sanitise_absolute_path(path))


class EditOutcome(StrEnum):
    """How the journey changed between the two snapshots."""

    RETURNED_TO_ORIGIN = "returned-to-origin"
    INSERTION = "insertion"
    REMOVAL = "removal"
    EXTENSION = "extension"
    TIP = "tip"


@dataclass(frozen=True, slots=True)
class EditTarget:
    url: str
    outcome: EditOutcome
    waypoint: str | None = None


def _find(snapshot: Sequence[str], waypoint: str, start: int) -> int:
    try:
        return snapshot.index(waypoint, start)
    except ValueError:
        return -1


def _with_query(url: str, query: str) -> str:
    if not query:
        return url
    return f"{url}{'&' if '?' in url else '?'}{query}"


def resolve_edit_target(
    pre_snapshot: Sequence[str],
    current_routes: Sequence[Route],
    *,
    edit_origin_url: str,
    mount_url: str = "/",
    origin_id: str | None = None,
    journey_context: JourneyContext | None = None,
    use_sticky_edit: bool = False,
) -> EditTarget:
    """Compare the before/after traversals of an edit and pick the landing URL.

    Args:
        pre_snapshot: Waypoints traversed before the edit was applied.
        current_routes: Routes traversed after the edit (traverse_next_routes).
        edit_origin_url: Where the user started editing from.
        mount_url: URL prefix of the journey.
        origin_id: Origin the journey was started from.
        journey_context: Context being edited; a non-default one keeps its
            ``contextid`` on the landing URL.
        use_sticky_edit: Keep the user in edit mode when not returning to the
            edit origin.
    """
    target = _walk(pre_snapshot, current_routes, edit_origin_url, mount_url, origin_id or "", journey_context)
    if target.outcome is EditOutcome.RETURNED_TO_ORIGIN:
        url = _with_query(target.url, urlencode(context_id_params(journey_context, mount_url)))
        target = replace(target, url=url)
    elif use_sticky_edit:
        target = replace(target, url=_with_query(target.url, edit_search_params(edit_origin_url)))
    logger.debug(
        "Resolved edit continuation",
        outcome=target.outcome.value,
        waypoint=target.waypoint,
        url=target.url,
    )
    return target


def _walk(
    pre_snapshot: Sequence[str],
    current_routes: Sequence[Route],
    edit_origin_url: str,
    mount_url: str,
    origin: str,
    journey_context: JourneyContext | None,
) -> EditTarget:
    returned = EditTarget(url=edit_origin_url, outcome=EditOutcome.RETURNED_TO_ORIGIN)
    if not pre_snapshot:
        return returned

    edit_origin = edit_origin_url.rstrip("/")
    last = len(current_routes) - 1
    cursor = 0

    for i, route in enumerate(current_routes):
        # The edit origin matches on the route's own source origin, while
        # landing URLs use the origin carried along the walk
        if join_path(mount_url, route.label.source_origin or origin, route.source) == edit_origin:
            return returned

        here = waypoint_url(route.source, mount_url=mount_url, origin_id=origin or None, journey_context=journey_context)

        if cursor >= len(pre_snapshot):
            return EditTarget(url=here, outcome=EditOutcome.EXTENSION, waypoint=route.source)

        found = _find(pre_snapshot, route.source, cursor)
        if found == -1:
            return EditTarget(url=here, outcome=EditOutcome.INSERTION, waypoint=route.source)
        if found > cursor:
            return EditTarget(url=here, outcome=EditOutcome.REMOVAL, waypoint=route.source)

        if i == last:
            return EditTarget(url=here, outcome=EditOutcome.TIP, waypoint=route.source)

        cursor += 1
        # Later matches are reached through the origin this route leads into
        origin = route.label.target_origin or origin

    return returned
