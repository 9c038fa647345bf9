# src/journeyplan/engine/urls.py
"""Waypoint URL building and path sanitising."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl, urlencode

if TYPE_CHECKING:
    from journeyplan.core.context import JourneyContext

# Query parameters that may travel with a waypoint or edit origin
_ALLOWED_PARAMS = ("contextid",)

_SLUG_CHARS = re.compile(r"[^a-z0-9/-]")
_URL_CHARS = re.compile(r"[^/a-z0-9_-]", re.IGNORECASE)
_SLASHES = re.compile(r"/+")


def sanitise_waypoint(waypoint: Any) -> str:
    """Lowercase slug path with no leading or trailing slash."""
    if not isinstance(waypoint, str):
        return ""
    return _SLASHES.sub("/", _SLUG_CHARS.sub("", waypoint.lower())).strip("/")


def sanitise_absolute_path(path: Any) -> str:
    """Like sanitise_waypoint, but rooted at "/"."""
    if not isinstance(path, str):
        return "/"
    return "/" + sanitise_waypoint(path)


def join_path(*parts: str | None) -> str:
    """Join URL path segments, collapsing repeated slashes.

    Empty and None segments vanish, so ``join_path("/app/", None, "name")``
    is ``/app/name``.
    """
    return _SLASHES.sub("/", "/" + "/".join(part for part in parts if part))


def _sanitise_url_path(path: str) -> str:
    return _SLASHES.sub("/", _URL_CHARS.sub("", path))


def _split_allowed(value: str) -> tuple[str, list[tuple[str, str]]]:
    path, _, query = value.partition("?")
    params = [(k, v) for k, v in parse_qsl(query, keep_blank_values=True) if k in _ALLOWED_PARAMS]
    return _sanitise_url_path(path), params


def sanitise_url(value: str) -> str:
    """Sanitise a path, keeping only the query parameters allowed to travel with it."""
    path, params = _split_allowed(value)
    return f"{path}?{urlencode(params)}" if params else path


def context_id_params(journey_context: JourneyContext | None, mount_url: str = "/") -> list[tuple[str, str]]:
    """The ``contextid`` parameter for a non-default context, unless the mount URL carries the id."""
    if journey_context is None or journey_context.is_default():
        return []
    context_id = journey_context.identity.get("id")
    if not context_id or f"/{context_id}/" in mount_url:
        return []
    return [("contextid", str(context_id))]


def edit_search_params(edit_origin_url: str) -> str:
    """Query string that keeps a user in edit mode, returning to ``edit_origin_url``."""
    return urlencode({"edit": "", "editorigin": edit_origin_url})


def waypoint_url(
    waypoint: str = "",
    *,
    mount_url: str = "/",
    origin_id: str | None = None,
    journey_context: JourneyContext | None = None,
    edit: bool = False,
    edit_origin: str | None = None,
    skip_to: str | None = None,
    route_name: str = "next",
) -> str:
    """Build the URL for a waypoint.

    ``url:///path/`` exit nodes link to the root handler of another mounted
    Plan, ``/path/_/?refmount=url://<mount_url>&route=<route_name>``.

    A ``contextid`` parameter is added for non-default journey contexts,
    unless the id already appears in the mount URL.
    """
    params: list[tuple[str, str]] = []

    if waypoint.startswith("url:///"):
        path, carried = _split_allowed(waypoint[len("url://") :])
        path = f"{path}/_/"
        params.extend([("refmount", f"url://{mount_url}"), ("route", route_name)])
        params.extend(carried)
    else:
        prefix = join_path(mount_url, origin_id) + "/"
        path, carried = _split_allowed(f"{prefix}{waypoint}")
        params.extend(carried)

    context_params = context_id_params(journey_context, mount_url)
    if context_params:
        params = [(k, v) for k, v in params if k != "contextid"]
        params.extend(context_params)

    if edit:
        params.append(("edit", "true"))
        if edit_origin:
            params.append(("editorigin", sanitise_url(edit_origin)))

    if skip_to:
        params.append(("skipto", sanitise_url(skip_to)))

    path = _sanitise_url_path(path)
    return f"{path}?{urlencode(params)}" if params else path
