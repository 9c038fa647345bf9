"""Route and waypoint value types.

These types answer: "How are waypoints connected, and may this connection
be followed right now?"
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from journeyplan.core.context import JourneyContext

# Synthetic node acting as the source of every "origin" route
ORIGIN_NODE = "__origin__"

# Exit nodes begin with a protocol, such as url://
_EXIT_NODE_PROTOCOL = re.compile(r"^[a-z]+://", re.IGNORECASE)


def is_exit_node(waypoint: str) -> bool:
    """Whether the waypoint id links out of this Plan (e.g. ``url:///other-app/``)."""
    return bool(_EXIT_NODE_PROTOCOL.match(waypoint))


class RouteName(StrEnum):
    """Name of a route. At most one route per name between two waypoints."""

    NEXT = "next"
    PREV = "prev"
    ORIGIN = "origin"


class ConditionOutcome(StrEnum):
    """Result of evaluating a route condition during traversal.

    ERRORED means the condition raised; the route is excluded from the
    candidates exactly as if it were UNSATISFIED, but the failure is logged.
    """

    SATISFIED = "satisfied"
    UNSATISFIED = "unsatisfied"
    ERRORED = "errored"


@dataclass(frozen=True, slots=True)
class RouteLabel:
    """Origin ids attached to either end of a route."""

    source_origin: str | None = None
    target_origin: str | None = None

    def swapped(self) -> RouteLabel:
        return RouteLabel(source_origin=self.target_origin, target_origin=self.source_origin)


@dataclass(frozen=True, slots=True)
class Route:
    """A directed, named edge as seen by userland code and route conditions.

    A route with ``target=None`` is the terminal route produced by traversal:
    its source is the last waypoint that could be reached.
    """

    source: str
    target: str | None
    name: RouteName
    label: RouteLabel = field(default_factory=RouteLabel)

    @property
    def is_terminal(self) -> bool:
        return self.target is None

    @property
    def key(self) -> tuple[str, str, str | None]:
        """Structural identity of the edge, used for loop detection."""
        return (self.name.value, self.source, self.target)

    def inverted(self) -> Route:
        """Same route viewed from the opposite direction."""
        if self.target is None:
            raise ValueError(f"Cannot invert terminal route from '{self.source}'")
        return replace(self, source=self.target, target=self.source, label=self.label.swapped())


@dataclass(frozen=True, slots=True)
class WaypointRef:
    """A waypoint id with an optional origin namespace.

    Parsed once from the ``origin:waypoint`` notation accepted by the Plan
    API, so the graph only ever stores plain waypoint ids.
    """

    waypoint: str
    origin: str | None = None

    @classmethod
    def parse(cls, value: str) -> WaypointRef:
        if not isinstance(value, str):
            raise TypeError(f"Expected waypoint id to be a string, got {type(value).__name__}")
        if is_exit_node(value) or ":" not in value:
            return cls(waypoint=value)
        parts = value.split(":")
        origin, waypoint = parts[0], parts[-1]
        if not origin or not waypoint:
            return cls(waypoint=value)
        return cls(waypoint=waypoint, origin=origin)

    def __str__(self) -> str:
        return f"{self.origin}:{self.waypoint}" if self.origin else self.waypoint


class RouteCondition(Protocol):
    """Decides whether a route may be followed for the given context."""

    def __call__(self, route: Route, context: JourneyContext, /) -> bool: ...
