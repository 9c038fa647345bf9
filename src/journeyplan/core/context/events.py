# src/journeyplan/core/context/events.py
"""Context change events.

Listeners are transient: they are attached for the current request only and
never stored in the session. They compare the context against the snapshot
taken when they were attached, not against the previous put_context call.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from journeyplan.contracts import Session
    from journeyplan.core.context.journey_context import JourneyContext


class ContextEventType(StrEnum):
    WAYPOINT_CHANGE = "waypoint-change"
    CONTEXT_CHANGE = "context-change"


ContextEventHandler: TypeAlias = Callable[..., None]


@dataclass(frozen=True, slots=True)
class ContextEvent:
    """A listener for changes to a journey context.

    With a ``waypoint`` (and optionally a ``field``), the handler only runs
    when that part of the data existed before and has since changed.

    Handlers are called with keyword arguments ``journey_context``,
    ``previous_context``, ``session`` and ``user_info``.
    """

    event: ContextEventType
    handler: ContextEventHandler
    waypoint: str | None = None
    field: str | None = None

    def __post_init__(self) -> None:
        if not callable(self.handler):
            raise TypeError(f"Event handler must be callable, got {type(self.handler).__name__}")
        if self.field is not None and self.waypoint is None:
            raise ValueError("A field-specific event listener also needs a waypoint")
        object.__setattr__(self, "event", ContextEventType(self.event))

    def should_run(self, current: Mapping[str, Any], previous: Mapping[str, Any]) -> bool:
        """Whether the watched data changed between ``previous`` and ``current``."""
        if self.waypoint is None:
            return True
        if self.waypoint not in previous:
            return False
        before = previous[self.waypoint]
        after = current.get(self.waypoint)
        if self.field is None:
            return bool(after != before)
        if not isinstance(before, Mapping) or self.field not in before:
            return False
        after_field = after.get(self.field) if isinstance(after, Mapping) else None
        return bool(after_field != before[self.field])


def dispatch(
    listeners: list[ContextEvent],
    event: ContextEventType,
    *,
    context: JourneyContext,
    previous: JourneyContext,
    session: Session,
    user_info: Any = None,
) -> int:
    """Run the listeners for ``event`` whose watched data changed.

    Returns:
        Number of handlers called.
    """
    called = 0
    for listener in listeners:
        if listener.event != event:
            continue
        if not listener.should_run(context.data, previous.data):
            continue
        listener.handler(
            journey_context=context,
            previous_context=previous,
            session=session,
            user_info=user_info,
        )
        called += 1
    return called
