"""Page descriptor contract.

Only the parts of a page that interact with the journey engine are modelled
here: its waypoint id, its field validators, and the optional transforms
between the page's form-shaped data and the canonical data model. Views and
rendering hooks belong to the presentation layer.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from journeyplan.core.validation.fields import SimpleField


class FieldReader(Protocol):
    """Maps canonical context data to the data a page's form displays.

    Receives a deep copy of the context data; must not rely on mutating it.
    """

    def __call__(self, *, waypoint_id: str, context_data: Mapping[str, Any]) -> Any: ...


class FieldWriter(Protocol):
    """Maps submitted form data into the canonical data model.

    Returns the complete, updated context data.
    """

    def __call__(
        self,
        *,
        waypoint_id: str,
        form_data: Any,
        context_data: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]: ...


@dataclass(frozen=True)
class PageDescriptor:
    """A page in the journey, keyed by its waypoint id."""

    id: str
    view: str | None = None
    field_validators: Mapping[str, SimpleField] = field(default_factory=dict)
    field_reader: FieldReader | None = None
    field_writer: FieldWriter | None = None
    hooks: Mapping[str, Callable[..., Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.id, str):
            raise TypeError(f"Page id must be a string, got {type(self.id).__name__}")
        if self.field_reader is not None and not callable(self.field_reader):
            raise TypeError("field_reader must be callable")
        if self.field_writer is not None and not callable(self.field_writer):
            raise TypeError("field_writer must be callable")
