# src/journeyplan/core/context/journey_context.py
"""JourneyContext: one user's state within a journey.

Holds four parts:

- ``data``: the canonical data model, keyed by waypoint id
- ``validation``: per waypoint, ``None`` when the page passed validation, or
  a mapping of field name to a list of FieldError records when it failed.
  A missing entry means the page has never been validated.
- ``nav``: ephemeral navigation state (currently only ``language``)
- ``identity``: ``{"id": ..., "name": ..., "tags": [...]}`` distinguishing
  this context from others held in the same session

Accessors return the live ``data`` and ``validation`` objects, not copies.
Callers that need isolation must copy explicitly.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping, MutableMapping
from typing import Any, TypeAlias

import pydantic
import structlog

from journeyplan.contracts import ContextFormatError, ContextIdentityError, PageDescriptor
from journeyplan.core.context import store
from journeyplan.core.context.events import ContextEvent, ContextEventType, dispatch
from journeyplan.core.context.ids import DEFAULT_CONTEXT_ID, generate_context_id, validate_context_id
from journeyplan.core.validation.errors import FieldError

logger = structlog.get_logger(__name__)

PageErrors: TypeAlias = dict[str, list[FieldError]]
ValidationState: TypeAlias = dict[str, PageErrors | None]

_RESERVED_KEYS = frozenset({"__proto__", "prototype", "constructor"})

# Markers stored in a waypoint's data when the user skipped it
_SKIPPED = "__skipped__"
_SKIP = "__skip__"


def validate_object_key(key: Any) -> str:
    """Reject keys that are reserved in the browser-side data model."""
    text = str(key)
    if text.lower() in _RESERVED_KEYS:
        raise ContextFormatError(f"Invalid object key used, {text}")
    return text


def _page_key(page: str | PageDescriptor) -> str:
    if isinstance(page, str):
        return validate_object_key(page)
    if isinstance(page, PageDescriptor):
        return validate_object_key(page.id)
    raise TypeError(f"Page must be a string or PageDescriptor, got {type(page).__name__}")


def _parse_page_errors(waypoint: str, errors: Any) -> PageErrors:
    if not isinstance(errors, Mapping):
        raise ContextFormatError(
            f"Validation errors for '{waypoint}' must be a mapping of field name to errors, "
            f"got {type(errors).__name__}"
        )
    parsed: PageErrors = {}
    for field_name, field_errors in errors.items():
        if not isinstance(field_errors, list | tuple):
            raise ContextFormatError(
                f"Errors for field '{field_name}' on '{waypoint}' must be a list, got {type(field_errors).__name__}"
            )
        records = []
        for error in field_errors:
            if not isinstance(error, FieldError | Mapping):
                raise ContextFormatError(
                    f"Errors for field '{field_name}' on '{waypoint}' must be error records, got {type(error).__name__}"
                )
            try:
                records.append(FieldError.make(error))
            except pydantic.ValidationError as e:
                raise ContextFormatError(f"Invalid error record for field '{field_name}' on '{waypoint}': {e}") from e
        parsed[str(field_name)] = records
    return parsed


def _parse_validation(validation: Any) -> ValidationState:
    if not isinstance(validation, Mapping):
        raise ContextFormatError(f"Validation state must be a mapping, got {type(validation).__name__}")
    parsed: ValidationState = {}
    for waypoint, errors in validation.items():
        key = validate_object_key(waypoint)
        parsed[key] = None if errors is None else _parse_page_errors(key, errors)
    return parsed


class JourneyContext:
    """Gathered data, validation state, navigation state and identity of a journey."""

    DEFAULT_CONTEXT_ID = DEFAULT_CONTEXT_ID

    def __init__(
        self,
        data: dict[str, Any] | None = None,
        validation: ValidationState | None = None,
        nav: dict[str, Any] | None = None,
        identity: dict[str, Any] | None = None,
    ) -> None:
        self._data: dict[str, Any] = data if data is not None else {}
        self._validation: ValidationState = _parse_validation(validation) if validation is not None else {}
        self._nav: dict[str, Any] = nav if nav is not None else {}
        self._identity: dict[str, Any] = identity if identity is not None else {}
        self._listeners: list[ContextEvent] = []
        self._listener_snapshot: dict[str, Any] | None = None

    def __repr__(self) -> str:
        return f"JourneyContext(id={self._identity.get('id')!r}, waypoints={list(self._data)!r})"

    # =========================================================================
    # Serialisation
    # =========================================================================

    def to_object(self) -> dict[str, Any]:
        """Deep copy into plain records suitable for session storage."""
        return {
            "data": copy.deepcopy(self._data),
            "validation": {
                waypoint: (
                    None
                    if errors is None
                    else {field: [e.model_dump(mode="json") for e in records] for field, records in errors.items()}
                )
                for waypoint, errors in self._validation.items()
            },
            "nav": copy.deepcopy(self._nav),
            "identity": copy.deepcopy(self._identity),
        }

    @classmethod
    def from_object(cls, obj: Mapping[str, Any] | None = None) -> JourneyContext:
        """Build a context from a record produced by to_object().

        Raises:
            ContextFormatError: If the validation record is malformed
        """
        obj = obj or {}
        return cls(
            data=copy.deepcopy(dict(obj.get("data") or {})),
            validation=obj.get("validation") or {},
            nav=copy.deepcopy(dict(obj.get("nav") or {})),
            identity=copy.deepcopy(dict(obj.get("identity") or {})),
        )

    def configure_from_object(self, obj: Mapping[str, Any]) -> JourneyContext:
        """Replace data, validation and nav from a record, keeping identity."""
        source = JourneyContext.from_object(obj)
        self._data = source.data
        self._validation = source.validation
        self._nav = source.nav
        return self

    # =========================================================================
    # Data
    # =========================================================================

    @property
    def data(self) -> dict[str, Any]:
        return self._data

    @data.setter
    def data(self, value: dict[str, Any]) -> None:
        self._data = value

    @property
    def validation(self) -> ValidationState:
        return self._validation

    @property
    def nav(self) -> dict[str, Any]:
        return self._nav

    @property
    def identity(self) -> dict[str, Any]:
        return self._identity

    def get_data(self) -> dict[str, Any]:
        return self._data

    def set_data(self, data: dict[str, Any]) -> JourneyContext:
        self._data = data
        return self

    def get_data_for_page(self, page: str | PageDescriptor) -> Any:
        """Data for one page.

        For a PageDescriptor with a field_reader, the reader maps the
        canonical data to the page's form shape. It receives a deep copy, so
        it cannot change the context.
        """
        key = _page_key(page)
        if isinstance(page, PageDescriptor) and page.field_reader is not None:
            return page.field_reader(waypoint_id=key, context_data=copy.deepcopy(self._data))
        return self._data.get(key)

    def set_data_for_page(self, page: str | PageDescriptor, value: Any) -> JourneyContext:
        """Store data for one page.

        For a PageDescriptor with a field_writer, the writer maps the form
        data into the canonical model and returns the complete updated data.
        """
        key = _page_key(page)
        if isinstance(page, PageDescriptor) and page.field_writer is not None:
            updated = page.field_writer(waypoint_id=key, form_data=value, context_data=self._data)
            if not isinstance(updated, MutableMapping):
                raise TypeError(f"field_writer for '{key}' must return the context data, got {type(updated).__name__}")
            self._data = dict(updated)
        else:
            self._data[key] = value
        return self

    # =========================================================================
    # Validation state
    # =========================================================================

    def get_validation_errors(self) -> ValidationState:
        return self._validation

    def get_validation_errors_for_page(self, waypoint: str) -> PageErrors:
        """Field errors of a page; empty if it passed or was never validated."""
        return self._validation.get(validate_object_key(waypoint)) or {}

    def set_validation_errors_for_page(self, waypoint: str, errors: Mapping[str, Any]) -> JourneyContext:
        """Record failed validation for a page.

        Raises:
            ContextFormatError: Unless ``errors`` maps field names to lists of
                error records
        """
        key = validate_object_key(waypoint)
        self._validation[key] = _parse_page_errors(key, errors)
        return self

    def clear_validation_errors_for_page(self, waypoint: str) -> JourneyContext:
        """Mark the page as validated and passable."""
        self._validation[validate_object_key(waypoint)] = None
        return self

    def remove_validation_state_for_page(self, waypoint: str) -> JourneyContext:
        """Forget the page was ever validated; traversal will stop there."""
        self._validation.pop(waypoint, None)
        return self

    def has_validation_errors_for_page(self, waypoint: str) -> bool:
        errors = self._validation.get(validate_object_key(waypoint))
        return bool(errors) and any(errors.values())  # type: ignore[union-attr]

    def is_page_valid(self, waypoint: str) -> bool:
        key = validate_object_key(waypoint)
        return key in self._validation and self._validation[key] is None

    def purge(self, waypoints: Iterable[str]) -> JourneyContext:
        """Remove data and validation state for the given waypoints."""
        doomed = set(waypoints)
        self._data = {k: v for k, v in self._data.items() if k not in doomed}
        self._validation = {k: v for k, v in self._validation.items() if k not in doomed}
        return self

    def invalidate(self, waypoints: Iterable[str]) -> JourneyContext:
        """Remove validation state only, forcing the user to revisit the waypoints."""
        for waypoint in waypoints:
            self.remove_validation_state_for_page(waypoint)
        return self

    # =========================================================================
    # Navigation and skipping
    # =========================================================================

    def set_navigation_language(self, language: str = "en") -> JourneyContext:
        self._nav["language"] = language
        return self

    def get_navigation(self) -> dict[str, Any]:
        return self._nav

    def set_skipped(self, waypoint: str, skipped: bool | Mapping[str, Any]) -> JourneyContext:
        """Mark a waypoint as skipped (discarding its data), or unmark it.

        Args:
            waypoint: Waypoint being skipped.
            skipped: True, False, or ``{"to": other_waypoint}``.
        """
        key = validate_object_key(waypoint)
        if skipped is False:
            page = self._data.get(key)
            if not isinstance(page, dict):
                page = {}
                self._data[key] = page
            page.pop(_SKIPPED, None)
            page.pop(_SKIP, None)
        elif skipped is True:
            self._data[key] = {_SKIPPED: True, _SKIP: {"to": None}}
        elif isinstance(skipped, Mapping) and isinstance(skipped.get("to"), str):
            self._data[key] = {_SKIPPED: True, _SKIP: {"to": skipped["to"]}}
        else:
            raise TypeError(
                f"skipped must be a bool or a mapping with a 'to' waypoint, got {type(skipped).__name__}"
            )
        return self

    def is_skipped(self, waypoint: str, to: str | None = None) -> bool:
        """Whether the waypoint was skipped, optionally to a specific waypoint."""
        page = self._data.get(str(waypoint))
        if not isinstance(page, Mapping):
            return False
        if to is None:
            return page.get(_SKIPPED) is True or _SKIP in page
        skip = page.get(_SKIP)
        return isinstance(skip, Mapping) and skip.get("to") == to

    # =========================================================================
    # Events
    # =========================================================================

    def add_event_listeners(self, events: Iterable[ContextEvent]) -> JourneyContext:
        """Attach listeners and snapshot the current state to compare against."""
        self._listeners = list(events)
        self._listener_snapshot = self.to_object()
        return self

    def apply_event_listeners(
        self,
        event: ContextEventType | str,
        session: MutableMapping[str, Any],
        user_info: Any = None,
    ) -> JourneyContext:
        if not self._listeners or self._listener_snapshot is None:
            return self
        called = dispatch(
            self._listeners,
            ContextEventType(event),
            context=self,
            previous=JourneyContext.from_object(self._listener_snapshot),
            session=session,
            user_info=user_info,
        )
        if called:
            logger.debug("Called context event handlers", event=str(event), handlers=called)
        return self

    # =========================================================================
    # Identity
    # =========================================================================

    def is_default(self) -> bool:
        return self._identity.get("id") == DEFAULT_CONTEXT_ID

    @staticmethod
    def validate_context_id(context_id: Any) -> str:
        return validate_context_id(context_id)

    @classmethod
    def generate_context_id(cls, session: Mapping[str, Any] | None = None) -> str:
        """A fresh UUID id that no context in ``session`` already uses."""
        return generate_context_id(reserved=store.read_records(session))

    @classmethod
    def create_ephemeral_context(cls, session: Mapping[str, Any] | None = None) -> JourneyContext:
        """A new empty context with a unique id, not yet stored anywhere."""
        return cls(identity={"id": cls.generate_context_id(session)})

    @classmethod
    def from_context(cls, context: JourneyContext, session: Mapping[str, Any] | None = None) -> JourneyContext:
        """Clone ``context`` under a freshly generated identity id."""
        if not isinstance(context, JourneyContext):
            raise TypeError(f"Source context must be a JourneyContext, got {type(context).__name__}")
        record = context.to_object()
        record["identity"]["id"] = cls.generate_context_id(session)
        return cls.from_object(record)

    # =========================================================================
    # Session store
    # =========================================================================

    @classmethod
    def init_context_store(cls, session: MutableMapping[str, Any]) -> None:
        """Ensure the session holds a context list with a default context.

        Older session layouts are migrated in place.
        """
        if store.has_store(session):
            store.migrate_legacy_layout(session)
            return
        legacy = store.create_store(session)
        default = cls.from_object(legacy) if legacy is not None else cls()
        default.identity["id"] = DEFAULT_CONTEXT_ID
        cls.put_context(session, default)

    @classmethod
    def get_default_context(cls, session: Mapping[str, Any]) -> JourneyContext | None:
        return cls.get_context_by_id(session, DEFAULT_CONTEXT_ID)

    @classmethod
    def get_context_by_id(cls, session: Mapping[str, Any], context_id: str) -> JourneyContext | None:
        record = store.read_records(session).get(context_id)
        return cls.from_object(record) if record is not None else None

    @classmethod
    def get_context_by_name(cls, session: Mapping[str, Any], name: str) -> JourneyContext | None:
        for record in store.read_records(session).values():
            if record.get("identity", {}).get("name") == name:
                return cls.from_object(record)
        return None

    @classmethod
    def get_contexts_by_tag(cls, session: Mapping[str, Any], tag: str) -> list[JourneyContext]:
        return [
            cls.from_object(record)
            for record in store.read_records(session).values()
            if tag in (record.get("identity", {}).get("tags") or ())
        ]

    @classmethod
    def get_contexts(cls, session: Mapping[str, Any]) -> list[JourneyContext]:
        return [cls.from_object(record) for record in store.read_records(session).values()]

    @classmethod
    def put_context(
        cls,
        session: MutableMapping[str, Any],
        context: JourneyContext,
        user_info: Any = None,
    ) -> None:
        """Store ``context`` in the session, firing any attached event listeners.

        Raises:
            TypeError: If session or context have the wrong type
            ContextIdentityError: If the context has no identity id
        """
        if not isinstance(session, MutableMapping):
            raise TypeError(f"Session must be a mutable mapping, got {type(session).__name__}")
        if not isinstance(context, JourneyContext):
            raise TypeError(f"Context must be a JourneyContext, got {type(context).__name__}")
        context_id = context.identity.get("id")
        if context_id is None:
            raise ContextIdentityError("Context must have an identity id before storing in session")

        if not store.has_store(session):
            cls.init_context_store(session)

        context.apply_event_listeners(ContextEventType.WAYPOINT_CHANGE, session, user_info)
        context.apply_event_listeners(ContextEventType.CONTEXT_CHANGE, session, user_info)

        store.write_record(session, str(context_id), context.to_object())

    @classmethod
    def remove_context(cls, session: MutableMapping[str, Any], context: JourneyContext) -> None:
        if isinstance(context, JourneyContext) and context.identity.get("id") is not None:
            cls.remove_context_by_id(session, context.identity["id"])

    @classmethod
    def remove_context_by_id(cls, session: MutableMapping[str, Any], context_id: str) -> None:
        store.delete_record(session, context_id)

    @classmethod
    def remove_context_by_name(cls, session: MutableMapping[str, Any], name: str) -> None:
        context = cls.get_context_by_name(session, name)
        if context is not None:
            cls.remove_context(session, context)

    @classmethod
    def remove_contexts_by_tag(cls, session: MutableMapping[str, Any], tag: str) -> None:
        for context in cls.get_contexts_by_tag(session, tag):
            cls.remove_context(session, context)

    @classmethod
    def remove_contexts(cls, session: MutableMapping[str, Any]) -> None:
        for context in cls.get_contexts(session):
            cls.remove_context(session, context)

    @classmethod
    def extract_context(cls, session: MutableMapping[str, Any], context_id: Any = None) -> JourneyContext:
        """Load the context a request refers to, falling back to the default.

        A missing, malformed or unknown ``context_id`` selects the default
        context. If even that has been removed, a new empty default context
        is returned (not stored).
        """
        cls.init_context_store(session)
        wanted = DEFAULT_CONTEXT_ID if context_id is None else context_id
        try:
            context = cls.get_context_by_id(session, validate_context_id(wanted))
        except (TypeError, ContextFormatError) as e:
            logger.debug("Ignoring malformed context id", context_id=repr(wanted), error=str(e))
            context = None

        if context is None:
            logger.debug("Falling back to default journey context", requested=repr(wanted))
            context = cls.get_default_context(session)
        if context is None:
            context = cls(identity={"id": DEFAULT_CONTEXT_ID})
        return context
