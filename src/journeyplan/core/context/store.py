# src/journeyplan/core/context/store.py
"""Session layout for stored journey contexts.

Contexts live in ``session["journeyContextList"]`` as a mapping of context
id to the plain record produced by JourneyContext.to_object(). Two older
layouts are migrated in place when the store is initialised:

- ``journeyContextList`` held as a list of ``[id, record]`` pairs
- a single context held in ``session["journeyContext"]``

Persisting the session itself is the caller's job.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any, TypeAlias

import structlog

from journeyplan.contracts import CONTEXT_LIST_KEY, LEGACY_CONTEXT_KEY

logger = structlog.get_logger(__name__)

ContextRecord: TypeAlias = dict[str, Any]


def _check_session(session: Any) -> MutableMapping[str, Any]:
    if not isinstance(session, MutableMapping):
        raise TypeError(f"Session must be a mutable mapping, got {type(session).__name__}")
    return session


def migrate_legacy_layout(session: MutableMapping[str, Any]) -> None:
    """Convert a list-of-pairs context list into the keyed mapping."""
    stored = session.get(CONTEXT_LIST_KEY)
    if isinstance(stored, list | tuple):
        logger.debug("Converting session context list from pairs to mapping", count=len(stored))
        session[CONTEXT_LIST_KEY] = {str(context_id): record for context_id, record in stored}


def has_store(session: Any) -> bool:
    return isinstance(session, Mapping) and CONTEXT_LIST_KEY in session


def create_store(session: Any) -> ContextRecord | None:
    """Create an empty context list, returning any legacy single-context record.

    The returned record (or None) is removed from the session; the caller
    adopts it as the default context.
    """
    session = _check_session(session)
    logger.debug("Initialising session with a journey context list")
    session[CONTEXT_LIST_KEY] = {}
    legacy = session.pop(LEGACY_CONTEXT_KEY, None)
    if legacy is not None:
        logger.debug("Adopting legacy single journey context as the default context")
    return legacy


def read_records(session: Any) -> dict[str, ContextRecord]:
    """All stored records keyed by context id, in insertion order."""
    if not has_store(session):
        return {}
    migrate_legacy_layout(session)
    records: dict[str, ContextRecord] = session[CONTEXT_LIST_KEY]
    return records


def write_record(session: Any, context_id: str, record: ContextRecord) -> None:
    session = _check_session(session)
    migrate_legacy_layout(session)
    session[CONTEXT_LIST_KEY][context_id] = record


def delete_record(session: Any, context_id: str) -> bool:
    """Remove a record. Returns False if there was nothing to remove."""
    records = read_records(session)
    if context_id not in records:
        return False
    del records[context_id]
    return True
