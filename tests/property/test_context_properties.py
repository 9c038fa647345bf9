# tests/property/test_context_properties.py
"""Property-based tests for JourneyContext records.

Serialisation Properties:
- from_object(to_object()) preserves data, validation, nav and identity
- to_object() never shares mutable state with the context
"""

from __future__ import annotations

from typing import Any

from hypothesis import given

from journeyplan.core.context import JourneyContext
from tests.strategies.journeys import context_records
from tests.strategies.settings import STANDARD_SETTINGS


class TestRoundTrip:
    @given(record=context_records())
    @STANDARD_SETTINGS
    def test_round_trip_is_identity(self, record: dict[str, Any]) -> None:
        context = JourneyContext.from_object(record)

        restored = JourneyContext.from_object(context.to_object())

        assert restored.to_object() == context.to_object()
        assert restored.data == context.data
        assert restored.nav == context.nav
        assert restored.identity == context.identity
        assert restored.validation == context.validation

    @given(record=context_records())
    @STANDARD_SETTINGS
    def test_to_object_is_detached(self, record: dict[str, Any]) -> None:
        context = JourneyContext.from_object(record)
        snapshot = context.to_object()

        exported = context.to_object()
        exported["data"]["__mutated__"] = True
        exported["identity"]["id"] = "changed"

        assert context.to_object() == snapshot
