# tests/unit/contracts/test_routes.py
"""Tests for route value types and the validator error signal."""

from __future__ import annotations

import pytest

from journeyplan.contracts import Route, RouteLabel, RouteName, ValidationError, WaypointRef, is_exit_node


class TestWaypointRef:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("name", WaypointRef(waypoint="name")),
            ("partner:name", WaypointRef(waypoint="name", origin="partner")),
            ("url:///elsewhere/", WaypointRef(waypoint="url:///elsewhere/")),
            (":name", WaypointRef(waypoint=":name")),
        ],
    )
    def test_parse(self, raw: str, expected: WaypointRef) -> None:
        assert WaypointRef.parse(raw) == expected

    def test_parse_rejects_non_strings(self) -> None:
        with pytest.raises(TypeError):
            WaypointRef.parse(42)  # type: ignore[arg-type]

    def test_str_restores_notation(self) -> None:
        assert str(WaypointRef.parse("partner:name")) == "partner:name"
        assert str(WaypointRef.parse("name")) == "name"


class TestExitNodes:
    @pytest.mark.parametrize("waypoint", ["url:///other-app/", "HTTPS://example.org/"])
    def test_exit_nodes(self, waypoint: str) -> None:
        assert is_exit_node(waypoint)

    @pytest.mark.parametrize("waypoint", ["name", "partner:name", "/absolute"])
    def test_plain_waypoints(self, waypoint: str) -> None:
        assert not is_exit_node(waypoint)


class TestRoute:
    def test_inverted_swaps_ends_and_labels(self) -> None:
        route = Route(source="a", target="b", name=RouteName.NEXT, label=RouteLabel("one", "two"))

        inverted = route.inverted()

        assert inverted == Route(source="b", target="a", name=RouteName.NEXT, label=RouteLabel("two", "one"))

    def test_terminal_route_cannot_be_inverted(self) -> None:
        route = Route(source="a", target=None, name=RouteName.NEXT)
        assert route.is_terminal
        with pytest.raises(ValueError, match="terminal"):
            route.inverted()

    def test_key_ignores_labels(self) -> None:
        plain = Route(source="a", target="b", name=RouteName.PREV)
        labelled = Route(source="a", target="b", name=RouteName.PREV, label=RouteLabel(target_origin="x"))
        assert plain.key == labelled.key == ("prev", "a", "b")


class TestValidationErrorMessage:
    def test_string_payload(self) -> None:
        assert str(ValidationError("validation:rule.required")) == "validation:rule.required"

    def test_list_payload(self) -> None:
        assert str(ValidationError(["a", "b"])) == "2 validation error(s)"

    def test_mapping_payload(self) -> None:
        error = ValidationError({"summary": "validation:rule.email"})
        assert str(error) == "validation:rule.email"
        assert error.payload == {"summary": "validation:rule.email"}
