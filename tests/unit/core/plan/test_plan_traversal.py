# tests/unit/core/plan/test_plan_traversal.py
"""Tests for Plan traversal: conditions, loops, ambiguity and arbitration."""

from __future__ import annotations

from typing import Any

import pytest
from structlog.testing import capture_logs

from journeyplan.contracts import PlanConfigurationError, Route, RouteLabel, RouteName
from journeyplan.core.context import JourneyContext
from journeyplan.core.plan import Plan, TraverseOptions
from tests.helpers.contexts import make_context


def _sources(routes: list[Route]) -> list[str]:
    return [route.source for route in routes]


class TestDefaultConditions:
    """Default next/prev conditions follow routes out of validated pages."""

    def test_stops_at_first_unvalidated_waypoint(self, linear_plan: Plan) -> None:
        context = make_context(valid=["a"])
        assert linear_plan.traverse(context) == ["a", "b"]

    def test_traverses_whole_journey_when_all_valid(self, linear_plan: Plan) -> None:
        context = make_context(valid=["a", "b", "c", "d"])
        assert linear_plan.traverse(context) == ["a", "b", "c", "d"]

    def test_failed_validation_stops_traversal(self, linear_plan: Plan) -> None:
        context = make_context(valid=["a", "c"])
        context.set_validation_errors_for_page("b", {"name": [{"summary": "required"}]})
        assert linear_plan.traverse(context) == ["a", "b"]

    def test_last_route_is_terminal(self, linear_plan: Plan) -> None:
        routes = linear_plan.traverse_next_routes(make_context(valid=["a"]))
        assert routes[0] == Route(source="a", target="b", name=RouteName.NEXT)
        assert routes[-1] == Route(source="b", target=None, name=RouteName.NEXT)
        assert routes[-1].is_terminal

    def test_prev_traversal_follows_validated_targets(self, linear_plan: Plan) -> None:
        context = make_context(valid=["a", "b", "c"])
        routes = linear_plan.traverse_prev_routes(context, start_waypoint="d")
        assert _sources(routes) == ["d", "c", "b", "a"]

    def test_start_waypoint(self, linear_plan: Plan) -> None:
        context = make_context(valid=["a", "b", "c"])
        assert linear_plan.traverse(context, start_waypoint="c") == ["c", "d"]


class TestTraversalArguments:
    def test_requires_journey_context(self, linear_plan: Plan) -> None:
        with pytest.raises(TypeError, match="Expected context to be an instance of JourneyContext"):
            linear_plan.traverse({"data": {}})  # type: ignore[arg-type]

    def test_unknown_start_waypoint(self, linear_plan: Plan) -> None:
        with pytest.raises(PlanConfigurationError, match="does not contain waypoint 'zzz'"):
            linear_plan.traverse(make_context(), start_waypoint="zzz")

    def test_no_origins_and_no_start(self) -> None:
        plan = Plan().add_sequence("a", "b")
        with pytest.raises(PlanConfigurationError, match="no origins"):
            plan.traverse(make_context())

    def test_route_name_required(self, linear_plan: Plan) -> None:
        with pytest.raises(PlanConfigurationError):
            linear_plan.traverse_routes(make_context(), start_waypoint="a")

    def test_stop_condition_includes_stopping_route(self, linear_plan: Plan) -> None:
        context = make_context(valid=["a", "b", "c"])
        routes = linear_plan.traverse_next_routes(context, stop_condition=lambda r: r.target == "c")
        assert [(r.source, r.target) for r in routes] == [("a", "b"), ("b", "c")]


class TestCustomConditions:
    def test_branching_on_data(self) -> None:
        def wants_pet(route: Route, context: JourneyContext) -> bool:
            return bool(context.data.get("start", {}).get("pet") == "yes")

        def no_pet(route: Route, context: JourneyContext) -> bool:
            return not wants_pet(route, context)

        plan = Plan().add_origin("main", "start")
        plan.set_next_route("start", "pet-name", wants_pet)
        plan.set_next_route("start", "summary", no_pet)

        assert plan.traverse(make_context({"start": {"pet": "yes"}})) == ["start", "pet-name"]
        assert plan.traverse(make_context({"start": {"pet": "no"}})) == ["start", "summary"]

    def test_raising_condition_is_unsatisfied_and_logged(self) -> None:
        def broken(route: Route, context: JourneyContext) -> bool:
            raise KeyError("missing")

        plan = Plan().add_origin("main", "a")
        plan.set_next_route("a", "b", broken)
        plan.set_next_route("a", "c", lambda route, context: True)

        with capture_logs() as logs:
            assert plan.traverse(make_context()) == ["a", "c"]

        warning = next(log for log in logs if log["log_level"] == "warning")
        assert warning["event"] == "Route condition raised, treating route as unsatisfied"
        assert warning["target"] == "b"
        assert warning["error_type"] == "KeyError"

    def test_validate_before_route_condition(self) -> None:
        def always(route: Route, context: JourneyContext) -> bool:
            return True

        plan = Plan(validate_before_route_condition=True).add_origin("main", "a")
        plan.set_next_route("a", "b", always)

        assert plan.traverse(make_context()) == ["a"]
        assert plan.traverse(make_context(valid=["a"])) == ["a", "b"]


class TestLoops:
    def test_self_loop_terminates(self) -> None:
        plan = Plan().add_origin("main", "a")
        plan.set_next_route("a", "a", lambda route, context: True)

        with capture_logs() as logs:
            routes = plan.traverse_next_routes(make_context())

        assert _sources(routes) == ["a", "a"]
        assert routes[-1].is_terminal
        assert any(log["event"] == "Encountered loop, stopping traversal" for log in logs)

    def test_mutual_loop_terminates(self) -> None:
        plan = Plan().add_origin("main", "a")
        plan.set_next_route("a", "b", lambda route, context: True)
        plan.set_next_route("b", "a", lambda route, context: True)

        assert plan.traverse(make_context()) == ["a", "b", "a"]


class TestAmbiguity:
    """Two satisfied routes of the same name stop traversal at the source."""

    @pytest.fixture
    def forked(self) -> Plan:
        plan = Plan().add_origin("main", "a")
        plan.set_next_route("a", "b", lambda route, context: True)
        plan.set_next_route("a", "c", lambda route, context: True)
        return plan

    def test_stops_with_terminal_at_source(self, forked: Plan) -> None:
        with capture_logs() as logs:
            routes = forked.traverse_next_routes(make_context())

        assert routes == [Route(source="a", target=None, name=RouteName.NEXT, label=RouteLabel())]
        warning = next(log for log in logs if log["log_level"] == "warning")
        assert warning["event"] == "Multiple routes satisfied, unable to arbitrate; stopping traversal"
        assert warning["candidates"] == ["a -> b", "a -> c"]

    def test_custom_arbiter_chooses(self, forked: Plan) -> None:
        received: dict[str, Any] = {}

        def prefer_c(*, targets: list[Route], journey_context: JourneyContext, traverse_options: TraverseOptions) -> list[Route]:
            received["options"] = traverse_options
            return [r for r in targets if r.target == "c"]

        assert forked.traverse(make_context(), arbiter=prefer_c) == ["a", "c"]
        assert received["options"].route_name is RouteName.NEXT
        assert received["options"].start_waypoint == "a"

    def test_arbiter_returning_several_routes_still_stops(self, forked: Plan) -> None:
        def keep_all(*, targets: list[Route], **_: Any) -> list[Route]:
            return targets

        assert forked.traverse(make_context(), arbiter=keep_all) == ["a"]

    def test_auto_arbiter_ignores_next_ambiguity(self, forked: Plan) -> None:
        assert forked.traverse(make_context(), arbiter="auto") == ["a"]

    def test_auto_arbiter_resolves_prev_from_forward_path(self) -> None:
        def pet_is(answer: str):  # type: ignore[no-untyped-def]
            def condition(route: Route, context: JourneyContext) -> bool:
                return bool(context.data.get("start", {}).get("pet") == answer)

            return condition

        plan = Plan(arbiter="auto").add_origin("main", "start")
        plan.set_route("start", "pet-name", pet_is("yes"))
        plan.set_route("start", "no-pet", pet_is("no"))
        plan.set_route("pet-name", "summary", lambda route, context: True)
        plan.set_route("no-pet", "summary", lambda route, context: True)

        context = make_context({"start": {"pet": "no"}}, valid=["start", "pet-name", "no-pet"])
        routes = plan.traverse_prev_routes(context, start_waypoint="summary")

        assert _sources(routes) == ["summary", "no-pet", "start"]
