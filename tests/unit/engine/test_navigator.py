# tests/unit/engine/test_navigator.py
"""Tests for next-waypoint resolution and journey steering."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from journeyplan.contracts import PlanConfigurationError
from journeyplan.core.plan import Plan, PlanOrigin
from journeyplan.engine.edit_continuation import EditState
from journeyplan.engine.navigator import JourneySteer, next_route, next_waypoint_url, resolve_origin, steer_journey
from tests.helpers.contexts import make_context


@pytest.fixture
def two_origin_plan() -> Plan:
    """"main" a -> b, then crossing into "partner" x -> y."""
    plan = Plan()
    plan.add_origin("main", "a")
    plan.add_origin("partner", "x")
    plan.add_sequence("a", "b")
    plan.set_route("main:b", "partner:x")
    plan.add_sequence("x", "y")
    return plan


class TestResolveOrigin:
    def test_first_origin_by_default(self, linear_plan: Plan) -> None:
        assert resolve_origin(linear_plan) == PlanOrigin(origin_id="main", waypoint="a")

    def test_explicit_origin(self, linear_plan: Plan) -> None:
        origin = PlanOrigin(origin_id=None, waypoint="c")
        assert resolve_origin(linear_plan, origin) is origin

    def test_plan_without_origins(self) -> None:
        with pytest.raises(PlanConfigurationError):
            resolve_origin(Plan().add_sequence("a", "b"))


class TestNextWaypointUrl:
    def test_next_waypoint(self, linear_plan: Plan) -> None:
        context = make_context(valid=["a"])
        url = next_waypoint_url(linear_plan, context, waypoint="a", current_url="/apply/main/a", mount_url="/apply/")
        assert url == "/apply/main/b"

    def test_tip_returns_same_waypoint(self, linear_plan: Plan) -> None:
        context = make_context(valid=["a", "b", "c", "d"])
        url = next_waypoint_url(linear_plan, context, waypoint="d", current_url="/main/d")
        assert url == "/main/d"

    def test_off_plan_waypoint_stays(self, linear_plan: Plan) -> None:
        url = next_waypoint_url(linear_plan, make_context(), waypoint="elsewhere", current_url="/Elsewhere?x=1")
        assert url == "/Elsewhere"

    def test_unreachable_waypoint_stays(self, linear_plan: Plan) -> None:
        url = next_waypoint_url(linear_plan, make_context(valid=["a"]), waypoint="d", current_url="/main/d")
        assert url == "/main/d"

    def test_crossing_origins_uses_route_target_origin(self, two_origin_plan: Plan) -> None:
        context = make_context(valid=["a", "b"])
        url = next_waypoint_url(two_origin_plan, context, waypoint="b", current_url="/main/b")
        assert url == "/partner/x"


class TestSteerJourney:
    def test_reachable_waypoint_gets_back_link(self, linear_plan: Plan) -> None:
        context = make_context(valid=["a", "b"])
        steer = steer_journey(linear_plan, context, waypoint="c")
        assert steer == JourneySteer(redirect_url=None, previous_url="/main/b", edit_state=EditState())

    def test_first_waypoint_has_no_back_link(self, linear_plan: Plan) -> None:
        steer = steer_journey(linear_plan, make_context(), waypoint="a")
        assert steer.redirect_url is None
        assert steer.previous_url is None

    def test_unreachable_waypoint_redirects_to_furthest(self, linear_plan: Plan) -> None:
        context = make_context(valid=["a"])
        with capture_logs() as logs:
            steer = steer_journey(linear_plan, context, waypoint="d", mount_url="/apply/")

        assert steer.redirect_url == "/apply/main/b"
        assert logs[0]["event"] == "Waypoint not reachable on current journey, redirecting"

    def test_off_plan_waypoint_is_not_steered(self, linear_plan: Plan) -> None:
        steer = steer_journey(linear_plan, make_context(), waypoint="static-page")
        assert steer == JourneySteer()

    def test_redirect_keeps_origin_of_furthest_waypoint(self, two_origin_plan: Plan) -> None:
        context = make_context(valid=["a", "b"])
        steer = steer_journey(two_origin_plan, context, waypoint="y")
        assert steer.redirect_url == "/partner/x"

    def test_back_link_crosses_origins(self, two_origin_plan: Plan) -> None:
        context = make_context(valid=["a", "b"])
        steer = steer_journey(two_origin_plan, context, waypoint="x")
        assert steer.previous_url == "/main/b"

    def test_back_link_carries_edit_mode(self, linear_plan: Plan) -> None:
        context = make_context(valid=["a", "b", "c"])
        steer = steer_journey(
            linear_plan,
            context,
            waypoint="b",
            edit_state=EditState(in_edit_mode=True, edit_origin_url="/main/d"),
        )
        assert steer.previous_url == "/main/a?edit=true&editorigin=%2Fmain%2Fd"
        assert steer.edit_state.in_edit_mode

    def test_arriving_at_edit_origin_leaves_edit_mode(self, linear_plan: Plan) -> None:
        context = make_context(valid=["a", "b", "c"])
        steer = steer_journey(
            linear_plan,
            context,
            waypoint="d",
            edit_state=EditState(in_edit_mode=True, edit_origin_url="/main/d/"),
        )
        assert steer.edit_state == EditState()
        assert steer.previous_url == "/main/c"


class TestNextRoute:
    def test_route_to_next_waypoint(self, linear_plan: Plan) -> None:
        route = next_route(linear_plan, make_context(valid=["a", "b"]), waypoint="b")
        assert route is not None
        assert (route.source, route.target) == ("b", "c")

    def test_none_at_tip(self, linear_plan: Plan) -> None:
        assert next_route(linear_plan, make_context(valid=["a"]), waypoint="b") is None

    def test_none_off_plan(self, linear_plan: Plan) -> None:
        assert next_route(linear_plan, make_context(), waypoint="elsewhere") is None
