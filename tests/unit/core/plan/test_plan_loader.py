# tests/unit/core/plan/test_plan_loader.py
"""Tests for building Plans from YAML plan definitions."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from journeyplan.contracts import RouteLabel, RouteName
from journeyplan.core.config import PlanSettings
from journeyplan.core.plan import PlanDefinition, build_plan, load_plan
from tests.helpers.contexts import make_context

PLAN_YAML = """\
origins:
  - id: main
    waypoint: name
sequences:
  - [name, date-of-birth, review]
routes:
  - source: review
    target: url:///benefits/
    name: next
  - source: main:review
    target: extra:notes
skippables:
  - date-of-birth
"""


class TestLoadPlan:
    def test_load_plan_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "plan.yaml"
        path.write_text(PLAN_YAML)

        plan = load_plan(path)

        assert [o.waypoint for o in plan.get_origins()] == ["name"]
        assert plan.traverse(make_context(valid=["name", "date-of-birth"])) == ["name", "date-of-birth", "review"]
        assert plan.is_skippable("date-of-birth")

    def test_unnamed_route_creates_next_and_prev(self, tmp_path: Path) -> None:
        path = tmp_path / "plan.yaml"
        path.write_text(PLAN_YAML)

        plan = load_plan(path)

        notes_next = plan.get_outward_routes("review", "notes")
        assert [r.name for r in notes_next] == [RouteName.NEXT]
        assert notes_next[0].label == RouteLabel(source_origin="main", target_origin="extra")
        assert [r.target for r in plan.get_prev_outward_routes("notes")] == ["review"]

    def test_exit_node_route(self, tmp_path: Path) -> None:
        path = tmp_path / "plan.yaml"
        path.write_text(PLAN_YAML)

        plan = load_plan(path)

        assert plan.contains_waypoint("url:///benefits/")

    def test_settings_apply_to_plan(self, tmp_path: Path) -> None:
        path = tmp_path / "plan.yaml"
        path.write_text(PLAN_YAML)

        plan = load_plan(path, PlanSettings(arbiter="auto"))

        assert plan.options.arbiter == "auto"

    def test_empty_file_builds_empty_plan(self, tmp_path: Path) -> None:
        path = tmp_path / "plan.yaml"
        path.write_text("")

        plan = load_plan(path)

        assert plan.get_waypoints() == []

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_plan(tmp_path / "absent.yaml")

    def test_unknown_top_level_key(self, tmp_path: Path) -> None:
        path = tmp_path / "plan.yaml"
        path.write_text("waypoints: [a, b]\n")

        with pytest.raises(ValidationError):
            load_plan(path)

    def test_invalid_route_name(self) -> None:
        with pytest.raises(ValidationError):
            PlanDefinition.model_validate({"routes": [{"source": "a", "target": "b", "name": "sideways"}]})


class TestBuildPlan:
    def test_build_from_definition(self) -> None:
        definition = PlanDefinition(
            origins=[{"id": "main", "waypoint": "a"}],  # type: ignore[list-item]
            sequences=[["a", "b"]],
        )
        plan = build_plan(definition)
        assert plan.traverse(make_context(valid=["a"])) == ["a", "b"]
