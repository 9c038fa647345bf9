# src/journeyplan/core/plan/loader.py
"""Build a Plan from a YAML plan definition.

Plan files describe structure only; every route uses the default
condition for its name. Conditional routing needs Python callables and is
defined in code.

Example YAML:
    origins:
      - id: main
        waypoint: name
    sequences:
      - [name, date-of-birth, address, review]
    routes:
      - source: address
        target: url:///benefits/
        name: next
    skippables:
      - address
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

from journeyplan.core.config import PlanSettings
from journeyplan.core.plan.graph import Plan


class OriginDefinition(BaseModel):
    model_config = {"frozen": True}

    id: str = Field(description="Origin identifier used to namespace waypoints")
    waypoint: str = Field(description="Waypoint the origin starts at")


class RouteDefinition(BaseModel):
    """A route between two waypoints.

    Without a name, both a next route and its mirrored prev route are created.
    """

    model_config = {"frozen": True}

    source: str
    target: str
    name: Literal["next", "prev", "origin"] | None = None


class PlanDefinition(BaseModel):
    """Parsed contents of a plan file."""

    model_config = {"frozen": True, "extra": "forbid"}

    origins: list[OriginDefinition] = Field(default_factory=list)
    sequences: list[list[str]] = Field(default_factory=list)
    routes: list[RouteDefinition] = Field(default_factory=list)
    skippables: list[str] = Field(default_factory=list)


def build_plan(definition: PlanDefinition, settings: PlanSettings | None = None) -> Plan:
    """Create a Plan from a validated definition."""
    plan = Plan.from_settings(settings or PlanSettings())
    for origin in definition.origins:
        plan.add_origin(origin.id, origin.waypoint)
    for sequence in definition.sequences:
        plan.add_sequence(*sequence)
    for route in definition.routes:
        if route.name is None:
            plan.set_route(route.source, route.target)
        else:
            plan.set_named_route(route.source, route.target, route.name)
    plan.add_skippables(*definition.skippables)
    return plan


def load_plan(path: Path, settings: PlanSettings | None = None) -> Plan:
    """Load and build a Plan from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If the file does not describe a plan
    """
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return build_plan(PlanDefinition.model_validate(raw), settings)
