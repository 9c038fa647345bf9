# src/journeyplan/cli.py
"""journeyplan Command Line Interface.

Inspect and traverse YAML plan definitions without a web layer.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer
import yaml
from pydantic import ValidationError

from journeyplan import __version__
from journeyplan.contracts import ContextFormatError, PlanConfigurationError, RouteName

if TYPE_CHECKING:
    from journeyplan.core.context import JourneyContext
    from journeyplan.core.plan import Plan

__all__ = ["app"]

app = typer.Typer(
    name="journeyplan",
    help="journeyplan: route planning for multi-page journeys.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"journeyplan version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """journeyplan: route planning for multi-page journeys."""
    from journeyplan.core.logging import configure_logging

    # Command output owns stdout
    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO", stream=sys.stderr)

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _fail(message: str) -> typer.Exit:
    typer.echo(message, err=True)
    return typer.Exit(1)


def _load_plan(plan_path: str, settings_path: str | None) -> Plan:
    """Load a plan file, turning every load failure into a CLI error."""
    from journeyplan.core.config import load_settings
    from journeyplan.core.plan import load_plan

    try:
        plan_settings = load_settings(Path(settings_path).expanduser()).plan if settings_path else None
        return load_plan(Path(plan_path).expanduser(), plan_settings)
    except FileNotFoundError as e:
        raise _fail(f"Error: File not found: {e.filename or e}") from None
    except yaml.YAMLError as e:
        raise _fail(f"YAML syntax error: {e}") from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(part) for part in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None
    except (PlanConfigurationError, TypeError) as e:
        raise _fail(f"Plan error: {e}") from None


def _load_context(context_path: str | None) -> JourneyContext:
    """Read a JourneyContext from a YAML or JSON file (JSON parses as YAML)."""
    from journeyplan.core.context import DEFAULT_CONTEXT_ID, JourneyContext

    if context_path is None:
        return JourneyContext(identity={"id": DEFAULT_CONTEXT_ID})

    path = Path(context_path).expanduser()
    try:
        raw: Any = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except FileNotFoundError:
        raise _fail(f"Error: Context file not found: {path}") from None
    except yaml.YAMLError as e:
        raise _fail(f"Context file syntax error: {e}") from None

    if not isinstance(raw, dict):
        raise _fail(f"Context file must hold a mapping, got {type(raw).__name__}")
    try:
        return JourneyContext.from_object(raw)
    except (ContextFormatError, TypeError) as e:
        raise _fail(f"Invalid context: {e}") from None


@app.command()
def routes(
    plan: str = typer.Option(..., "--plan", "-p", help="Path to plan YAML file."),
    settings: str | None = typer.Option(None, "--settings", "-s", help="Path to settings YAML file."),
) -> None:
    """List every route in a plan."""
    loaded = _load_plan(plan, settings)

    for origin in loaded.get_origins():
        typer.echo(f"origin {origin.origin_id}: {origin.waypoint}")
    for route in loaded.get_routes():
        if route.name is RouteName.ORIGIN:
            continue
        label = ""
        if route.label.source_origin or route.label.target_origin:
            label = f"  ({route.label.source_origin or '-'} -> {route.label.target_origin or '-'})"
        typer.echo(f"{route.name.value:<5} {route.source} -> {route.target}{label}")


@app.command()
def traverse(
    plan: str = typer.Option(..., "--plan", "-p", help="Path to plan YAML file."),
    context: str | None = typer.Option(
        None,
        "--context",
        "-c",
        help="Path to a YAML/JSON journey context (data, validation, nav, identity).",
    ),
    start: str | None = typer.Option(None, "--start", help="Waypoint to start from (default: first origin)."),
    prev: bool = typer.Option(False, "--prev", help="Follow prev routes instead of next routes."),
    settings: str | None = typer.Option(None, "--settings", "-s", help="Path to settings YAML file."),
) -> None:
    """Print the waypoints a journey context reaches."""
    loaded = _load_plan(plan, settings)
    journey_context = _load_context(context)

    try:
        if prev:
            followed = loaded.traverse_prev_routes(journey_context, start_waypoint=start)
        else:
            followed = loaded.traverse_next_routes(journey_context, start_waypoint=start)
    except PlanConfigurationError as e:
        raise _fail(f"Plan error: {e}") from None

    for route in followed:
        typer.echo(route.source)


@app.command()
def check(
    plan: str = typer.Option(..., "--plan", "-p", help="Path to plan YAML file."),
    settings: str | None = typer.Option(None, "--settings", "-s", help="Path to settings YAML file."),
) -> None:
    """Report waypoints that no origin can reach."""
    loaded = _load_plan(plan, settings)

    unreachable = loaded.find_unreachable_waypoints()
    if unreachable:
        typer.echo("Unreachable waypoints:", err=True)
        for waypoint in unreachable:
            typer.echo(f"  - {waypoint}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Plan valid: {len(loaded.get_waypoints())} waypoints, {len(loaded.get_routes())} routes")


if __name__ == "__main__":
    app()
