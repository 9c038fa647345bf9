# src/journeyplan/core/config.py
"""
Configuration schema and loading for journeyplan.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class PlanSettings(BaseModel):
    """Options applied to every Plan built from settings.

    Example YAML:
        plan:
          validate_before_route_condition: true
          arbiter: auto
    """

    model_config = {"frozen": True}

    validate_before_route_condition: bool = Field(
        default=False,
        description="AND custom route conditions with the default page-validity check",
    )
    arbiter: Literal["auto"] | None = Field(
        default=None,
        description="How ambiguous prev routes are resolved (None stops traversal)",
    )


class LoggingSettings(BaseModel):
    """Logging output configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    json_output: bool = Field(default=False, description="Emit JSON lines instead of console output")

    @field_validator("level", mode="before")
    @classmethod
    def normalise_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


class JourneySettings(BaseModel):
    """Top-level journeyplan configuration.

    Example YAML:
        mount_url: /apply/
        use_sticky_edit: true
        plan:
          arbiter: auto
        logging:
          level: DEBUG
    """

    model_config = {"frozen": True}

    mount_url: str = Field(default="/", description="URL prefix the journey is mounted on")
    allow_page_edit: bool = Field(default=True, description="Honour edit mode request parameters")
    use_sticky_edit: bool = Field(
        default=False,
        description="Carry edit mode parameters onto the waypoint reached after an edit",
    )
    reduce_errors: bool = Field(default=False, description="Keep only the first error per field")
    plan: PlanSettings = Field(default_factory=PlanSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("mount_url")
    @classmethod
    def validate_mount_url(cls, v: str) -> str:
        if not v.startswith("/") or not v.endswith("/"):
            raise ValueError(f"mount_url must begin and end with '/', got {v!r}")
        return v


# Regex pattern for ${VAR} or ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values.

    Args:
        config: Configuration dict (may contain nested structures)

    Returns:
        New dict with environment variables expanded
    """
    import os

    def _expand_string(value: str) -> str:
        def replacer(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            default = match.group(2)
            if default is not None:
                return default
            return match.group(0)

        return _ENV_VAR_PATTERN.sub(replacer, value)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _expand_string(value)
        elif isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_expand_value(item) for item in value]
        else:
            return value

    return {k: _expand_value(v) for k, v in config.items()}


def _lower_keys(value: Any) -> Any:
    # Dynaconf upper-cases keys at every nesting level it merged from env vars
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value


def load_settings(config_path: Path) -> JourneySettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (JOURNEYPLAN_*) - highest priority
    2. Config file (settings.yaml)
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: JOURNEYPLAN_PLAN__ARBITER for nested keys.

    Raises:
        pydantic.ValidationError: If configuration fails validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="JOURNEYPLAN",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): _lower_keys(v) for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config = _expand_env_vars(raw_config)

    return JourneySettings(**raw_config)
