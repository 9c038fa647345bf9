# tests/unit/core/test_config.py
"""Tests for settings models and loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from journeyplan.core.config import JourneySettings, LoggingSettings, PlanSettings, load_settings


class TestJourneySettings:
    def test_defaults(self) -> None:
        settings = JourneySettings()
        assert settings.mount_url == "/"
        assert settings.allow_page_edit is True
        assert settings.use_sticky_edit is False
        assert settings.reduce_errors is False
        assert settings.plan == PlanSettings()
        assert settings.logging == LoggingSettings()

    @pytest.mark.parametrize("mount_url", ["apply/", "/apply", ""])
    def test_mount_url_needs_surrounding_slashes(self, mount_url: str) -> None:
        with pytest.raises(ValidationError, match="mount_url"):
            JourneySettings(mount_url=mount_url)

    def test_settings_are_frozen(self) -> None:
        settings = JourneySettings()
        with pytest.raises(ValidationError):
            settings.mount_url = "/other/"  # type: ignore[misc]

    def test_unknown_arbiter(self) -> None:
        with pytest.raises(ValidationError):
            PlanSettings(arbiter="manual")  # type: ignore[arg-type]

    def test_log_level_is_normalised(self) -> None:
        assert LoggingSettings(level="debug").level == "DEBUG"  # type: ignore[arg-type]


class TestLoadSettings:
    def test_load_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("mount_url: /apply/\nuse_sticky_edit: true\nplan:\n  arbiter: auto\nlogging:\n  level: warning\n")

        settings = load_settings(path)

        assert settings.mount_url == "/apply/"
        assert settings.use_sticky_edit is True
        assert settings.plan.arbiter == "auto"
        assert settings.logging.level == "WARNING"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml")

    def test_environment_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("mount_url: /apply/\n")
        monkeypatch.setenv("JOURNEYPLAN_MOUNT_URL", "/override/")

        assert load_settings(path).mount_url == "/override/"

    def test_env_var_expansion(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("mount_url: '${JOURNEY_MOUNT:-/fallback/}'\n")
        monkeypatch.delenv("JOURNEY_MOUNT", raising=False)

        assert load_settings(path).mount_url == "/fallback/"

    def test_invalid_values(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("mount_url: no-slashes\n")

        with pytest.raises(ValidationError):
            load_settings(path)
