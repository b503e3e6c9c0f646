"""Tests for configuration module."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from plan_tracker.config import (
    PlanSettings,
    SettingsContext,
    get_context_settings,
    get_settings,
    reload_settings,
    set_context_settings,
    set_settings,
)


class TestPlanSettings:
    """Tests for PlanSettings class."""

    def test_default_values(self, temp_workspace: Path):
        """Test default settings values."""
        with patch.dict(os.environ, {}, clear=True):
            settings = PlanSettings(workspace_dir=temp_workspace)

        assert settings.app_name == "plan_tracker"
        assert settings.storage_backend == "json"
        assert settings.log_level == "warning"
        assert settings.log_format == "console"

    def test_workspace_path_expansion(self):
        """Test that ~ is expanded in workspace_dir."""
        with patch.dict(os.environ, {}, clear=True):
            settings = PlanSettings(workspace_dir="~/test_workspace")

        assert not str(settings.workspace_dir).startswith("~")
        assert settings.workspace_dir == Path.home() / "test_workspace"

    def test_derived_paths(self, temp_workspace: Path):
        """Test derived storage paths."""
        with patch.dict(os.environ, {}, clear=True):
            settings = PlanSettings(workspace_dir=temp_workspace)

        assert settings.plans_dir == temp_workspace / "plans"
        assert settings.plans_db_path == temp_workspace / "plans.db"

    def test_invalid_backend(self, temp_workspace: Path):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValidationError):
                PlanSettings(workspace_dir=temp_workspace, storage_backend="redis")


class TestSettingsSources:
    """Tests for environment and JSON config sources."""

    def test_env_prefix(self, temp_workspace: Path):
        env = {
            "PLAN_TRACKER_STORAGE_BACKEND": "sqlite",
            "PLAN_TRACKER_LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = PlanSettings(workspace_dir=temp_workspace)

        assert settings.storage_backend == "sqlite"
        assert settings.log_level == "debug"

    def test_env_workspace(self, temp_workspace: Path):
        env = {"PLAN_TRACKER_WORKSPACE_DIR": str(temp_workspace)}
        with patch.dict(os.environ, env, clear=True):
            settings = PlanSettings()

        assert settings.workspace_dir == temp_workspace

    def test_constructor_overrides_env(self, temp_workspace: Path):
        with patch.dict(os.environ, {"PLAN_TRACKER_STORAGE_BACKEND": "sqlite"}, clear=True):
            settings = PlanSettings(workspace_dir=temp_workspace, storage_backend="json")

        assert settings.storage_backend == "json"

    def test_project_json_config(self, tmp_path: Path, monkeypatch):
        config_dir = tmp_path / ".plan_tracker"
        config_dir.mkdir()
        (config_dir / "settings.json").write_text(
            json.dumps({"storage_backend": "sqlite", "log_format": "json"})
        )
        monkeypatch.chdir(tmp_path)

        with patch.dict(os.environ, {}, clear=True):
            settings = PlanSettings(workspace_dir=tmp_path)

        assert settings.storage_backend == "sqlite"
        assert settings.log_format == "json"

    def test_env_overrides_project_json(self, tmp_path: Path, monkeypatch):
        config_dir = tmp_path / ".plan_tracker"
        config_dir.mkdir()
        (config_dir / "settings.json").write_text(json.dumps({"log_level": "info"}))
        monkeypatch.chdir(tmp_path)

        with patch.dict(os.environ, {"PLAN_TRACKER_LOG_LEVEL": "error"}, clear=True):
            settings = PlanSettings(workspace_dir=tmp_path)

        assert settings.log_level == "error"


class TestSettingsAccess:
    """Tests for global and context-scoped settings access."""

    def test_set_and_get_settings(self, mock_context):
        assert get_settings() is mock_context.settings

    def test_settings_context(self, mock_context, temp_workspace: Path):
        with patch.dict(os.environ, {}, clear=True):
            scoped = PlanSettings(workspace_dir=temp_workspace, storage_backend="sqlite")

        with SettingsContext(scoped) as s:
            assert s is scoped
            assert get_settings() is scoped
            assert get_context_settings() is scoped

        assert get_settings() is mock_context.settings
        assert get_context_settings() is None

    def test_set_context_settings(self, mock_context, temp_workspace: Path):
        with patch.dict(os.environ, {}, clear=True):
            scoped = PlanSettings(workspace_dir=temp_workspace)

        token = set_context_settings(scoped)
        try:
            assert get_settings() is scoped
        finally:
            set_context_settings(None)

        assert token is not None
        assert get_settings() is mock_context.settings

    def test_reload_settings(self, mock_context, temp_workspace: Path):
        with patch.dict(os.environ, {}, clear=True):
            replacement = PlanSettings(workspace_dir=temp_workspace)
        set_settings(replacement)

        with patch.dict(os.environ, {"PLAN_TRACKER_WORKSPACE_DIR": str(temp_workspace)}):
            fresh = reload_settings()

        assert fresh is not replacement
        assert fresh.workspace_dir == temp_workspace
        assert get_settings() is fresh
