"""Shared test fixtures and utilities for plan-tracker tests.

Provides:
- MockContext for isolating tests from global state
- structlog reset after every test
- Temporary workspace fixtures
- Settings and PlanManager fixtures for each storage backend
"""

import os
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest
import structlog

from plan_tracker.config import (
    PlanSettings,
    reload_settings,
    set_context_settings,
    set_settings,
)
from plan_tracker.context import set_context_plan_manager
from plan_tracker.logging import clear_context
from plan_tracker.manager import PlanManager


def _clean_env() -> dict[str, str]:
    """Environment without PLAN_TRACKER_* overrides."""
    return {k: v for k, v in os.environ.items() if not k.startswith("PLAN_TRACKER_")}


class MockContext:
    """Context manager for isolating tests from global state.

    Handles:
    - Resetting global settings singleton
    - Providing a temporary workspace directory
    - Cleaning up after tests

    Usage:
        with MockContext(storage_backend="sqlite") as ctx:
            settings = ctx.settings
            workspace = ctx.workspace_dir
    """

    def __init__(self, **settings_kwargs):
        self._settings_kwargs = settings_kwargs
        self._temp_dir: tempfile.TemporaryDirectory | None = None
        self._settings: PlanSettings | None = None
        self._env_patch = patch.dict(os.environ, _clean_env(), clear=True)

    def __enter__(self) -> "MockContext":
        self._temp_dir = tempfile.TemporaryDirectory()
        self._env_patch.start()
        self._settings = PlanSettings(
            workspace_dir=Path(self._temp_dir.name),
            **self._settings_kwargs,
        )
        set_settings(self._settings)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        set_context_settings(None)
        set_context_plan_manager(None)
        self._env_patch.stop()
        reload_settings()
        if self._temp_dir:
            self._temp_dir.cleanup()

    @property
    def settings(self) -> PlanSettings:
        if self._settings is None:
            raise RuntimeError("MockContext not entered")
        return self._settings

    @property
    def workspace_dir(self) -> Path:
        if self._temp_dir is None:
            raise RuntimeError("MockContext not entered")
        return Path(self._temp_dir.name)


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo structlog configuration made during a test.

    Configuration made by the CLI or a PlanManager must not leak into the
    next test.
    """
    yield
    clear_context()
    structlog.reset_defaults()


@pytest.fixture
def mock_context() -> Generator[MockContext, None, None]:
    """Fixture providing an isolated test context (JSON backend)."""
    with MockContext() as ctx:
        yield ctx


@pytest.fixture(params=["json", "sqlite"])
def backend_context(request) -> Generator[MockContext, None, None]:
    """Fixture providing an isolated test context for each storage backend."""
    with MockContext(storage_backend=request.param) as ctx:
        yield ctx


@pytest.fixture
def manager(backend_context: MockContext) -> Generator[PlanManager, None, None]:
    """Fixture providing a PlanManager for each storage backend."""
    with PlanManager(backend_context.settings) as plan_manager:
        yield plan_manager


@pytest.fixture
def temp_workspace(tmp_path: Path) -> Path:
    """Fixture providing a temporary workspace directory."""
    workspace = tmp_path / "workspace"
    workspace.mkdir(parents=True)
    return workspace


@pytest.fixture
def json_settings(temp_workspace: Path) -> PlanSettings:
    """Fixture providing settings for the JSON file backend."""
    with patch.dict(os.environ, _clean_env(), clear=True):
        return PlanSettings(workspace_dir=temp_workspace, storage_backend="json")


@pytest.fixture
def sqlite_settings(temp_workspace: Path) -> PlanSettings:
    """Fixture providing settings for the SQLite backend."""
    with patch.dict(os.environ, _clean_env(), clear=True):
        return PlanSettings(workspace_dir=temp_workspace, storage_backend="sqlite")
