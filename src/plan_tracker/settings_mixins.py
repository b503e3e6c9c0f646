"""Settings mixins for application identity, storage and CLI configuration.

AppSettingsMixin: Application identity and disk layout (app_name, workspace, backend).
CLISettingsMixin: Logging settings.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator


class AppSettingsMixin:
    """Settings for application identity and disk layout.

    Mixin class that provides:
    - Application name and workspace directory
    - Path expansion for workspace_dir
    - Storage backend selection
    - Derived storage paths

    Should be composed with BaseSettings via multiple inheritance.
    """

    app_name: str = Field(
        default="plan_tracker",
        title="App Name",
        description="Application name, used for config file discovery",
    )

    workspace_dir: Path = Field(
        default_factory=lambda: Path.home() / ".plan_tracker",
        title="Workspace Directory",
        description="Directory holding stored plans",
    )

    storage_backend: Literal["json", "sqlite"] = Field(
        default="json",
        title="Storage Backend",
        description="Plan storage medium: one JSON file per plan, or an SQLite database",
    )

    @field_validator("workspace_dir", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        """Expand ~ in paths."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @property
    def plans_dir(self) -> Path:
        """Directory for JSON plan files."""
        return self.workspace_dir / "plans"

    @property
    def plans_db_path(self) -> Path:
        """SQLite database file for the sqlite backend."""
        return self.workspace_dir / "plans.db"


class CLISettingsMixin:
    """Settings for CLI/logging configuration.

    Note: This is a mixin, not a BaseSettings subclass, to avoid
    MRO issues when composed with other settings classes.
    """

    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="warning",
        title="Log Level",
        description="Logging verbosity level",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        title="Log Format",
        description="Log output format (console for dev, json for production)",
    )
