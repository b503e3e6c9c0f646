"""plan-tracker - named plans made of ordered TODO/DONE steps.

This package provides:

- Plan/Step models with an in-memory mutation API
- Durable storage (one JSON file per plan, or SQLite)
- PlanManager for create, get, save, list, compact and remove
- A ``manage_plan`` tool function for agents and a ``plan-tracker`` CLI

Example:
    >>> from plan_tracker import PlanManager
    >>> with PlanManager() as manager:
    ...     plan = manager.create("release")
    ...     plan.add_step("tests", "Write tests")
    ...     manager.save(plan)
"""

from plan_tracker.config import (
    PlanSettings,
    SettingsContext,
    get_context_settings,
    get_settings,
    reload_settings,
    set_context_settings,
    set_settings,
)
from plan_tracker.errors import (
    ErrorCode,
    InvalidStateError,
    MalformedRecordError,
    PlanAlreadyExistsError,
    PlanError,
    PlanNotFoundError,
    PlanUnreadableError,
    StepNotFoundError,
    StoreIOError,
)
from plan_tracker.manager import PlanManager
from plan_tracker.models import Plan, PlanSummary, Step, StepStatus
from plan_tracker.persistence import (
    JsonFilePlanStore,
    PlanStore,
    SqlitePlanStore,
    create_store,
)

__version__ = "0.1.0"

__all__ = [
    # Models
    "Plan",
    "PlanSummary",
    "Step",
    "StepStatus",
    # Manager and storage
    "PlanManager",
    "PlanStore",
    "JsonFilePlanStore",
    "SqlitePlanStore",
    "create_store",
    # Settings
    "PlanSettings",
    "SettingsContext",
    "get_settings",
    "set_settings",
    "set_context_settings",
    "get_context_settings",
    "reload_settings",
    # Errors
    "ErrorCode",
    "PlanError",
    "PlanNotFoundError",
    "StepNotFoundError",
    "PlanAlreadyExistsError",
    "MalformedRecordError",
    "InvalidStateError",
    "StoreIOError",
    "PlanUnreadableError",
]
