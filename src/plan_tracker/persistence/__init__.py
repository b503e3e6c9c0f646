"""Persistence module for plan records."""

from plan_tracker.persistence.store import (
    JsonFilePlanStore,
    PlanStore,
    SqlitePlanStore,
    create_store,
)

__all__ = [
    "PlanStore",
    "JsonFilePlanStore",
    "SqlitePlanStore",
    "create_store",
]
