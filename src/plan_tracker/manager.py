"""Plan manager: the bridge between in-memory plans and the store.

Example:
    >>> with PlanManager(settings) as manager:
    ...     plan = manager.create("release")
    ...     plan.add_step("tests", "Write tests", ["coverage above 80%"])
    ...     manager.save(plan)
    ...     manager.get("release").next_step().id
    'tests'
"""

from __future__ import annotations

from plan_tracker.config import PlanSettings, get_settings
from plan_tracker.errors import (
    InvalidStateError,
    PlanAlreadyExistsError,
    PlanError,
)
from plan_tracker.logging import Loggers, ensure_logging_configured
from plan_tracker.models import Plan, PlanSummary
from plan_tracker.persistence.store import PlanStore, create_store

logger = Loggers.manager()


class PlanManager:
    """Creates, loads, saves, lists and compacts plans.

    The manager owns the store for its lifetime; call close() (or use it
    as a context manager) to release it.
    """

    def __init__(
        self,
        settings: PlanSettings | None = None,
        store: PlanStore | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        ensure_logging_configured(self._settings)
        self._store = store if store is not None else create_store(self._settings)
        # Names handed out by create() that have not been saved yet
        self._pending: set[str] = set()

    @property
    def store(self) -> PlanStore:
        return self._store

    def __enter__(self) -> "PlanManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def create(self, name: str) -> Plan:
        """Create a new, empty, unsaved plan.

        Raises:
            InvalidStateError: If ``name`` is empty.
            PlanAlreadyExistsError: If a plan is stored under ``name``, or
                this manager already created it and it is not saved yet.
        """
        if not name:
            raise InvalidStateError("Plan name cannot be empty")
        if name in self._pending or self._store.exists(name):
            raise PlanAlreadyExistsError(
                f"Plan with name '{name}' already exists", details={"name": name}
            )
        plan = Plan(name)
        plan._assign_name(name)
        self._pending.add(name)
        logger.debug("plan_created", name=name)
        return plan

    def get(self, name: str) -> Plan:
        """Load a stored plan.

        Raises:
            PlanNotFoundError: If nothing is stored under ``name``.
            MalformedRecordError: If the stored record is not a valid plan.
        """
        record = self._store.read(name)
        plan = Plan.from_record(record)
        plan._assign_name(name)
        logger.debug("plan_loaded", name=name, steps=len(plan.steps))
        return plan

    def save(self, plan: Plan) -> None:
        """Replace the stored record for ``plan.name`` with the plan's state.

        Raises:
            InvalidStateError: If the plan has no name or repeats a step id.
            StoreIOError: If the store fails to write.
        """
        if not plan.name:
            raise InvalidStateError(
                f"Plan '{plan.id}' has no name and cannot be saved",
                details={"plan_id": plan.id},
            )
        step_ids = [step.id for step in plan.steps]
        if len(step_ids) != len(set(step_ids)):
            raise InvalidStateError(
                f"Plan '{plan.name}' contains duplicate step ids",
                details={"name": plan.name},
            )
        self._store.write(plan.name, plan.to_record())
        self._pending.discard(plan.name)
        logger.info("plan_saved", name=plan.name, steps=len(step_ids))

    def discard(self, plan: Plan) -> None:
        """Drop an unsaved plan from create() so its name can be created again.

        Has no effect on stored plans.
        """
        if plan.name in self._pending:
            self._pending.discard(plan.name)
            logger.debug("plan_discarded", name=plan.name)

    def list(self) -> list[PlanSummary]:
        """Summarize every stored plan.

        Plans that fail to load are logged and skipped.

        Raises:
            StoreIOError: If the store cannot be enumerated.
        """
        summaries: list[PlanSummary] = []
        for name in self._store.enumerate():
            try:
                plan = self.get(name)
            except PlanError as e:
                logger.warning("plan_skipped", name=name, error=e.message, code=e.error_code)
                continue
            summaries.append(plan.summary())
        return summaries

    def compact(self) -> list[str]:
        """Delete every stored plan whose steps are all DONE.

        Per-plan load and delete failures are logged and skipped.

        Returns:
            Names of the removed plans.

        Raises:
            StoreIOError: If the store cannot be enumerated.
        """
        removed: list[str] = []
        for name in self._store.enumerate():
            try:
                plan = self.get(name)
            except PlanError as e:
                logger.warning("plan_skipped", name=name, error=e.message, code=e.error_code)
                continue
            if not plan.is_completed():
                continue
            try:
                self._store.delete(name)
            except PlanError as e:
                logger.warning(
                    "plan_delete_failed", name=name, error=e.message, code=e.error_code
                )
                continue
            removed.append(name)
        logger.info("plans_compacted", removed=len(removed))
        return removed

    def remove(self, names: list[str]) -> dict[str, PlanError | None]:
        """Delete the named plans regardless of completion.

        Returns:
            Mapping of each name to None on success, or the error raised
            while deleting it.
        """
        results: dict[str, PlanError | None] = {}
        for name in names:
            try:
                self._store.delete(name)
            except PlanError as e:
                results[name] = e
                continue
            self._pending.discard(name)
            results[name] = None
            logger.info("plan_deleted", name=name)
        return results

    def close(self) -> None:
        """Release the store."""
        self._store.close()
        logger.debug("plan_manager_closed")
