"""Plan management tool for agentic workflows.

Exposes a single ``manage_plan`` function that an agent can call with
plain JSON-like arguments. Every call returns a dict with a ``success``
flag; failures carry the error produced by PlanError.to_dict().

The tool uses the PlanManager set with set_context_plan_manager(), or
builds one from get_settings() for the duration of the call.

Example:
    >>> manage_plan("release", "add_steps", steps_to_add=[
    ...     {"id": "tests", "description": "Write tests"},
    ... ])
    {'success': True, 'result': "Added 1 step(s) to plan 'release'.", ...}
"""

from contextlib import contextmanager
from typing import Any, Generator, Literal

from plan_tracker.context import get_context_plan_manager
from plan_tracker.errors import InvalidStateError, PlanError, PlanNotFoundError
from plan_tracker.logging import Loggers
from plan_tracker.manager import PlanManager
from plan_tracker.models import Plan, StepStatus

logger = Loggers.tools()

PlanAction = Literal[
    "inspect",
    "get_next_step",
    "set_status",
    "add_steps",
    "is_completed",
    "list_plans",
    "remove_steps",
    "compact_plans",
    "reorder_steps",
]


@contextmanager
def _plan_manager() -> Generator[PlanManager, None, None]:
    manager = get_context_plan_manager()
    if manager is not None:
        yield manager
        return
    with PlanManager() as manager:
        yield manager


def _string_list(value: Any, argument: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise InvalidStateError(
            f"'{argument}' must be a list of strings", details={"argument": argument}
        )
    return value


def _load_or_create(manager: PlanManager, plan_name: str) -> Plan:
    try:
        return manager.get(plan_name)
    except PlanNotFoundError:
        logger.info("plan_created_for_steps", name=plan_name)
        return manager.create(plan_name)


def _step_payload(step_data: Any, index: int) -> tuple[str, str, list[str]]:
    if not isinstance(step_data, dict):
        raise InvalidStateError(
            f"Step at index {index} must be an object", details={"index": index}
        )
    step_id = step_data.get("id")
    description = step_data.get("description")
    if not isinstance(step_id, str) or not step_id:
        raise InvalidStateError(
            f"Missing 'id' in step at index {index}", details={"index": index}
        )
    if not isinstance(description, str) or not description:
        raise InvalidStateError(
            f"Missing 'description' in step '{step_id}' at index {index}",
            details={"index": index, "step_id": step_id},
        )
    criteria = _string_list(step_data.get("acceptance_criteria", []), "acceptance_criteria")
    return step_id, description, criteria


def _run_action(
    manager: PlanManager,
    plan_name: str,
    action: str,
    step_id: str | None,
    status: str | None,
    steps_to_add: list[dict[str, Any]] | None,
    step_ids_to_remove: list[str] | None,
    new_step_order: list[str] | None,
) -> dict[str, Any]:
    if action == "list_plans":
        return {"success": True, "plans": [s.to_dict() for s in manager.list()]}

    if action == "compact_plans":
        removed = manager.compact()
        return {
            "success": True,
            "removed": removed,
            "result": f"Removed {len(removed)} completed plan(s).",
        }

    if action == "add_steps":
        if steps_to_add is None:
            raise InvalidStateError("'add_steps' requires 'steps_to_add'")
        payloads = [_step_payload(data, i) for i, data in enumerate(steps_to_add)]
        plan = _load_or_create(manager, plan_name)
        try:
            for new_id, description, criteria in payloads:
                plan.add_step(new_id, description, criteria)
            manager.save(plan)
        except PlanError:
            # A plan created above must not keep its name reserved
            manager.discard(plan)
            raise
        return {
            "success": True,
            "result": f"Added {len(payloads)} step(s) to plan '{plan_name}'.",
            "plan_name": plan_name,
        }

    plan = manager.get(plan_name)

    if action == "inspect":
        return {"success": True, "markdown": plan.inspect()}

    if action == "get_next_step":
        step = plan.next_step()
        if step is None:
            return {"success": True, "result": "Plan is complete."}
        return {
            "success": True,
            "next_step": {
                "id": step.id,
                "status": step.status,
                "description": step.description,
                "acceptance_criteria": step.acceptance,
            },
        }

    if action == "is_completed":
        return {"success": True, "is_completed": plan.is_completed()}

    if action == "set_status":
        if not step_id:
            raise InvalidStateError("'set_status' requires 'step_id'")
        normalized = (status or "").upper()
        if normalized == StepStatus.DONE.value:
            plan.mark_as_completed(step_id)
        elif normalized == StepStatus.TODO.value:
            plan.mark_as_incomplete(step_id)
        else:
            raise InvalidStateError(
                "'set_status' requires 'status' (DONE or TODO)",
                details={"status": status},
            )
        manager.save(plan)
        return {
            "success": True,
            "result": f"Step '{step_id}' in plan '{plan_name}' set to '{normalized}'.",
        }

    if action == "remove_steps":
        ids = _string_list(step_ids_to_remove, "step_ids_to_remove")
        removed_count = plan.remove_steps(ids)
        manager.save(plan)
        return {
            "success": True,
            "result": f"Removed {removed_count} step(s) from plan '{plan_name}'.",
            "removed_count": removed_count,
            "plan_name": plan_name,
        }

    if action == "reorder_steps":
        ids = _string_list(new_step_order, "new_step_order")
        plan.reorder(plan.complete_order(ids))
        manager.save(plan)
        return {
            "success": True,
            "result": f"Steps in plan '{plan_name}' reordered successfully.",
            "plan_name": plan_name,
        }

    raise InvalidStateError(f"Unknown action '{action}'", details={"action": action})


def manage_plan(
    plan_name: str,
    action: PlanAction,
    step_id: str | None = None,
    status: str | None = None,
    steps_to_add: list[dict[str, Any]] | None = None,
    step_ids_to_remove: list[str] | None = None,
    new_step_order: list[str] | None = None,
) -> dict[str, Any]:
    """Create, inspect, modify and query plans and their steps.

    Args:
        plan_name: Name of the plan to manage (ignored by list_plans and
            compact_plans).
        action: One of inspect, get_next_step, set_status, add_steps,
            is_completed, list_plans, remove_steps, compact_plans,
            reorder_steps.
        step_id: Step to target (set_status).
        status: "DONE" or "TODO" (set_status).
        steps_to_add: Steps to append, each with "id", "description" and
            optional "acceptance_criteria" (add_steps). The plan is created
            if it does not exist.
        step_ids_to_remove: Step ids to remove (remove_steps).
        new_step_order: Step ids to move to the front, in order; other
            steps follow in their current order (reorder_steps).

    Returns:
        A dict with ``success`` and the action's result.
    """
    if action not in ("list_plans", "compact_plans") and not plan_name:
        return InvalidStateError("'plan_name' is required").to_dict()

    try:
        with _plan_manager() as manager:
            return _run_action(
                manager,
                plan_name,
                action,
                step_id,
                status,
                steps_to_add,
                step_ids_to_remove,
                new_step_order,
            )
    except PlanError as e:
        logger.info("manage_plan_failed", action=action, name=plan_name, code=e.error_code)
        return e.to_dict()
