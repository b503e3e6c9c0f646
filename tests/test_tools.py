"""Tests for the manage_plan tool."""

from typing import Generator

import pytest

from plan_tracker.context import get_context_plan_manager, set_context_plan_manager
from plan_tracker.manager import PlanManager
from plan_tracker.tools import manage_plan


@pytest.fixture
def tool_manager(manager: PlanManager) -> Generator[PlanManager, None, None]:
    """Make the backend-parametrized manager available to the tool."""
    set_context_plan_manager(manager)
    yield manager
    set_context_plan_manager(None)


def _add(plan_name: str, *step_ids: str) -> dict:
    return manage_plan(
        plan_name,
        "add_steps",
        steps_to_add=[
            {"id": step_id, "description": f"desc-{step_id}"} for step_id in step_ids
        ],
    )


class TestAddSteps:
    def test_creates_missing_plan(self, tool_manager: PlanManager):
        result = manage_plan(
            "release",
            "add_steps",
            steps_to_add=[
                {"id": "a", "description": "desc-a", "acceptance_criteria": ["c1"]},
                {"id": "b", "description": "desc-b"},
            ],
        )

        assert result["success"] is True
        assert result["plan_name"] == "release"
        plan = tool_manager.get("release")
        assert [s.id for s in plan.steps] == ["a", "b"]
        assert plan.get_step("a").acceptance == ["c1"]

    def test_appends_to_existing_plan(self, tool_manager: PlanManager):
        _add("release", "a")
        _add("release", "b")
        assert [s.id for s in tool_manager.get("release").steps] == ["a", "b"]

    def test_duplicate_step_id(self, tool_manager: PlanManager):
        _add("release", "a")
        result = _add("release", "a")
        assert result["success"] is False
        assert result["error"]["code"] == "INVALID_STATE"
        assert len(tool_manager.get("release").steps) == 1

    def test_failed_batch_on_new_plan_can_be_retried(self, tool_manager: PlanManager):
        result = manage_plan(
            "release",
            "add_steps",
            steps_to_add=[
                {"id": "a", "description": "first"},
                {"id": "a", "description": "again"},
            ],
        )
        assert result["success"] is False
        assert result["error"]["code"] == "INVALID_STATE"
        assert tool_manager.store.enumerate() == []

        retry = manage_plan(
            "release", "add_steps", steps_to_add=[{"id": "a", "description": "x"}]
        )

        assert retry["success"] is True
        assert [s.id for s in tool_manager.get("release").steps] == ["a"]

    @pytest.mark.parametrize(
        "steps",
        [
            None,
            [{"description": "no id"}],
            [{"id": "a"}],
            ["not an object"],
            [{"id": "a", "description": "d", "acceptance_criteria": "c1"}],
        ],
    )
    def test_invalid_payload_writes_nothing(self, tool_manager: PlanManager, steps):
        result = manage_plan("release", "add_steps", steps_to_add=steps)
        assert result["success"] is False
        assert result["error"]["code"] == "INVALID_STATE"
        assert tool_manager.store.enumerate() == []


class TestQueries:
    def test_inspect(self, tool_manager: PlanManager):
        _add("release", "a")
        result = manage_plan("release", "inspect")
        assert result == {"success": True, "markdown": "## 1. [TODO] desc-a\n\n"}

    def test_inspect_missing_plan(self, tool_manager: PlanManager):
        result = manage_plan("missing", "inspect")
        assert result["success"] is False
        assert result["error"]["code"] == "NOT_FOUND"

    def test_get_next_step(self, tool_manager: PlanManager):
        manage_plan(
            "release",
            "add_steps",
            steps_to_add=[{"id": "a", "description": "desc-a", "acceptance_criteria": ["c1"]}],
        )
        result = manage_plan("release", "get_next_step")
        assert result == {
            "success": True,
            "next_step": {
                "id": "a",
                "status": "TODO",
                "description": "desc-a",
                "acceptance_criteria": ["c1"],
            },
        }

    def test_get_next_step_when_complete(self, tool_manager: PlanManager):
        _add("release", "a")
        manage_plan("release", "set_status", step_id="a", status="DONE")
        result = manage_plan("release", "get_next_step")
        assert result == {"success": True, "result": "Plan is complete."}

    def test_is_completed(self, tool_manager: PlanManager):
        _add("release", "a")
        assert manage_plan("release", "is_completed") == {
            "success": True,
            "is_completed": False,
        }

    def test_list_plans(self, tool_manager: PlanManager):
        _add("alpha", "a", "b")
        manage_plan("alpha", "set_status", step_id="a", status="done")
        _add("beta", "a")

        result = manage_plan("", "list_plans")

        assert result == {
            "success": True,
            "plans": [
                {"name": "alpha", "status": "TODO", "total_tasks": 2, "completed_tasks": 1},
                {"name": "beta", "status": "TODO", "total_tasks": 1, "completed_tasks": 0},
            ],
        }


class TestMutations:
    def test_set_status(self, tool_manager: PlanManager):
        _add("release", "a")

        result = manage_plan("release", "set_status", step_id="a", status="done")
        assert result["success"] is True
        assert tool_manager.get("release").get_step("a").status == "DONE"

        manage_plan("release", "set_status", step_id="a", status="TODO")
        assert tool_manager.get("release").get_step("a").status == "TODO"

    @pytest.mark.parametrize(
        "step_id,status,code",
        [
            (None, "DONE", "INVALID_STATE"),
            ("a", None, "INVALID_STATE"),
            ("a", "SKIPPED", "INVALID_STATE"),
            ("missing", "DONE", "NOT_FOUND"),
        ],
    )
    def test_set_status_errors(self, tool_manager: PlanManager, step_id, status, code):
        _add("release", "a")
        result = manage_plan("release", "set_status", step_id=step_id, status=status)
        assert result["success"] is False
        assert result["error"]["code"] == code
        assert tool_manager.get("release").get_step("a").status == "TODO"

    def test_remove_steps(self, tool_manager: PlanManager):
        _add("release", "a", "b", "c")
        result = manage_plan("release", "remove_steps", step_ids_to_remove=["b", "x"])
        assert result["removed_count"] == 1
        assert [s.id for s in tool_manager.get("release").steps] == ["a", "c"]

    def test_remove_steps_requires_list(self, tool_manager: PlanManager):
        _add("release", "a")
        result = manage_plan("release", "remove_steps")
        assert result["success"] is False

    def test_reorder_steps_moves_given_ids_first(self, tool_manager: PlanManager):
        _add("release", "a", "b", "c", "d")
        result = manage_plan("release", "reorder_steps", new_step_order=["c", "a"])
        assert result["success"] is True
        assert [s.id for s in tool_manager.get("release").steps] == ["c", "a", "b", "d"]

    def test_reorder_steps_unknown_id(self, tool_manager: PlanManager):
        _add("release", "a", "b")
        result = manage_plan("release", "reorder_steps", new_step_order=["x"])
        assert result["success"] is False
        assert [s.id for s in tool_manager.get("release").steps] == ["a", "b"]

    def test_compact_plans(self, tool_manager: PlanManager):
        _add("done", "a")
        manage_plan("done", "set_status", step_id="a", status="DONE")
        _add("open", "a")

        result = manage_plan("", "compact_plans")

        assert result["success"] is True
        assert result["removed"] == ["done"]
        assert tool_manager.store.enumerate() == ["open"]


class TestArguments:
    def test_plan_name_required(self, tool_manager: PlanManager):
        result = manage_plan("", "inspect")
        assert result["success"] is False
        assert result["error"]["code"] == "INVALID_STATE"

    def test_unknown_action(self, tool_manager: PlanManager):
        _add("release", "a")
        result = manage_plan("release", "explode")  # type: ignore[arg-type]
        assert result["success"] is False
        assert result["error"]["details"] == {"action": "explode"}


class TestManagerResolution:
    def test_without_context_manager_uses_settings(self, mock_context):
        assert get_context_plan_manager() is None

        result = _add("release", "a")

        assert result["success"] is True
        assert (mock_context.settings.plans_dir / "release.json").exists()

    def test_context_manager_is_not_closed(self, tool_manager: PlanManager):
        _add("release", "a")
        # A second call must still reach the same open store
        assert manage_plan("release", "is_completed")["success"] is True
