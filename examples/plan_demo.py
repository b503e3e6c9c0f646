#!/usr/bin/env python
"""Standalone demo for the plan tracker.

This demo walks through:
1. Creating a plan and adding steps with acceptance criteria
2. Marking steps complete and finding the next step
3. Reordering and removing steps
4. Listing and compacting plans
5. Driving the same operations through the manage_plan tool

Usage:
    python examples/plan_demo.py
"""

import tempfile
from pathlib import Path

from plan_tracker import PlanManager, PlanSettings
from plan_tracker.context import set_context_plan_manager
from plan_tracker.tools import manage_plan


# =============================================================================
# Demo Functions
# =============================================================================


def demo_basic_plan(manager: PlanManager):
    """Demo plan creation and inspection."""
    print("\n" + "=" * 60)
    print("Basic Plan Demo")
    print("=" * 60)

    plan = manager.create("release")
    plan.add_step("tests", "Write tests", ["unit tests pass", "coverage above 80%"])
    plan.add_step("docs", "Update docs")
    plan.add_step("tag", "Tag the release")
    manager.save(plan)

    print(manager.get("release").inspect())


def demo_progress(manager: PlanManager):
    """Demo status tracking and next-step lookup."""
    print("\n" + "=" * 60)
    print("Progress Demo")
    print("=" * 60)

    plan = manager.get("release")
    plan.mark_as_completed("tests")
    manager.save(plan)

    step = manager.get("release").next_step()
    print(f"  Next step: [{step.id}] {step.description}")
    print()


def demo_reorder(manager: PlanManager):
    """Demo reordering and removing steps."""
    print("\n" + "=" * 60)
    print("Reorder Demo")
    print("=" * 60)

    plan = manager.get("release")
    plan.reorder(plan.complete_order(["tag"]))
    plan.remove_steps(["docs"])
    manager.save(plan)

    print(f"  Steps: {[s.id for s in manager.get('release').steps]}")
    print()


def demo_list_and_compact(manager: PlanManager):
    """Demo listing and compacting plans."""
    print("\n" + "=" * 60)
    print("List and Compact Demo")
    print("=" * 60)

    plan = manager.get("release")
    plan.mark_as_completed("tag")
    manager.save(plan)

    scratch = manager.create("scratch")
    scratch.add_step("idea", "Try something")
    manager.save(scratch)

    for summary in manager.list():
        print(f"  {summary.name}: {summary.status} ({summary.completed_tasks}/{summary.total_tasks})")

    print(f"  Compacted: {manager.compact()}")
    print()


def demo_tool(manager: PlanManager):
    """Demo the manage_plan tool."""
    print("\n" + "=" * 60)
    print("Tool Demo")
    print("=" * 60)

    set_context_plan_manager(manager)
    print(
        manage_plan(
            "scratch",
            "add_steps",
            steps_to_add=[{"id": "review", "description": "Review the idea"}],
        )
    )
    print(manage_plan("scratch", "get_next_step"))
    print(manage_plan("", "list_plans"))
    set_context_plan_manager(None)
    print()


def main():
    """Run all demos."""
    print("\n" + "#" * 60)
    print("#  Plan Tracker Demo")
    print("#" * 60)

    with tempfile.TemporaryDirectory() as workspace:
        settings = PlanSettings(workspace_dir=Path(workspace))
        with PlanManager(settings) as manager:
            demo_basic_plan(manager)
            demo_progress(manager)
            demo_reorder(manager)
            demo_list_and_compact(manager)
            demo_tool(manager)

    print("\n" + "#" * 60)
    print("#  Demo Complete!")
    print("#" * 60 + "\n")


if __name__ == "__main__":
    main()
