"""CLI for plan-tracker: create, inspect, update, list and compact plans."""

import argparse
import sys
from pathlib import Path
from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from plan_tracker.config import PlanSettings, get_settings
from plan_tracker.errors import PlanError
from plan_tracker.logging import Loggers, bind_context, clear_context, configure_logging
from plan_tracker.manager import PlanManager
from plan_tracker.models import StepStatus

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)
logger = Loggers.cli()


def _echo(text: str) -> None:
    console.print(text, markup=False, emoji=False)


def cmd_new(manager: PlanManager, args: argparse.Namespace) -> None:
    plan = manager.create(args.plan_name)
    manager.save(plan)
    _echo(f"Plan '{args.plan_name}' created successfully.")


def cmd_inspect(manager: PlanManager, args: argparse.Namespace) -> None:
    plan = manager.get(args.plan_name)
    _echo(plan.inspect())


def cmd_next_step(manager: PlanManager, args: argparse.Namespace) -> None:
    plan = manager.get(args.plan_name)
    step = plan.next_step()
    if step is None:
        _echo("Plan is already complete!")
        return
    _echo(f"Next Step ({step.id}):")
    _echo(f"  Status: {step.status}")
    _echo(f"  Description: {step.description}")
    if step.acceptance:
        _echo("  Acceptance Criteria:")
        for criterion in step.acceptance:
            _echo(f"    - {criterion}")


def cmd_set(manager: PlanManager, args: argparse.Namespace) -> None:
    status = args.status.upper()
    plan = manager.get(args.plan_name)
    if status == StepStatus.DONE.value:
        plan.mark_as_completed(args.step_id)
    else:
        plan.mark_as_incomplete(args.step_id)
    manager.save(plan)
    _echo(f"Step '{args.step_id}' in plan '{args.plan_name}' marked as {status}.")


def cmd_add_step(manager: PlanManager, args: argparse.Namespace) -> None:
    plan = manager.get(args.plan_name)
    plan.add_step(args.step_id, args.description, args.acceptance)
    manager.save(plan)
    _echo(f"Step '{args.step_id}' added to plan '{args.plan_name}'.")


def cmd_list(manager: PlanManager, args: argparse.Namespace) -> None:
    summaries = manager.list()
    if not summaries:
        _echo("No plans found.")
        return
    table = Table(title="Plans", show_lines=False, padding=(0, 1))
    table.add_column("Name", style="bold")
    table.add_column("Status")
    table.add_column("Done", justify="right")
    table.add_column("Total", justify="right")
    for summary in summaries:
        style = "green" if summary.status == StepStatus.DONE.value else "yellow"
        table.add_row(
            escape(summary.name),
            f"[{style}]{summary.status}[/{style}]",
            str(summary.completed_tasks),
            str(summary.total_tasks),
        )
    console.print(table)


def cmd_reorder(manager: PlanManager, args: argparse.Namespace) -> None:
    plan = manager.get(args.plan_name)
    plan.reorder(plan.complete_order(args.step_ids))
    manager.save(plan)
    _echo(f"Steps in plan '{args.plan_name}' reordered successfully.")


def cmd_compact(manager: PlanManager, args: argparse.Namespace) -> None:
    removed = manager.compact()
    _echo(f"Plans compacted successfully. Removed {len(removed)} completed plan(s).")


def cmd_remove(manager: PlanManager, args: argparse.Namespace) -> int:
    failed = False
    for name, error in manager.remove(args.plan_names).items():
        if error is None:
            _echo(f"Plan '{name}' removed successfully.")
        else:
            failed = True
            err_console.print(
                f"Failed to remove plan '{name}': {error.message}", markup=False, emoji=False
            )
    return 1 if failed else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="plan-tracker",
        description="Track named plans made of ordered TODO/DONE steps",
    )
    parser.add_argument("--workspace", type=str, default=None, help="Workspace directory")
    parser.add_argument(
        "--backend",
        choices=["json", "sqlite"],
        default=None,
        help="Storage backend (default from settings)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Logging verbosity",
    )
    subparsers = parser.add_subparsers(dest="command")

    new_parser = subparsers.add_parser("new", help="Create a new, empty plan")
    new_parser.add_argument("plan_name")
    new_parser.set_defaults(func=cmd_new)

    inspect_parser = subparsers.add_parser("inspect", help="Show the plan as markdown")
    inspect_parser.add_argument("plan_name")
    inspect_parser.set_defaults(func=cmd_inspect)

    next_parser = subparsers.add_parser("next-step", help="Show the next incomplete step")
    next_parser.add_argument("plan_name")
    next_parser.set_defaults(func=cmd_next_step)

    set_parser = subparsers.add_parser("set", help="Set a step's status")
    set_parser.add_argument("plan_name")
    set_parser.add_argument("step_id")
    set_parser.add_argument(
        "status",
        type=str.upper,
        choices=[s.value for s in StepStatus],
        help="DONE or TODO",
    )
    set_parser.set_defaults(func=cmd_set)

    add_parser = subparsers.add_parser("add-step", help="Append a step to a plan")
    add_parser.add_argument("plan_name")
    add_parser.add_argument("step_id")
    add_parser.add_argument("description")
    add_parser.add_argument("acceptance", nargs="*", help="Acceptance criteria")
    add_parser.set_defaults(func=cmd_add_step)

    list_parser = subparsers.add_parser("list", help="List all plans")
    list_parser.set_defaults(func=cmd_list)

    reorder_parser = subparsers.add_parser(
        "reorder",
        help="Move the given steps to the front, in order; others follow",
    )
    reorder_parser.add_argument("plan_name")
    reorder_parser.add_argument("step_ids", nargs="+")
    reorder_parser.set_defaults(func=cmd_reorder)

    compact_parser = subparsers.add_parser("compact", help="Remove all completed plans")
    compact_parser.set_defaults(func=cmd_compact)

    remove_parser = subparsers.add_parser("remove", help="Remove plans by name")
    remove_parser.add_argument("plan_names", nargs="+")
    remove_parser.set_defaults(func=cmd_remove)

    return parser


def _settings_from_args(args: argparse.Namespace) -> PlanSettings:
    overrides = {
        key: value
        for key, value in (
            ("workspace_dir", Path(args.workspace).expanduser() if args.workspace else None),
            ("storage_backend", args.backend),
            ("log_level", args.log_level),
        )
        if value is not None
    }
    settings = get_settings()
    if not overrides:
        return settings
    return settings.model_copy(update=overrides)


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    settings = _settings_from_args(args)
    configure_logging(settings)
    bind_context(command=args.command)

    try:
        with PlanManager(settings) as manager:
            exit_code = args.func(manager, args)
    except PlanError as e:
        logger.debug("command_failed", code=e.error_code)
        err_console.print(f"Error: {e.message}", markup=False, emoji=False)
        return 1
    finally:
        clear_context()
    return exit_code or 0


if __name__ == "__main__":
    sys.exit(main())
