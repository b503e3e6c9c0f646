"""Plan and step models.

A Plan is a named, ordered list of Steps. Each step carries a short id,
a description, a TODO/DONE status and an ordered list of acceptance
criteria. Plans are mutated in memory through the methods below and
become durable only when saved through a PlanManager.

Example:
    >>> plan = Plan("release")
    >>> plan.add_step("tests", "Write tests", ["coverage above 80%"])
    >>> plan.add_step("docs", "Update docs")
    >>> plan.mark_as_completed("tests")
    >>> plan.next_step().id
    'docs'
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, Field, ValidationError

from plan_tracker.errors import (
    InvalidStateError,
    MalformedRecordError,
    StepNotFoundError,
)


class StepStatus(str, Enum):
    """Canonical step statuses."""

    TODO = "TODO"
    DONE = "DONE"


def is_done(status: str) -> bool:
    """Check a raw status value for completion (case-insensitive)."""
    return status.upper() == StepStatus.DONE.value


# ---------------------------------------------------------------------------
# Record schema: the persisted shape of a plan
# ---------------------------------------------------------------------------


class StepRecord(BaseModel):
    """Persisted form of a step."""

    id: str
    description: str = ""
    status: str = StepStatus.TODO.value
    acceptance: list[str] = Field(default_factory=list)


class PlanRecord(BaseModel):
    """Persisted form of a plan."""

    id: str
    steps: list[StepRecord] = Field(default_factory=list)


class Step:
    """A single step of a plan.

    The id is fixed at creation. Status is kept exactly as stored and
    exposed upper-cased through ``status``.
    """

    def __init__(
        self,
        id: str,
        description: str = "",
        status: str = StepStatus.TODO.value,
        acceptance: Iterable[str] | None = None,
    ) -> None:
        self._id = id
        self._description = description
        self._status = status
        self._acceptance = list(acceptance or [])

    @property
    def id(self) -> str:
        return self._id

    @property
    def description(self) -> str:
        return self._description

    @property
    def status(self) -> str:
        """Upper-cased status ("TODO" or "DONE" for well-formed data)."""
        return self._status.upper()

    @property
    def raw_status(self) -> str:
        """Status exactly as stored."""
        return self._status

    @property
    def acceptance(self) -> list[str]:
        return list(self._acceptance)

    def is_done(self) -> bool:
        return is_done(self._status)

    def _set_status(self, status: StepStatus) -> None:
        self._status = status.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self._id,
            "description": self._description,
            "status": self._status,
            "acceptance": list(self._acceptance),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Step":
        return cls(
            id=data["id"],
            description=data.get("description", ""),
            status=data.get("status", StepStatus.TODO.value),
            acceptance=data.get("acceptance", []),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Step):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Step(id={self._id!r}, status={self._status!r})"


@dataclass(frozen=True)
class PlanSummary:
    """Summary line for a stored plan, as produced by PlanManager.list()."""

    name: str
    status: str
    total_tasks: int
    completed_tasks: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "total_tasks": self.total_tasks,
            "completed_tasks": self.completed_tasks,
        }


class Plan:
    """An ordered collection of steps.

    ``name`` is the storage key. It is assigned once, by the PlanManager
    that created or loaded the plan, and a plan without a name cannot be
    saved.
    """

    def __init__(self, id: str, steps: Iterable[Step] | None = None) -> None:
        self.id = id
        self._name = ""
        self._steps: list[Step] = []
        for step in steps or []:
            self._append(step)

    @property
    def name(self) -> str:
        return self._name

    @property
    def steps(self) -> tuple[Step, ...]:
        return tuple(self._steps)

    def _assign_name(self, name: str) -> None:
        if self._name:
            raise InvalidStateError(
                f"Plan '{self.id}' is already bound to name '{self._name}'",
                details={"plan_id": self.id, "name": self._name},
            )
        self._name = name

    def _append(self, step: Step) -> None:
        if self.get_step(step.id) is not None:
            raise InvalidStateError(
                f"Step '{step.id}' already exists in plan '{self.id}'",
                details={"plan_id": self.id, "step_id": step.id},
            )
        self._steps.append(step)

    def _require_step(self, step_id: str) -> Step:
        step = self.get_step(step_id)
        if step is None:
            raise StepNotFoundError(
                f"Step '{step_id}' not found in plan '{self.id}'",
                details={"plan_id": self.id, "step_id": step_id},
            )
        return step

    # -- mutation ----------------------------------------------------------

    def add_step(
        self,
        id: str,
        description: str = "",
        acceptance: Iterable[str] | None = None,
    ) -> Step:
        """Append a new TODO step.

        Args:
            id: Step identifier, unique within the plan.
            description: What needs to be done.
            acceptance: Ordered acceptance criteria.

        Returns:
            The new step.

        Raises:
            InvalidStateError: If a step with this id already exists.
        """
        step = Step(id, description, StepStatus.TODO.value, acceptance)
        self._append(step)
        return step

    def remove_steps(self, step_ids: Iterable[str]) -> int:
        """Remove every step whose id is in ``step_ids``.

        Unknown ids are ignored. Remaining steps keep their relative order.

        Returns:
            Number of steps removed.
        """
        to_remove = set(step_ids)
        if not to_remove:
            return 0
        kept = [step for step in self._steps if step.id not in to_remove]
        removed = len(self._steps) - len(kept)
        self._steps = kept
        return removed

    def reorder(self, step_ids: Iterable[str]) -> None:
        """Replace the step order.

        Args:
            step_ids: A permutation of the plan's current step ids.

        Raises:
            InvalidStateError: If ``step_ids`` repeats, omits or adds ids.
                The plan is left unchanged.
        """
        order = list(step_ids)
        current = [step.id for step in self._steps]
        if len(order) != len(current) or set(order) != set(current):
            missing = sorted(set(current) - set(order))
            unknown = sorted(set(order) - set(current))
            raise InvalidStateError(
                f"New order for plan '{self.id}' is not a permutation of its steps",
                details={
                    "plan_id": self.id,
                    "missing": missing,
                    "unknown": unknown,
                },
            )
        by_id = {step.id: step for step in self._steps}
        self._steps = [by_id[step_id] for step_id in order]

    def complete_order(self, step_ids: Iterable[str]) -> list[str]:
        """Expand a partial order into a full permutation.

        The given ids come first, in the given order; all other steps
        follow in their current relative order. Repeated ids are placed once.

        Raises:
            InvalidStateError: If an id is not part of the plan.
        """
        current = [step.id for step in self._steps]
        order: list[str] = []
        for step_id in step_ids:
            if step_id not in current:
                raise InvalidStateError(
                    f"Step '{step_id}' is not part of plan '{self.id}'",
                    details={"plan_id": self.id, "step_id": step_id},
                )
            if step_id not in order:
                order.append(step_id)
        order.extend(step_id for step_id in current if step_id not in order)
        return order

    def mark_as_completed(self, step_id: str) -> None:
        """Set a step's status to DONE.

        Raises:
            StepNotFoundError: If no step has this id.
        """
        self._require_step(step_id)._set_status(StepStatus.DONE)

    def mark_as_incomplete(self, step_id: str) -> None:
        """Set a step's status to TODO.

        Raises:
            StepNotFoundError: If no step has this id.
        """
        self._require_step(step_id)._set_status(StepStatus.TODO)

    # -- queries -----------------------------------------------------------

    def get_step(self, step_id: str) -> Step | None:
        for step in self._steps:
            if step.id == step_id:
                return step
        return None

    def next_step(self) -> Step | None:
        """Return the first step that is not DONE, or None."""
        for step in self._steps:
            if not step.is_done():
                return step
        return None

    def is_completed(self) -> bool:
        """True when every step is DONE (and for a plan with no steps)."""
        return self.next_step() is None

    def summary(self) -> PlanSummary:
        completed = sum(1 for step in self._steps if step.is_done())
        return PlanSummary(
            name=self._name or self.id,
            status=StepStatus.DONE.value if self.is_completed() else StepStatus.TODO.value,
            total_tasks=len(self._steps),
            completed_tasks=completed,
        )

    def inspect(self) -> str:
        """Render the plan as markdown.

        Each step gets a ``## N. [STATUS] title`` heading, where the title
        is the description or, when that is empty, the step id. Acceptance
        criteria follow as a numbered list.
        """
        lines: list[str] = []
        for position, step in enumerate(self._steps, start=1):
            title = step.description or step.id
            lines.append(f"## {position}. [{step.status}] {title}")
            lines.append("")
            if step.acceptance:
                lines.append("Acceptance Criteria:")
                for number, criterion in enumerate(step.acceptance, start=1):
                    lines.append(f"{number}. {criterion}")
                lines.append("")
        return "\n".join(lines) + ("\n" if lines else "")

    # -- serialization -----------------------------------------------------

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "steps": [step.to_dict() for step in self._steps],
        }

    @classmethod
    def from_record(cls, record: Any) -> "Plan":
        """Build a plan from a stored record.

        Raises:
            MalformedRecordError: If the record does not fit the schema
                or repeats a step id.
        """
        try:
            parsed = PlanRecord.model_validate(record)
        except ValidationError as e:
            raise MalformedRecordError(
                f"Plan record does not match schema: {e.error_count()} error(s)",
                details={"errors": e.errors(include_url=False)},
            ) from e
        try:
            return cls(
                parsed.id,
                [Step.from_dict(step.model_dump()) for step in parsed.steps],
            )
        except InvalidStateError as e:
            raise MalformedRecordError(
                f"Plan record '{parsed.id}' is inconsistent: {e.message}",
                details=e.details,
            ) from e

    def __repr__(self) -> str:
        return f"Plan(id={self.id!r}, name={self._name!r}, steps={len(self._steps)})"
