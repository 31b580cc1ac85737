"""Violation and remediation-procedure models.

A violation carries a snapshot of its degree's procedure template
(``ProcedureExecution`` entries). The snapshot is taken when the violation is
created and never changes shape afterwards: steps and tasks keep their
count and order, only their execution state (completed flags, dates, notes)
moves.

Wire payloads are camelCase JSON; attributes are snake_case.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEGREES: tuple[int, ...] = (1, 2, 3, 4)

Degree = Annotated[int, Field(ge=1, le=4)]

# Ordinal names printed on referral and invitation documents.
DEGREE_LABELS: dict[int, str] = {
    1: "First",
    2: "Second",
    3: "Third",
    4: "Fourth",
}


def degree_label(degree: int) -> str:
    """Return the ordinal name of a degree, or the raw number if unknown."""
    return DEGREE_LABELS.get(degree, str(degree))


class WireModel(BaseModel):
    """Base for models exchanged with the behaviour API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ViolationStatus(str, enum.Enum):
    """Lifecycle status of a violation."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


# Labels older server builds still emit instead of the enum values.
_LEGACY_STATUS_LABELS: dict[str, ViolationStatus] = {
    "قيد المعالجة": ViolationStatus.PENDING,
    "جاري التنفيذ": ViolationStatus.IN_PROGRESS,
    "مكتملة": ViolationStatus.COMPLETED,
    "ملغاة": ViolationStatus.CANCELLED,
}


class TaskDefinition(WireModel):
    """A sub-item of a procedure step, independently markable complete."""

    id: int
    title: str
    mandatory: bool = False
    role: Optional[str] = None
    role_label: Optional[str] = None
    action_category: Optional[str] = None
    action_category_label: Optional[str] = None
    action_type: Optional[str] = None
    system_trigger: Optional[str] = None
    system_trigger_label: Optional[str] = None
    notification_template: Optional[str] = None
    points_to_deduct: Optional[int] = None


class TaskExecution(TaskDefinition):
    """A task definition plus its execution state."""

    completed: bool = False
    completed_date: Optional[str] = None


class ProcedureDefinition(WireModel):
    """One remediation step of a degree's procedure template."""

    id: Optional[int] = None
    step: int
    repetition: Optional[int] = None
    title: str
    description: str = ""
    category: Optional[str] = None
    mandatory: bool = False
    tasks: list[TaskDefinition] = Field(default_factory=list)


class ProcedureExecution(ProcedureDefinition):
    """A procedure definition plus its execution state on one violation."""

    completed: bool = False
    completed_date: Optional[str] = None
    notes: Optional[str] = None
    tasks: list[TaskExecution] = Field(default_factory=list)

    def task(self, task_id: int) -> TaskExecution | None:
        """Return the task with the given id, or None."""
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None


@dataclass(frozen=True)
class ProcedureProgress:
    """Completion summary of a violation's procedure checklist."""

    completed: int
    total: int

    @property
    def percent(self) -> int:
        if self.total == 0:
            return 0
        return round(self.completed / self.total * 100)

    def __str__(self) -> str:
        return f"{self.completed} / {self.total}"


class Violation(WireModel):
    """A behavioural violation and its remediation procedure snapshot."""

    id: str
    code: Optional[str] = None
    student_id: str = ""
    student_name: str = ""
    student_number: str = ""
    grade: str = ""
    class_name: str = Field(default="", alias="class")
    degree: Degree
    type: str = ""
    description: str = ""
    location: str = ""
    date: str = ""
    time: Optional[str] = None
    reported_by: str = ""
    reported_by_id: Optional[int] = None
    status: ViolationStatus = ViolationStatus.PENDING
    procedures: list[ProcedureExecution] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("student_id", mode="before")
    @classmethod
    def _coerce_student_id(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _normalise_status(cls, value: object) -> object:
        if isinstance(value, str) and value in _LEGACY_STATUS_LABELS:
            return _LEGACY_STATUS_LABELS[value]
        return value

    @property
    def sort_key(self) -> str:
        """Composite ``date + time`` key; dates are zero-padded ISO strings."""
        return f"{self.date or ''}{self.time or ''}"

    def procedure(self, step: int) -> ProcedureExecution | None:
        """Return the procedure execution for ``step``, or None."""
        for procedure in self.procedures:
            if procedure.step == step:
                return procedure
        return None

    def progress(self) -> ProcedureProgress:
        """Count completed procedure steps."""
        done = sum(1 for procedure in self.procedures if procedure.completed)
        return ProcedureProgress(completed=done, total=len(self.procedures))

    def with_procedure_notes(self, step: int, notes: str | None) -> Violation:
        """Return a copy with the notes of one step replaced.

        The procedure list keeps its length and order; steps other than
        ``step`` are shared with the original.
        """
        procedures = [
            procedure.model_copy(update={"notes": notes})
            if procedure.step == step
            else procedure
            for procedure in self.procedures
        ]
        return self.model_copy(update={"procedures": procedures})


def sort_violations(violations: list[Violation]) -> list[Violation]:
    """Return violations ordered newest first by ``date + time``."""
    return sorted(violations, key=lambda violation: violation.sort_key, reverse=True)


def instantiate_procedures(
    definitions: list[ProcedureDefinition],
) -> list[ProcedureExecution]:
    """Turn a degree's procedure template into a fresh execution checklist.

    Steps come out in ascending order, every step and task incomplete, and
    each step's tasks in definition order.

    Raises:
        ValueError: If two definitions share a step number.
    """
    seen: set[int] = set()
    for definition in definitions:
        if definition.step in seen:
            raise ValueError(f"Duplicate procedure step: {definition.step}")
        seen.add(definition.step)

    executions: list[ProcedureExecution] = []
    for definition in sorted(definitions, key=lambda d: d.step):
        tasks = [
            TaskExecution(
                **task.model_dump(exclude={"completed", "completed_date"}),
                completed=False,
            )
            for task in definition.tasks
        ]
        executions.append(
            ProcedureExecution(
                **definition.model_dump(
                    exclude={"tasks", "completed", "completed_date", "notes"}
                ),
                completed=False,
                tasks=tasks,
            )
        )
    return executions
