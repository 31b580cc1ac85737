"""Shared test fixtures for Conduct.

Provides an in-memory BehaviorTransport that behaves like the server
(toggles flip state, creates instantiate the degree template) and lets a
test hold or fail individual calls.
"""

from __future__ import annotations

import asyncio
import itertools

import pytest

from conduct.api.errors import ApiHTTPError
from conduct.models.catalog import DegreeConfig, ProcedureConfig, ViolationTypeConfig
from conduct.models.config import ConductConfig
from conduct.models.requests import (
    AutomationResult,
    CreateViolationsPayload,
    ViolationFilters,
)
from conduct.models.roster import Reporter, Student
from conduct.models.violation import (
    ProcedureDefinition,
    TaskDefinition,
    Violation,
    ViolationStatus,
    instantiate_procedures,
)


# ------------------------------------------------------------------
# Catalog fixtures
# ------------------------------------------------------------------

def degree_template(degree: int) -> list[ProcedureDefinition]:
    """A small procedure template; degree N has N + 1 steps."""
    steps = []
    for step in range(1, degree + 2):
        steps.append(
            ProcedureDefinition(
                id=degree * 100 + step,
                step=step,
                title=f"Degree {degree} step {step}",
                mandatory=step == 1,
                tasks=[
                    TaskDefinition(
                        id=step * 10 + 1,
                        title="Call the guardian",
                        role="vice_principal",
                        system_trigger="trigger_parent_call",
                    ),
                    TaskDefinition(
                        id=step * 10 + 2,
                        title="Deduct behaviour points",
                        system_trigger="deduct_score_3",
                        points_to_deduct=3,
                    ),
                    TaskDefinition(id=step * 10 + 3, title="Refer to counselor"),
                ],
            )
        )
    # Deliberately out of order; instantiation sorts by step.
    return list(reversed(steps))


def degree_types(degree: int) -> list[ViolationTypeConfig]:
    return [
        ViolationTypeConfig(id=degree * 10 + 1, name=f"Type {degree}.1"),
        ViolationTypeConfig(id=degree * 10 + 2, name=f"Type {degree}.2", has_repetition=True, max_repetitions=3),
    ]


# ------------------------------------------------------------------
# In-memory transport
# ------------------------------------------------------------------

class FakeTransport:
    """In-memory BehaviorTransport.

    ``calls`` records every call as ``(method, *args)``. ``hold(name, *args)``
    returns an event the matching call waits on before answering;
    ``fail(name, exc)`` makes every call to ``name`` raise ``exc``.
    """

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.server: dict[str, Violation] = {}
        self.students = [
            Student(id="1", name="S1", student_id="1001", grade="Grade 3", class_name="A"),
            Student(id="2", name="S2", student_id="1002", grade="Grade 3", class_name="B"),
        ]
        self.reporters = [Reporter(id=7, name="Ms. Noura")]
        self.templates = {degree: degree_template(degree) for degree in (1, 2, 3, 4)}
        self.types = {degree: degree_types(degree) for degree in (1, 2, 3, 4)}
        self.roles = {"vice_principal": "Vice principal"}
        self.action_categories = {"communication": "Communication"}
        self.system_triggers = {"trigger_parent_call": "Call the guardian"}
        self.notification_templates = {"guardian_call": "Dear guardian ..."}
        self.automation_result = AutomationResult(success=True, message="done")
        self._holds: dict[tuple, asyncio.Event] = {}
        self._failures: dict[str, BaseException] = {}
        self._ids = itertools.count(1)

    # -- test controls --------------------------------------------------

    def hold(self, name: str, *args: object) -> asyncio.Event:
        event = asyncio.Event()
        self._holds[(name, *args)] = event
        return event

    def fail(self, name: str, exc: BaseException) -> None:
        self._failures[name] = exc

    def recover(self, name: str) -> None:
        self._failures.pop(name, None)

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def seed(self, *violations: Violation) -> None:
        for violation in violations:
            self.server[violation.id] = violation

    async def _enter(self, name: str, *args: object) -> None:
        self.calls.append((name, *args))
        event = self._holds.get((name, *args)) or self._holds.get((name,))
        if event is not None:
            await event.wait()
        else:
            await asyncio.sleep(0)
        if name in self._failures:
            raise self._failures[name]

    def _get(self, violation_id: str) -> Violation:
        try:
            return self.server[violation_id]
        except KeyError:
            raise ApiHTTPError(
                "HTTP 404 - Violation not found",
                server_message="Violation not found",
                status_code=404,
            ) from None

    @staticmethod
    def _settle(violation: Violation) -> Violation:
        done = [p.completed for p in violation.procedures]
        if done and all(done):
            status = ViolationStatus.COMPLETED
        elif any(done):
            status = ViolationStatus.IN_PROGRESS
        else:
            status = ViolationStatus.PENDING
        return violation.model_copy(update={"status": status})

    def _store(self, violation: Violation) -> Violation:
        violation = self._settle(violation)
        self.server[violation.id] = violation
        return violation.model_copy(deep=True)

    @staticmethod
    def _flip_step(violation: Violation, step: int) -> Violation:
        procedures = [
            p.model_copy(update={"completed": not p.completed}) if p.step == step else p
            for p in violation.procedures
        ]
        return violation.model_copy(update={"procedures": procedures})

    # -- roster and violations ------------------------------------------

    async def fetch_students(self, search=None):
        await self._enter("fetch_students", search)
        return list(self.students)

    async def fetch_reporters(self):
        await self._enter("fetch_reporters")
        return list(self.reporters)

    async def fetch_violations(self, filters: ViolationFilters | None = None):
        await self._enter("fetch_violations", filters.cache_key() if filters else "")
        result = list(self.server.values())
        if filters and filters.status:
            result = [v for v in result if v.status == filters.status]
        if filters and filters.degree:
            result = [v for v in result if v.degree == filters.degree]
        return [v.model_copy(deep=True) for v in result]

    async def fetch_violation(self, violation_id):
        await self._enter("fetch_violation", violation_id)
        return self._get(violation_id).model_copy(deep=True)

    async def create_violations(self, payload: CreateViolationsPayload):
        await self._enter("create_violations", tuple(payload.student_ids))
        by_id = {int(s.id): s for s in self.students}
        created = []
        for student_id in payload.student_ids:
            student = by_id[student_id]
            violation = Violation(
                id=f"v{next(self._ids)}-{student.student_id}",
                student_id=student.id,
                student_name=student.name,
                student_number=student.student_id,
                grade=student.grade,
                class_name=student.class_name,
                degree=payload.degree,
                type=payload.type,
                description=payload.description or "",
                location=payload.location or "",
                date=payload.date,
                time=payload.time,
                reported_by=payload.reported_by_name or "",
                reported_by_id=payload.reported_by_id,
                procedures=instantiate_procedures(self.templates[payload.degree]),
            )
            created.append(self._store(violation))
        return created

    async def delete_violation(self, violation_id):
        await self._enter("delete_violation", violation_id)
        self._get(violation_id)
        del self.server[violation_id]

    async def toggle_procedure(self, violation_id, step):
        await self._enter("toggle_procedure", violation_id, step)
        return self._store(self._flip_step(self._get(violation_id), step))

    async def toggle_procedure_task(self, violation_id, step, task_id):
        await self._enter("toggle_procedure_task", violation_id, step, task_id)
        violation = self._get(violation_id)
        procedures = []
        for procedure in violation.procedures:
            if procedure.step == step:
                tasks = [
                    t.model_copy(update={"completed": not t.completed}) if t.id == task_id else t
                    for t in procedure.tasks
                ]
                procedure = procedure.model_copy(update={"tasks": tasks})
            procedures.append(procedure)
        return self._store(violation.model_copy(update={"procedures": procedures}))

    async def update_procedure_notes(self, violation_id, step, notes):
        await self._enter("update_procedure_notes", violation_id, step, notes)
        violation = self._get(violation_id)
        return self._store(violation.with_procedure_notes(step, notes))

    async def execute_automation(self, violation_id, step, task_id, system_trigger):
        await self._enter("execute_automation", violation_id, step, task_id, system_trigger)
        return self.automation_result

    async def execute_all_task_automations(self, violation_id, step, task_id):
        await self._enter("execute_all_task_automations", violation_id, step, task_id)
        task = self._get(violation_id).procedure(step).task(task_id)
        return [self.automation_result] if task.system_trigger else []

    # -- catalogs ---------------------------------------------------------

    async def fetch_roles(self):
        await self._enter("fetch_roles")
        return dict(self.roles)

    async def fetch_action_categories(self):
        await self._enter("fetch_action_categories")
        return dict(self.action_categories)

    async def fetch_system_triggers(self):
        await self._enter("fetch_system_triggers")
        return dict(self.system_triggers)

    async def fetch_notification_templates(self):
        await self._enter("fetch_notification_templates")
        return dict(self.notification_templates)

    async def fetch_violation_types(self, stage=None, degree=None):
        await self._enter("fetch_violation_types", stage, degree)
        degrees = [degree] if degree else sorted(self.types)
        return [
            DegreeConfig(degree=d, degree_name=f"Degree {d}", violations=self.types[d])
            for d in degrees
        ]

    async def fetch_procedures(self, stage=None, degree=None, repetition=None):
        await self._enter("fetch_procedures", stage, degree)
        degrees = [degree] if degree else sorted(self.templates)
        return [
            ProcedureConfig(degree=d, degree_name=f"Degree {d}", procedures=self.templates[d])
            for d in degrees
        ]

    async def fetch_procedures_for_violation(self, degree, repetition, stage=None):
        await self._enter("fetch_procedures_for_violation", degree, repetition, stage)
        for definition in self.templates[degree]:
            if definition.step == repetition:
                return definition
        raise ApiHTTPError("HTTP 404 - not found", status_code=404)


def make_violation(
    violation_id: str = "v1-1001",
    *,
    degree: int = 2,
    date: str = "2024-01-02",
    time: str | None = "08:00",
    student_id: str = "1",
    student_name: str = "S1",
    **overrides: object,
) -> Violation:
    """A violation with a fresh checklist for ``degree``."""
    values: dict[str, object] = dict(
        id=violation_id,
        student_id=student_id,
        student_name=student_name,
        student_number="1001",
        grade="Grade 3",
        class_name="A",
        degree=degree,
        type="Late to class",
        description="Arrived 20 minutes late",
        location="Main gate",
        date=date,
        time=time,
        reported_by="Ms. Noura",
        reported_by_id=7,
        procedures=instantiate_procedures(degree_template(degree)),
    )
    values.update(overrides)
    return Violation(**values)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def config() -> ConductConfig:
    """Config with a short debounce so timer tests stay fast."""
    return ConductConfig(notes_debounce_seconds=0.05)
