"""Transport protocol consumed by the stores.

Defines the pluggable interface between the violation repository / catalog
cache and whatever carries requests to the server. The built-in
BehaviorApiClient implements it over HTTP; tests use in-memory fakes.

Every method either returns the unwrapped ``data`` of a successful envelope
or raises an ApiClientError. Mutations return the full updated violation.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from conduct.models.catalog import DegreeConfig, ProcedureConfig
from conduct.models.requests import (
    AutomationResult,
    CreateViolationsPayload,
    ViolationFilters,
)
from conduct.models.roster import Reporter, Student
from conduct.models.violation import ProcedureDefinition, Violation


@runtime_checkable
class BehaviorTransport(Protocol):
    """Protocol for behaviour API transports."""

    async def fetch_students(self, search: str | None = None) -> list[Student]:
        ...

    async def fetch_reporters(self) -> list[Reporter]:
        ...

    async def fetch_violations(
        self, filters: ViolationFilters | None = None
    ) -> list[Violation]:
        ...

    async def fetch_violation(self, violation_id: str) -> Violation:
        ...

    async def create_violations(
        self, payload: CreateViolationsPayload
    ) -> list[Violation]:
        ...

    async def delete_violation(self, violation_id: str) -> None:
        ...

    async def toggle_procedure(self, violation_id: str, step: int) -> Violation:
        ...

    async def toggle_procedure_task(
        self, violation_id: str, step: int, task_id: int
    ) -> Violation:
        ...

    async def update_procedure_notes(
        self, violation_id: str, step: int, notes: str
    ) -> Violation:
        ...

    async def execute_automation(
        self, violation_id: str, step: int, task_id: int, system_trigger: str
    ) -> AutomationResult:
        ...

    async def execute_all_task_automations(
        self, violation_id: str, step: int, task_id: int
    ) -> list[AutomationResult]:
        ...

    async def fetch_roles(self) -> dict[str, str]:
        ...

    async def fetch_action_categories(self) -> dict[str, str]:
        ...

    async def fetch_system_triggers(self) -> dict[str, str]:
        ...

    async def fetch_notification_templates(self) -> dict[str, str]:
        ...

    async def fetch_violation_types(
        self, stage: str | None = None, degree: int | None = None
    ) -> list[DegreeConfig]:
        ...

    async def fetch_procedures(
        self,
        stage: str | None = None,
        degree: int | None = None,
        repetition: int | None = None,
    ) -> list[ProcedureConfig]:
        ...

    async def fetch_procedures_for_violation(
        self, degree: int, repetition: int, stage: str | None = None
    ) -> ProcedureDefinition:
        ...
