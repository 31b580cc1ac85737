"""Domain models for Conduct."""

from conduct.models.catalog import DegreeConfig, ProcedureConfig, ViolationTypeConfig
from conduct.models.config import NOTES_DEBOUNCE_SECONDS, ConductConfig
from conduct.models.requests import (
    AutomationDetails,
    AutomationResult,
    CreateViolationsPayload,
    ViolationFilters,
)
from conduct.models.roster import Reporter, Student
from conduct.models.violation import (
    DEGREE_LABELS,
    DEGREES,
    ProcedureDefinition,
    ProcedureExecution,
    ProcedureProgress,
    TaskDefinition,
    TaskExecution,
    Violation,
    ViolationStatus,
    degree_label,
    instantiate_procedures,
    sort_violations,
)

__all__ = [
    "AutomationDetails",
    "AutomationResult",
    "ConductConfig",
    "CreateViolationsPayload",
    "DEGREE_LABELS",
    "DEGREES",
    "DegreeConfig",
    "NOTES_DEBOUNCE_SECONDS",
    "ProcedureConfig",
    "ProcedureDefinition",
    "ProcedureExecution",
    "ProcedureProgress",
    "Reporter",
    "Student",
    "TaskDefinition",
    "TaskExecution",
    "Violation",
    "ViolationFilters",
    "ViolationStatus",
    "ViolationTypeConfig",
    "degree_label",
    "instantiate_procedures",
    "sort_violations",
]
