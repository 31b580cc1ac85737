"""Conduct: client core for school behaviour tracking.

Models a violation's remediation procedure, keeps a local mirror of the
violation log in step with the server, and dispatches task automations at
most once.
"""

from conduct._version import __version__

# Stores
from conduct.store.catalog import CatalogCache, CatalogState
from conduct.store.debounce import Debouncer
from conduct.store.pending import MutationKey, MutationRegistry, PendingMutation
from conduct.store.violations import ViolationRepository, ViolationState

# Domain models
from conduct.models.violation import (
    DEGREE_LABELS,
    ProcedureDefinition,
    ProcedureExecution,
    ProcedureProgress,
    TaskDefinition,
    TaskExecution,
    Violation,
    ViolationStatus,
    instantiate_procedures,
    sort_violations,
)
from conduct.models.catalog import DegreeConfig, ProcedureConfig, ViolationTypeConfig
from conduct.models.roster import Reporter, Student
from conduct.models.requests import (
    AutomationResult,
    CreateViolationsPayload,
    ViolationFilters,
)

# Configuration
from conduct.models.config import ConductConfig

# Transport
from conduct.api.client import BehaviorApiClient
from conduct.api.protocols import BehaviorTransport

# Automation
from conduct.automation.trigger import (
    AutomationTrigger,
    TriggerCategory,
    TriggerState,
    automation_for_task,
    classify_trigger,
    describe_trigger,
)

# Documents
from conduct.documents import (
    Document,
    DocumentSurface,
    FileSurface,
    GuardianInvitation,
    ReferralContext,
    compose_counselor_referral,
    compose_guardian_invitation,
    render_pdf,
)

# Exceptions
from conduct.exceptions import (
    AutomationError,
    CatalogLoadError,
    ConductError,
    DocumentRenderError,
    MutationInFlightError,
    ProcedureNotFoundError,
    RepositoryClosedError,
    ViolationNotFoundError,
)

__all__ = [
    "__version__",
    # Stores
    "CatalogCache",
    "CatalogState",
    "Debouncer",
    "MutationKey",
    "MutationRegistry",
    "PendingMutation",
    "ViolationRepository",
    "ViolationState",
    # Domain models
    "DEGREE_LABELS",
    "ProcedureDefinition",
    "ProcedureExecution",
    "ProcedureProgress",
    "TaskDefinition",
    "TaskExecution",
    "Violation",
    "ViolationStatus",
    "instantiate_procedures",
    "sort_violations",
    "DegreeConfig",
    "ProcedureConfig",
    "ViolationTypeConfig",
    "Reporter",
    "Student",
    "AutomationResult",
    "CreateViolationsPayload",
    "ViolationFilters",
    # Configuration
    "ConductConfig",
    # Transport
    "BehaviorApiClient",
    "BehaviorTransport",
    # Automation
    "AutomationTrigger",
    "TriggerCategory",
    "TriggerState",
    "automation_for_task",
    "classify_trigger",
    "describe_trigger",
    # Documents
    "Document",
    "DocumentSurface",
    "FileSurface",
    "GuardianInvitation",
    "ReferralContext",
    "compose_counselor_referral",
    "compose_guardian_invitation",
    "render_pdf",
    # Exceptions
    "AutomationError",
    "CatalogLoadError",
    "ConductError",
    "DocumentRenderError",
    "MutationInFlightError",
    "ProcedureNotFoundError",
    "RepositoryClosedError",
    "ViolationNotFoundError",
]
