"""Conduct exception hierarchy.

All Conduct-specific exceptions inherit from ConductError.
"""


class ConductError(Exception):
    """Base exception for all Conduct errors."""


class ViolationNotFoundError(ConductError):
    """Raised when a violation id is not present in the local list."""

    def __init__(self, violation_id: str) -> None:
        self.violation_id = violation_id
        super().__init__(f"Violation not found: {violation_id}")


class ProcedureNotFoundError(ConductError):
    """Raised when a procedure step does not exist on a violation."""

    def __init__(self, violation_id: str, step: int) -> None:
        self.violation_id = violation_id
        self.step = step
        super().__init__(f"Violation {violation_id} has no procedure step {step}")


class MutationInFlightError(ConductError):
    """Raised when a mutation is requested while the same key is outstanding.

    The caller is expected to check ``is_mutating()`` and disable the
    affordance; reaching this error means a duplicate submission was
    attempted and no network call was made.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Mutation already in flight: {key}")


class RepositoryClosedError(ConductError):
    """Raised when a write is scheduled on a closed repository."""


class CatalogLoadError(ConductError):
    """Raised when a catalog fetch fails.

    Attributes:
        catalog: Name of the catalog that failed to load.
    """

    def __init__(self, catalog: str, message: str) -> None:
        self.catalog = catalog
        super().__init__(message)


class AutomationError(ConductError):
    """Raised when the server reports an automation as unsuccessful."""


class DocumentRenderError(ConductError):
    """Raised when a document cannot be rendered in the requested format."""
