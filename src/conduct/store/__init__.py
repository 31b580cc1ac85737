"""Client-side stores: violation repository and catalog cache."""

from conduct.store.catalog import CatalogCache, CatalogState
from conduct.store.debounce import Debouncer
from conduct.store.pending import (
    MutationKey,
    MutationRegistry,
    PendingMutation,
    PendingStatus,
    SingleFlight,
)
from conduct.store.violations import ViolationRepository, ViolationState

__all__ = [
    "CatalogCache",
    "CatalogState",
    "Debouncer",
    "MutationKey",
    "MutationRegistry",
    "PendingMutation",
    "PendingStatus",
    "SingleFlight",
    "ViolationRepository",
    "ViolationState",
]
