"""Pending-operation bookkeeping for the stores.

Every guarded mutation is tracked as a PendingMutation under a strongly typed
MutationKey. The key's presence in a MutationRegistry is the signal the UI
uses to disable an affordance, and the guard that stops a duplicate
submission before it reaches the network.

SingleFlight does the same job for reads: concurrent identical reads share
one underlying request instead of racing each other.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

from conduct.exceptions import MutationInFlightError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PendingStatus(str, Enum):
    """Status of a tracked mutation.

    Uses ``str, Enum`` dual inheritance so status values compare and
    serialise as plain strings.
    """

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, order=True)
class MutationKey:
    """Composite identity of a logical mutation.

    Renders as ``violation_id``, ``violation_id:step`` or
    ``violation_id:step:task_id``.
    """

    violation_id: str
    step: int | None = None
    task_id: int | None = None

    def __post_init__(self) -> None:
        if self.task_id is not None and self.step is None:
            raise ValueError("A task key needs a step")

    def __str__(self) -> str:
        parts = [self.violation_id]
        if self.step is not None:
            parts.append(str(self.step))
        if self.task_id is not None:
            parts.append(str(self.task_id))
        return ":".join(parts)


@dataclass(repr=False)
class PendingMutation:
    """Handle for one outstanding mutation.

    Fields:
        key: The composite key being guarded.
        operation: Name of the mutation (e.g. "toggle_procedure").
        pending_id: Unique identifier for this handle (auto-generated).
        started_at: When the mutation was registered (UTC).
        status: "pending" until the mutation settles.
        error: The exception that failed the mutation, if any.
    """

    key: MutationKey
    operation: str
    pending_id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: PendingStatus = PendingStatus.PENDING
    error: BaseException | None = None

    def __repr__(self) -> str:
        return f"<PendingMutation: {self.operation} {self.key}, {self.status}>"


class MutationRegistry:
    """Registry of in-flight mutations. Owned by one repository instance."""

    def __init__(self) -> None:
        self._pending: dict[MutationKey, PendingMutation] = {}

    def begin(self, key: MutationKey, operation: str) -> PendingMutation:
        """Register ``key`` as in flight.

        Raises:
            MutationInFlightError: If the key is already registered.
        """
        if key in self._pending:
            raise MutationInFlightError(str(key))
        handle = PendingMutation(key=key, operation=operation)
        self._pending[key] = handle
        logger.debug("Mutation started: %s %s", operation, key)
        return handle

    def finish(self, handle: PendingMutation, error: BaseException | None = None) -> None:
        """Settle a handle and release its key."""
        handle.status = PendingStatus.FAILED if error is not None else PendingStatus.SUCCEEDED
        handle.error = error
        if self._pending.get(handle.key) is handle:
            del self._pending[handle.key]
        logger.debug("Mutation %s: %s %s", handle.status, handle.operation, handle.key)

    @contextmanager
    def track(self, key: MutationKey, operation: str) -> Iterator[PendingMutation]:
        """Guard a block: register on entry, always release on exit."""
        handle = self.begin(key, operation)
        try:
            yield handle
        except BaseException as exc:
            self.finish(handle, exc)
            raise
        else:
            self.finish(handle)

    def is_pending(self, key: MutationKey) -> bool:
        return key in self._pending

    def get(self, key: MutationKey) -> PendingMutation | None:
        return self._pending.get(key)

    @property
    def keys(self) -> set[MutationKey]:
        """All keys currently in flight."""
        return set(self._pending)

    def __contains__(self, key: object) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)


class SingleFlight:
    """Collapse concurrent calls with the same key onto one awaitable."""

    def __init__(self) -> None:
        self._flights: dict[str, asyncio.Future[Any]] = {}

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """Run ``factory`` unless a call for ``key`` is already in flight.

        Late callers await the in-flight result (or exception). A caller
        being cancelled does not cancel the shared work.
        """
        existing = self._flights.get(key)
        if existing is not None:
            logger.debug("Joining in-flight request: %s", key)
            return await asyncio.shield(existing)

        flight = asyncio.ensure_future(factory())
        self._flights[key] = flight
        flight.add_done_callback(lambda _: self._release(key, flight))
        return await asyncio.shield(flight)

    def _release(self, key: str, flight: asyncio.Future[Any]) -> None:
        if self._flights.get(key) is flight:
            del self._flights[key]

    def is_running(self, key: str) -> bool:
        return key in self._flights
