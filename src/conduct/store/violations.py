"""Violation repository.

In-memory mirror of the server's violation records. The repository is the
only writer of violation state in the process; the server stays
authoritative and every mutation reconciles local state from the record the
server sends back.

Concurrency discipline (one asyncio loop, suspension only at transport
calls):

- Reads are single-flight per resource.
- Step/task toggles register a MutationKey before the network call. A second
  toggle on the same key while the first is outstanding raises
  MutationInFlightError without touching the network. Toggles on different
  keys run concurrently and each response is applied on its own, by id.
- Notes edits are written locally at once and sent after a quiet period
  (trailing-edge debounce per ``violation:step``).
- A notes response patches only the written step's notes, and only if no
  newer edit of that step exists. A full-record replacement (toggle, fetch)
  keeps the local notes of any step whose notes write is still unsent or in
  flight.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from conduct.api.errors import resolve_error_message
from conduct.api.protocols import BehaviorTransport
from conduct.exceptions import RepositoryClosedError
from conduct.messages import message
from conduct.models.config import ConductConfig
from conduct.models.requests import CreateViolationsPayload, ViolationFilters
from conduct.models.roster import Reporter, Student
from conduct.models.violation import Violation, sort_violations
from conduct.store.debounce import Debouncer
from conduct.store.pending import MutationKey, MutationRegistry, SingleFlight

logger = logging.getLogger(__name__)


@dataclass
class ViolationState:
    """Everything the repository holds. Read it, never write it directly."""

    students: list[Student] = field(default_factory=list)
    violations: list[Violation] = field(default_factory=list)
    reporters: list[Reporter] = field(default_factory=list)
    is_loading_students: bool = False
    is_loading_violations: bool = False
    is_loading_reporters: bool = False
    students_loaded: bool = False
    violations_loaded: bool = False
    reporters_loaded: bool = False
    is_creating: bool = False
    last_error: str | None = None


class ViolationRepository:
    """Client-side store for violations and their procedure checklists."""

    def __init__(
        self,
        transport: BehaviorTransport,
        *,
        config: ConductConfig | None = None,
        debouncer: Debouncer | None = None,
        mutations: MutationRegistry | None = None,
    ) -> None:
        self._transport = transport
        self._config = config or ConductConfig()
        self._state = ViolationState()
        self._debouncer = debouncer or Debouncer(self._config.notes_debounce_seconds)
        self._mutations = mutations or MutationRegistry()
        self._flights = SingleFlight()
        # Latest edit number per notes key; older responses must not win.
        self._notes_generation: dict[str, int] = {}
        # Completed notes writes per key; a record requested before one of
        # these completed carries notes older than the local ones.
        self._notes_saved: dict[str, int] = {}
        self._closed = False

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> ViolationState:
        return self._state

    @property
    def violations(self) -> list[Violation]:
        """Snapshot of the sorted violation list."""
        return list(self._state.violations)

    @property
    def last_error(self) -> str | None:
        return self._state.last_error

    @property
    def mutations(self) -> MutationRegistry:
        return self._mutations

    def clear_error(self) -> None:
        self._state.last_error = None

    def get_violation(self, violation_id: str) -> Violation | None:
        for violation in self._state.violations:
            if violation.id == violation_id:
                return violation
        return None

    def is_mutating(
        self, violation_id: str, step: int | None = None, task_id: int | None = None
    ) -> bool:
        """True while a mutation on this key is outstanding."""
        return self._mutations.is_pending(MutationKey(violation_id, step, task_id))

    def has_pending_notes(self, violation_id: str, step: int) -> bool:
        """True while a notes write for this step is unsent or in flight."""
        return self._debouncer.is_active(str(MutationKey(violation_id, step)))

    def related_violations(self, violation_id: str, limit: int = 4) -> list[Violation]:
        """Other violations of the same student, newest first."""
        violation = self.get_violation(violation_id)
        if violation is None:
            return []
        related = [
            item
            for item in self._state.violations
            if item.student_id == violation.student_id and item.id != violation.id
        ]
        return sort_violations(related)[:limit]

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def fetch_students(self, search: str | None = None) -> list[Student]:
        key = f"students?{(search or '').strip()}"
        return await self._flights.run(key, lambda: self._load_students(search))

    async def _load_students(self, search: str | None) -> list[Student]:
        state = self._state
        state.is_loading_students = True
        state.last_error = None
        try:
            data = await self._transport.fetch_students(search)
        except Exception as exc:
            state.is_loading_students = False
            self._record(exc, "students.load")
            raise
        state.students = data
        state.is_loading_students = False
        state.students_loaded = True
        return list(data)

    async def fetch_reporters(self) -> list[Reporter]:
        """Load reporters once; later calls return the cached list."""
        state = self._state
        if state.reporters_loaded and state.reporters:
            logger.debug("Reporters cache hit (%d)", len(state.reporters))
            return list(state.reporters)
        return await self._flights.run("reporters", self._load_reporters)

    async def _load_reporters(self) -> list[Reporter]:
        state = self._state
        state.is_loading_reporters = True
        state.last_error = None
        try:
            data = await self._transport.fetch_reporters()
        except Exception as exc:
            state.is_loading_reporters = False
            self._record(exc, "reporters.load")
            raise
        state.reporters = data
        state.is_loading_reporters = False
        state.reporters_loaded = True
        return list(data)

    async def fetch_violations(
        self, filters: ViolationFilters | None = None
    ) -> list[Violation]:
        key = f"violations?{filters.cache_key() if filters else ''}"
        return await self._flights.run(key, lambda: self._load_violations(filters))

    async def _load_violations(self, filters: ViolationFilters | None) -> list[Violation]:
        state = self._state
        state.is_loading_violations = True
        state.last_error = None
        since = dict(self._notes_saved)
        try:
            data = await self._transport.fetch_violations(filters)
        except Exception as exc:
            state.is_loading_violations = False
            self._record(exc, "violations.load")
            raise
        state.violations = sort_violations(
            [self._keep_pending_notes(violation, since) for violation in data]
        )
        state.is_loading_violations = False
        state.violations_loaded = True
        return list(state.violations)

    async def fetch_violation_by_id(self, violation_id: str) -> Violation | None:
        """Refresh one record into the list.

        Never raises: a failure is recorded in ``last_error`` and reported
        as None.
        """
        return await self._flights.run(
            f"violation/{violation_id}", lambda: self._load_violation(violation_id)
        )

    async def _load_violation(self, violation_id: str) -> Violation | None:
        since = dict(self._notes_saved)
        try:
            fetched = await self._transport.fetch_violation(violation_id)
        except Exception as exc:
            logger.warning("Violation lookup failed for %s: %s", violation_id, exc)
            self._record(exc, "violation.load")
            return None
        violation = self._keep_pending_notes(fetched, since)
        state = self._state
        if any(item.id == violation.id for item in state.violations):
            merged = [
                violation if item.id == violation.id else item
                for item in state.violations
            ]
        else:
            merged = [violation, *state.violations]
        state.violations = sort_violations(merged)
        state.violations_loaded = True
        return violation

    # ------------------------------------------------------------------
    # Create / delete
    # ------------------------------------------------------------------

    async def create_violations(
        self, payload: CreateViolationsPayload
    ) -> list[Violation]:
        """Create one violation per student and merge them at the head.

        A failed roster refresh afterwards is recorded as a secondary
        warning; the created records are still returned.
        """
        state = self._state
        state.is_creating = True
        state.last_error = None
        try:
            try:
                created = await self._transport.create_violations(payload)
            except Exception as exc:
                self._record(exc, "violation.create")
                raise
            created_ids = {violation.id for violation in created}
            remaining = [v for v in state.violations if v.id not in created_ids]
            state.violations = sort_violations([*created, *remaining])
            state.violations_loaded = True
            logger.info("Created %d violation(s)", len(created))
            await self._refresh_roster("violation.create.refresh")
            return created
        finally:
            state.is_creating = False

    async def delete_violation(self, violation_id: str) -> None:
        """Delete a violation, then best-effort refresh the roster."""
        with self._mutations.track(MutationKey(violation_id), "delete_violation"):
            self._state.last_error = None
            try:
                await self._transport.delete_violation(violation_id)
            except Exception as exc:
                self._record(exc, "violation.delete")
                raise
            self._state.violations = [
                v for v in self._state.violations if v.id != violation_id
            ]
            logger.info("Deleted violation %s", violation_id)
        await self._refresh_roster("violation.delete.refresh")

    async def _refresh_roster(self, secondary_key: str) -> None:
        try:
            await self.fetch_students()
        except Exception as exc:
            logger.warning("Roster refresh failed after mutation: %s", exc)
            self._state.last_error = message(secondary_key, self._config.locale)

    # ------------------------------------------------------------------
    # Procedure mutations
    # ------------------------------------------------------------------

    async def toggle_procedure(self, violation_id: str, step: int) -> Violation:
        """Flip a procedure step's completion on the server.

        Raises:
            MutationInFlightError: If the same step is already being toggled.
        """
        key = MutationKey(violation_id, step)
        with self._mutations.track(key, "toggle_procedure"):
            self._state.last_error = None
            since = dict(self._notes_saved)
            try:
                updated = await self._transport.toggle_procedure(violation_id, step)
            except Exception as exc:
                self._record(exc, "procedure.toggle")
                raise
            return self._apply_server_record(updated, since)

    async def toggle_procedure_task(
        self, violation_id: str, step: int, task_id: int
    ) -> Violation:
        """Flip one task's completion on the server.

        Raises:
            MutationInFlightError: If the same task is already being toggled.
        """
        key = MutationKey(violation_id, step, task_id)
        with self._mutations.track(key, "toggle_procedure_task"):
            self._state.last_error = None
            since = dict(self._notes_saved)
            try:
                updated = await self._transport.toggle_procedure_task(
                    violation_id, step, task_id
                )
            except Exception as exc:
                self._record(exc, "procedure.task.toggle")
                raise
            return self._apply_server_record(updated, since)

    def update_procedure_notes(self, violation_id: str, step: int, notes: str) -> None:
        """Write notes locally now and schedule the server write.

        Must be called from inside the running event loop. Only the last
        value of a burst of edits on the same step is sent.

        Raises:
            RepositoryClosedError: If the repository has been closed.
        """
        if self._closed:
            raise RepositoryClosedError("Repository is closed")
        self._state.violations = [
            v.with_procedure_notes(step, notes) if v.id == violation_id else v
            for v in self._state.violations
        ]
        key = str(MutationKey(violation_id, step))
        generation = self._notes_generation.get(key, 0) + 1
        self._notes_generation[key] = generation
        self._debouncer.schedule(
            key, lambda: self._write_notes(violation_id, step, notes, generation)
        )

    async def _write_notes(
        self, violation_id: str, step: int, notes: str, generation: int
    ) -> None:
        key = str(MutationKey(violation_id, step))
        try:
            updated = await self._transport.update_procedure_notes(
                violation_id, step, notes
            )
        except Exception as exc:
            # The typed text stays in place; only the banner changes.
            logger.warning("Notes write failed for %s: %s", key, exc)
            self._record(exc, "procedure.notes")
            raise
        self._notes_saved[key] = self._notes_saved.get(key, 0) + 1
        if self._notes_generation.get(key) != generation:
            logger.debug("Stale notes response ignored: %s", key)
            return
        saved = updated.procedure(step)
        if saved is None:
            return
        self._state.violations = [
            v.with_procedure_notes(step, saved.notes) if v.id == violation_id else v
            for v in self._state.violations
        ]

    async def flush_notes(self) -> None:
        """Send pending notes writes now and wait for every outstanding one.

        Raises:
            Exception: The first failed write, after all writes settled.
        """
        failures = await self._debouncer.flush()
        if failures:
            raise failures[0]

    async def aclose(self) -> None:
        """Flush pending notes and refuse further edits."""
        self._closed = True
        failures = await self._debouncer.close()
        if failures:
            raise failures[0]

    # ------------------------------------------------------------------
    # Reconciliation helpers
    # ------------------------------------------------------------------

    def _keep_pending_notes(
        self, incoming: Violation, since: dict[str, int] | None = None
    ) -> Violation:
        """Carry over local notes the incoming record cannot know about.

        That is every step with an unsent or in-flight write, and every step
        whose write completed after the ``since`` snapshot was taken.
        """
        local = self.get_violation(incoming.id)
        if local is None:
            return incoming
        if since is None:
            since = self._notes_saved
        result = incoming
        for procedure in incoming.procedures:
            key = str(MutationKey(incoming.id, procedure.step))
            saved_meanwhile = self._notes_saved.get(key, 0) != since.get(key, 0)
            if not saved_meanwhile and not self.has_pending_notes(
                incoming.id, procedure.step
            ):
                continue
            local_procedure = local.procedure(procedure.step)
            if local_procedure is not None and local_procedure.notes != procedure.notes:
                result = result.with_procedure_notes(procedure.step, local_procedure.notes)
        return result

    def _apply_server_record(
        self, updated: Violation, since: dict[str, int] | None = None
    ) -> Violation:
        """Replace the record with the server's version, by id.

        A record no longer in the list (deleted, or never loaded) is left
        out; the reconciled value is still returned to the caller.
        """
        reconciled = self._keep_pending_notes(updated, since)
        self._state.violations = [
            reconciled if v.id == reconciled.id else v for v in self._state.violations
        ]
        return reconciled

    def _record(self, error: BaseException, key: str) -> str:
        text = resolve_error_message(error, message(key, self._config.locale))
        self._state.last_error = text
        return text
