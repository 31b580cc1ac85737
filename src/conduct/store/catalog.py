"""Catalog cache.

Holds the slow-changing reference data the violation workflow reads:
violation types and procedure templates per degree, plus the flat label
maps (roles, action categories, system triggers, notification templates).

Per-degree loads merge into the existing maps; loading degree 2 never
discards what was loaded for degree 1.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from conduct.api.errors import resolve_error_message
from conduct.api.protocols import BehaviorTransport
from conduct.exceptions import CatalogLoadError
from conduct.messages import message
from conduct.models.catalog import DegreeConfig, ProcedureConfig, ViolationTypeConfig
from conduct.models.config import ConductConfig
from conduct.models.violation import (
    DEGREES,
    ProcedureDefinition,
    ProcedureExecution,
    ViolationStatus,
    instantiate_procedures,
)
from conduct.store.pending import SingleFlight

logger = logging.getLogger(__name__)


def _empty_by_degree() -> dict[int, list]:
    return {degree: [] for degree in DEGREES}


@dataclass
class CatalogState:
    """Reference data held by a CatalogCache."""

    violation_types_by_degree: dict[int, list[ViolationTypeConfig]] = field(
        default_factory=_empty_by_degree
    )
    procedures_by_degree: dict[int, list[ProcedureDefinition]] = field(
        default_factory=_empty_by_degree
    )
    degree_configs: list[DegreeConfig] = field(default_factory=list)
    procedure_configs: list[ProcedureConfig] = field(default_factory=list)
    roles: dict[str, str] = field(default_factory=dict)
    action_categories: dict[str, str] = field(default_factory=dict)
    system_triggers: dict[str, str] = field(default_factory=dict)
    notification_templates: dict[str, str] = field(default_factory=dict)
    statuses: list[ViolationStatus] = field(default_factory=lambda: list(ViolationStatus))
    is_loading: bool = False
    is_loaded: bool = False
    last_error: str | None = None


class CatalogCache:
    """Client-side cache of behaviour reference catalogs."""

    def __init__(
        self,
        transport: BehaviorTransport,
        *,
        config: ConductConfig | None = None,
    ) -> None:
        self._transport = transport
        self._config = config or ConductConfig()
        self._state = CatalogState()
        self._flights = SingleFlight()
        self._in_flight = 0

    @property
    def state(self) -> CatalogState:
        return self._state

    @property
    def last_error(self) -> str | None:
        return self._state.last_error

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_config(self) -> None:
        """Load the four label maps once.

        Idempotent: returns immediately once loaded, and concurrent callers
        share one round of requests.

        Raises:
            CatalogLoadError: If any of the four fetches fails.
        """
        if self._state.is_loaded:
            logger.debug("Catalog config already loaded")
            return
        await self._flights.run("config", self._load_config)

    async def _load_config(self) -> None:
        state = self._state
        with self._loading():
            try:
                roles, categories, triggers, templates = await asyncio.gather(
                    self._transport.fetch_roles(),
                    self._transport.fetch_action_categories(),
                    self._transport.fetch_system_triggers(),
                    self._transport.fetch_notification_templates(),
                )
            except Exception as exc:
                raise self._failed(exc, "config", "catalog.config") from exc
            # One commit, so readers never see a half-loaded set of maps.
            state.roles = roles
            state.action_categories = categories
            state.system_triggers = triggers
            state.notification_templates = templates
            state.is_loaded = True
        logger.info(
            "Catalog config loaded: %d roles, %d triggers", len(roles), len(triggers)
        )

    async def load_violation_types(self, degree: int | None = None) -> None:
        """Fetch violation types (all degrees, or one) and merge them in.

        Raises:
            CatalogLoadError: If the fetch fails.
        """
        await self._flights.run(
            f"violation-types?{degree or ''}", lambda: self._load_violation_types(degree)
        )

    async def _load_violation_types(self, degree: int | None) -> None:
        state = self._state
        with self._loading():
            try:
                configs = await self._transport.fetch_violation_types(
                    self._config.stage, degree
                )
            except Exception as exc:
                raise self._failed(exc, "violation_types", "catalog.violation_types") from exc
            # Read current maps after the await so concurrent loads both survive.
            by_degree = dict(state.violation_types_by_degree)
            for item in configs:
                by_degree[item.degree] = list(item.violations)
            state.violation_types_by_degree = by_degree
            state.degree_configs = _merge_by_degree(state.degree_configs, configs)
        logger.debug("Merged violation types for degrees %s", [c.degree for c in configs])

    async def load_procedures(self, degree: int | None = None) -> None:
        """Fetch procedure templates (all degrees, or one) and merge them in.

        Raises:
            CatalogLoadError: If the fetch fails.
        """
        await self._flights.run(
            f"procedures?{degree or ''}", lambda: self._load_procedures(degree)
        )

    async def _load_procedures(self, degree: int | None) -> None:
        state = self._state
        with self._loading():
            try:
                configs = await self._transport.fetch_procedures(self._config.stage, degree)
            except Exception as exc:
                raise self._failed(exc, "procedures", "catalog.procedures") from exc
            by_degree = dict(state.procedures_by_degree)
            for item in configs:
                by_degree[item.degree] = list(item.procedures)
            state.procedures_by_degree = by_degree
            state.procedure_configs = _merge_by_degree(state.procedure_configs, configs)
        logger.debug("Merged procedures for degrees %s", [c.degree for c in configs])

    @contextmanager
    def _loading(self) -> Iterator[None]:
        """Mark one load in flight; ``is_loading`` stays set until the last ends."""
        self._in_flight += 1
        self._state.is_loading = True
        self._state.last_error = None
        try:
            yield
        finally:
            self._in_flight -= 1
            self._state.is_loading = self._in_flight > 0

    async def get_procedures_for_violation(
        self, degree: int, repetition: int
    ) -> ProcedureDefinition | None:
        """Uncached lookup of the procedure for a degree and repetition.

        Failures are logged and reported as None.
        """
        try:
            return await self._transport.fetch_procedures_for_violation(
                degree, repetition, self._config.stage
            )
        except Exception as exc:
            logger.error(
                "Procedure lookup failed for degree %s repetition %s: %s",
                degree,
                repetition,
                exc,
            )
            return None

    def _failed(self, error: Exception, catalog: str, key: str) -> CatalogLoadError:
        text = resolve_error_message(error, message(key, self._config.locale))
        self._state.last_error = text
        logger.warning("Catalog %s failed to load: %s", catalog, error)
        return CatalogLoadError(catalog, text)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_violations_for_degree(self, degree: int) -> list[str]:
        """Violation type names for ``degree``; empty for unknown degrees."""
        return [v.name for v in self._state.violation_types_by_degree.get(degree, [])]

    def get_procedures_for_degree(self, degree: int) -> list[ProcedureDefinition]:
        return list(self._state.procedures_by_degree.get(degree, []))

    def checklist_for_degree(self, degree: int) -> list[ProcedureExecution]:
        """A fresh, all-incomplete checklist from the cached degree template."""
        return instantiate_procedures(self.get_procedures_for_degree(degree))

    def get_role_label(self, role: str) -> str:
        return self._state.roles.get(role, role)

    def get_action_category_label(self, category: str) -> str:
        return self._state.action_categories.get(category, category)

    def get_system_trigger_label(self, trigger: str) -> str:
        return self._state.system_triggers.get(trigger, trigger)

    def get_notification_template(self, template: str) -> str:
        return self._state.notification_templates.get(template, template)


def _merge_by_degree(existing: list, incoming: list) -> list:
    """Replace entries for the incoming degrees, keep the rest, order by degree."""
    replaced = {item.degree for item in incoming}
    merged = [item for item in existing if item.degree not in replaced] + list(incoming)
    return sorted(merged, key=lambda item: item.degree)
