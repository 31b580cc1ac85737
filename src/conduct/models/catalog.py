"""Reference catalog models.

Degree-scoped catalogs arrive as arrays tagged with their ``degree``; the
cache regroups them into per-degree maps.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from conduct.models.violation import Degree, ProcedureDefinition, WireModel


class ViolationTypeConfig(WireModel):
    """One violation type of a degree."""

    id: int
    name: str
    description: Optional[str] = None
    has_repetition: bool = False
    max_repetitions: int = 1


class DegreeConfig(WireModel):
    """Violation types configured for one degree."""

    degree: Degree
    degree_name: str = ""
    category: str = ""
    color: str = ""
    violations: list[ViolationTypeConfig] = Field(default_factory=list)


class ProcedureConfig(WireModel):
    """Procedure template configured for one degree."""

    degree: Degree
    degree_name: str = ""
    category: str = ""
    procedures: list[ProcedureDefinition] = Field(default_factory=list)
