"""Request payloads and small response types for the behaviour API."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from conduct.models.violation import Degree, ViolationStatus, WireModel


class ViolationFilters(BaseModel):
    """Query filters for the violation list."""

    status: Optional[ViolationStatus] = None
    degree: Optional[Degree] = None
    search: Optional[str] = None

    def to_params(self) -> dict[str, str]:
        """Build query parameters, dropping unset and blank values."""
        params: dict[str, str] = {}
        if self.status is not None:
            params["status"] = self.status.value
        if self.degree is not None:
            params["degree"] = str(self.degree)
        if self.search and self.search.strip():
            params["search"] = self.search.strip()
        return params

    def cache_key(self) -> str:
        """Stable key identifying this filter combination."""
        return "&".join(f"{k}={v}" for k, v in sorted(self.to_params().items()))


class CreateViolationsPayload(BaseModel):
    """Bulk creation request: one violation per selected student."""

    student_ids: list[int] = Field(min_length=1)
    degree: Degree
    type: str
    description: Optional[str] = None
    location: Optional[str] = None
    date: str
    time: str
    reported_by_id: Optional[int] = None
    reported_by_name: Optional[str] = None

    def to_wire(self) -> dict[str, Any]:
        """Serialise as the snake_case body the create endpoint expects."""
        return self.model_dump(exclude_none=True)


class AutomationDetails(WireModel):
    type: str = ""
    action: str = ""
    timestamp: str = ""
    data: Optional[dict[str, Any]] = None


class AutomationResult(WireModel):
    """Outcome of executing one automation trigger on the server."""

    success: bool
    message: str = ""
    details: Optional[AutomationDetails] = None
