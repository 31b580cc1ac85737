"""Student and reporter models."""

from __future__ import annotations

from pydantic import Field, field_validator

from conduct.models.violation import WireModel


class Student(WireModel):
    """A student as listed on the behaviour roster."""

    id: str
    name: str
    student_id: str = ""
    grade: str = ""
    class_name: str = Field(default="", alias="class")
    violations_count: int = 0
    behavior_score: float = 0

    @field_validator("id", "student_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value


class Reporter(WireModel):
    """A staff member who can report a violation."""

    id: int
    name: str
