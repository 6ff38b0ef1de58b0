import math
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field, field_validator

from smartclass.models.assignment import DEFAULT_POINTS
from smartclass.schemas.base import CamelModel
from smartclass.schemas.submission import SubmissionRead

AssignmentStatus = Literal["draft", "active", "archived"]


class AssignmentCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    due_date: datetime
    class_id: int
    created_by: Optional[int] = None
    points: int = DEFAULT_POINTS
    status: AssignmentStatus = "draft"

    @field_validator("points", mode="before")
    @classmethod
    def _coerce_points(cls, v: Any) -> int:
        """Absent or non-numeric points fall back to the default, negatives are rejected."""
        if v is None or isinstance(v, bool):
            return DEFAULT_POINTS
        try:
            n = float(v)
        except (TypeError, ValueError):
            return DEFAULT_POINTS
        if not math.isfinite(n):
            return DEFAULT_POINTS
        if n < 0:
            raise ValueError("points must be greater than or equal to 0")
        return int(n)

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, v: Any) -> Any:
        return v or "draft"


class AssignmentStatusUpdate(CamelModel):
    status: AssignmentStatus


class AssignmentSummary(CamelModel):
    id: int
    title: str
    due_date: datetime
    points: int
    status: str


class AssignmentRead(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    due_date: datetime
    class_id: int
    created_by: int
    points: int
    status: str
    created_at: datetime
    submissions: list[SubmissionRead] = []

    total_submissions: int = 0
    graded_submissions: int = 0
    average_grade: Optional[float] = None


class StudentAssignmentRead(AssignmentRead):
    class_name: str
