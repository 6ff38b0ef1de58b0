from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from smartclass.schemas.base import CamelModel

SubmissionStatus = Literal["submitted", "graded"]


class AttachmentRead(CamelModel):
    filename: str
    original_name: str
    path: str
    size: int


class SubmissionRead(CamelModel):
    assignment_id: int
    student_id: int
    content: str
    github_repo: Optional[str] = None
    attachments: list[AttachmentRead] = []
    submitted_at: datetime
    status: SubmissionStatus
    grade: Optional[float] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None

    # computed against the assignment due date
    is_late: bool = False
    late_by_minutes: Optional[int] = None


class SubmissionWithStudent(SubmissionRead):
    student_name: str
    student_email: str


class GradeRequest(BaseModel):
    # optional here so a missing grade maps to InvalidGrade (400), not 422
    grade: Optional[float] = None
    feedback: Optional[str] = None
