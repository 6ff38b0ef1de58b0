from datetime import datetime
from typing import Optional

from pydantic import Field

from smartclass.schemas.assignment import AssignmentSummary
from smartclass.schemas.base import CamelModel
from smartclass.schemas.user import UserSummary


class ClassCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    schedule: Optional[str] = None


class ClassRead(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    code: str
    teacher_id: int
    schedule: Optional[str] = None
    status: str
    created_at: datetime
    student_ids: list[int] = []


class ClassDetail(ClassRead):
    teacher: Optional[UserSummary] = None
    students: list[UserSummary] = []
    assignments: list[AssignmentSummary] = []


class JoinClassRequest(CamelModel):
    code: str = Field(min_length=1, max_length=16)
    # legacy clients send it, must match the caller when present
    student_id: Optional[int] = None


class JoinClassResponse(CamelModel):
    message: str
    class_id: int
