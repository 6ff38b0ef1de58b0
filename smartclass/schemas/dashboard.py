from datetime import datetime
from typing import Optional

from smartclass.schemas.base import CamelModel


class TeacherClassStats(CamelModel):
    class_id: int
    class_name: str
    total_students: int
    total_assignments: int
    total_submissions: int
    ungraded_submissions: int


class StudentClassDashboardRow(CamelModel):
    class_id: int
    class_name: str
    total_assignments: int
    submitted: int
    missing: int
    graded: int
    average_grade: float | None
    next_due_at: Optional[datetime] = None
    next_due_title: Optional[str] = None
    next_due_is_overdue: bool = False
