from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship, validates

from smartclass.db.base_class import Base

ASSIGNMENT_STATUSES = ("draft", "active", "archived")
DEFAULT_POINTS = 100


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=False)
    points = Column(Integer, nullable=False, default=DEFAULT_POINTS)
    status = Column(String(20), nullable=False, default="draft")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_assignments_points_non_negative"),
    )

    classroom = relationship("Classroom", back_populates="assignments")

    submissions = relationship(
        "Submission",
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by="Submission.submitted_at",
    )

    @validates("points")
    def _validate_points(self, key, value):
        if value is None or value < 0:
            raise ValueError("points must be a non-negative integer")
        return value

    @validates("status")
    def _validate_status(self, key, value):
        if value not in ASSIGNMENT_STATUSES:
            raise ValueError(f"status must be one of {', '.join(ASSIGNMENT_STATUSES)}")
        return value

    def submission_for(self, student_id: int):
        for s in self.submissions:
            if s.student_id == student_id:
                return s
        return None

    @property
    def total_submissions(self) -> int:
        return len(self.submissions)

    @property
    def graded_submissions(self) -> int:
        return sum(1 for s in self.submissions if s.status == "graded")

    @property
    def average_grade(self) -> float | None:
        grades = [s.grade for s in self.submissions if s.status == "graded" and s.grade is not None]
        if not grades:
            return None
        return sum(grades) / len(grades)
