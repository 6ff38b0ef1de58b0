from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship, validates

from smartclass.db.base_class import Base

SUBMISSION_STATUSES = ("submitted", "graded")


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)

    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, nullable=False, index=True)

    content = Column(Text, nullable=False, default="")
    github_repo = Column(String(512), nullable=True)

    submitted_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    status = Column(String(20), nullable=False, default="submitted")

    # Grading fields (nullable until graded)
    grade = Column(Float, nullable=True)
    feedback = Column(Text, nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
    )

    assignment = relationship("Assignment", back_populates="submissions")

    attachments = relationship(
        "Attachment",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="Attachment.id",
    )

    @validates("status")
    def _validate_status(self, key, value):
        if value not in SUBMISSION_STATUSES:
            raise ValueError(f"status must be one of {', '.join(SUBMISSION_STATUSES)}")
        # graded is terminal
        if self.status == "graded" and value != "graded":
            raise ValueError("a graded submission cannot return to submitted")
        return value

    @validates("grade")
    def _validate_grade(self, key, value):
        if value is not None and value < 0:
            raise ValueError("grade must be non-negative")
        return value

    def mark_graded(self, grade: float, feedback: str | None) -> None:
        self.grade = grade
        self.feedback = feedback
        self.status = "graded"
        self.graded_at = datetime.now(timezone.utc)
