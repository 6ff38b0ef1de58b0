import logging
import math
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from smartclass.core.config import Settings
from smartclass.core.current_user import get_current_user
from smartclass.core.deps import get_app_settings, get_db, get_storage
from smartclass.core.errors import (
    AlreadySubmittedError,
    ForbiddenError,
    InvalidGradeError,
    NotFoundError,
    UploadRejectedError,
    ValidationFailedError,
)
from smartclass.core.permissions import ensure_assignment_teacher, is_enrolled
from smartclass.models.assignment import Assignment
from smartclass.models.attachment import Attachment
from smartclass.models.submission import Submission
from smartclass.models.user import User
from smartclass.schemas.submission import GradeRequest, SubmissionRead, SubmissionWithStudent
from smartclass.services.storage import AttachmentStorage
from smartclass.services.submissions import late_flags

logger = logging.getLogger(__name__)

router = APIRouter()

UNKNOWN_STUDENT = "Unknown Student"
UNKNOWN_EMAIL = "Unknown Email"


def _ensure_assignment_exists(db: Session, assignment_id: int) -> Assignment:
    a = db.get(Assignment, assignment_id)
    if not a:
        raise NotFoundError("Assignment not found")
    return a


def _ensure_submission_exists(assignment: Assignment, student_id: int) -> Submission:
    sub = assignment.submission_for(student_id)
    if not sub:
        raise NotFoundError("Submission not found")
    return sub


def _with_late_flags(sub: Submission, assignment: Assignment, settings: Settings) -> Submission:
    # attach computed fields for response
    sub.is_late, sub.late_by_minutes = late_flags(
        assignment.due_date, sub.submitted_at, settings.GRACE_PERIOD_MINUTES
    )
    return sub


@router.post(
    "/{assignment_id}/submit",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Already submitted, too many files or empty submission"},
        413: {"description": "Attachment too large"},
    },
)
def submit_assignment(
    assignment_id: int,
    student_id: int = Form(..., alias="studentId"),
    content: str = Form(""),
    github_repo: Optional[str] = Form(None, alias="githubRepo"),
    attachments: list[UploadFile] = File(default=[]),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
    storage: AttachmentStorage = Depends(get_storage),
):
    assignment = _ensure_assignment_exists(db, assignment_id)

    if student_id != me.id:
        raise ForbiddenError("Cannot submit on behalf of another student")
    if not is_enrolled(db, assignment.class_id, me.id):
        raise ForbiddenError("Not enrolled in this class")

    if assignment.submission_for(student_id) is not None:
        raise AlreadySubmittedError()

    # browsers send an empty part when no file is picked
    uploads = [u for u in attachments if u.filename]
    if len(uploads) > settings.MAX_ATTACHMENTS:
        raise UploadRejectedError(f"At most {settings.MAX_ATTACHMENTS} attachments are allowed")

    content = content.strip()
    github_repo = (github_repo or "").strip() or None
    if not content and not uploads and not github_repo:
        raise ValidationFailedError("Please provide content, attachments, or a GitHub repository")

    staged = storage.stage_all(uploads)

    sub = Submission(
        assignment_id=assignment.id,
        student_id=student_id,
        content=content,
        github_repo=github_repo,
        submitted_at=datetime.now(timezone.utc),
        status="submitted",
    )
    for f in staged:
        sub.attachments.append(
            Attachment(
                filename=f.filename,
                original_name=f.original_name,
                path=f.final_path.as_posix(),
                size=f.size,
            )
        )
    db.add(sub)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        storage.discard(staged)
        # a concurrent submission from the same student won the insert
        won = (
            db.query(Submission.id)
            .filter(Submission.assignment_id == assignment.id, Submission.student_id == student_id)
            .first()
        )
        if won is not None:
            raise AlreadySubmittedError()
        raise
    except Exception:
        db.rollback()
        storage.discard(staged)
        raise

    try:
        storage.commit(staged)
    except OSError:
        logger.exception("Could not finalize attachments for assignment %s, reverting submission", assignment.id)
        db.delete(sub)
        db.commit()
        storage.discard(staged)
        raise

    db.refresh(sub)
    logger.info(
        "Student %s submitted assignment %s with %d attachment(s)",
        student_id,
        assignment.id,
        len(staged),
    )
    return _with_late_flags(sub, assignment, settings)


@router.get("/{assignment_id}/submissions", response_model=list[SubmissionWithStudent])
def list_submissions_for_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
):
    assignment = _ensure_assignment_exists(db, assignment_id)
    ensure_assignment_teacher(db, assignment, me, "Only the class teacher can view submissions")

    subs = list(assignment.submissions)
    student_ids = {s.student_id for s in subs}
    students: dict[int, User] = {}
    if student_ids:
        students = {u.id: u for u in db.query(User).filter(User.id.in_(student_ids)).all()}

    result: list[SubmissionWithStudent] = []
    for s in subs:
        _with_late_flags(s, assignment, settings)
        student = students.get(s.student_id)
        result.append(
            SubmissionWithStudent(
                **SubmissionRead.model_validate(s).model_dump(),
                student_name=student.name if student else UNKNOWN_STUDENT,
                student_email=student.email if student else UNKNOWN_EMAIL,
            )
        )
    return result


@router.post(
    "/{assignment_id}/submissions/{student_id}/grade",
    response_model=SubmissionRead,
    responses={
        400: {"description": "Valid grade is required"},
        404: {"description": "Assignment or submission not found"},
    },
)
def grade_submission(
    assignment_id: int,
    student_id: int,
    payload: GradeRequest,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
):
    assignment = _ensure_assignment_exists(db, assignment_id)
    ensure_assignment_teacher(db, assignment, me, "Only the class teacher can grade")

    grade = payload.grade
    if grade is None or not math.isfinite(grade) or grade < 0:
        raise InvalidGradeError()

    sub = _ensure_submission_exists(assignment, student_id)
    sub.mark_graded(grade, payload.feedback)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(sub)
    logger.info("Assignment %s: graded student %s with %s", assignment.id, student_id, grade)
    return _with_late_flags(sub, assignment, settings)


@router.get("/{assignment_id}/submissions/{student_id}/attachments/{filename}")
def download_attachment(
    assignment_id: int,
    student_id: int,
    filename: str,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    storage: AttachmentStorage = Depends(get_storage),
):
    assignment = _ensure_assignment_exists(db, assignment_id)

    if me.id != student_id:
        ensure_assignment_teacher(db, assignment, me, "Only the class teacher can download other students' attachments")

    sub = _ensure_submission_exists(assignment, student_id)

    # only files recorded on this very submission are served
    attachment = next((a for a in sub.attachments if a.filename == filename), None)
    if attachment is None:
        raise NotFoundError("File not found")

    try:
        path = storage.resolve(attachment.filename)
    except ValueError:
        raise NotFoundError("File not found")
    if not path.is_file():
        logger.warning("Attachment %s is recorded but missing on disk", filename)
        raise NotFoundError("File not found")

    return FileResponse(path, filename=attachment.original_name)
