import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from smartclass.core.config import Settings
from smartclass.core.current_user import get_current_user
from smartclass.core.deps import get_app_settings, get_db, get_storage
from smartclass.core.errors import ForbiddenError, NotFoundError
from smartclass.core.permissions import ensure_assignment_teacher, ensure_can_view_class, is_class_teacher
from smartclass.models.assignment import Assignment
from smartclass.models.classroom import Classroom
from smartclass.models.submission import Submission
from smartclass.models.user import User
from smartclass.schemas.assignment import (
    AssignmentCreate,
    AssignmentRead,
    AssignmentStatusUpdate,
    StudentAssignmentRead,
)
from smartclass.schemas.base import MessageResponse
from smartclass.services.storage import AttachmentStorage
from smartclass.services.submissions import assignment_for_viewer

logger = logging.getLogger(__name__)

router = APIRouter()

UNKNOWN_CLASS = "Unknown Class"


def _ensure_assignment_exists(db: Session, assignment_id: int) -> Assignment:
    a = db.get(Assignment, assignment_id)
    if not a:
        raise NotFoundError("Assignment not found")
    return a


@router.post(
    "",
    response_model=AssignmentRead,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Class not found or unauthorized"}},
)
def create_assignment(
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    creator_id = payload.created_by if payload.created_by is not None else me.id
    if creator_id != me.id:
        raise ForbiddenError("Assignments can only be created as yourself")

    # the creator must be the teacher of the class
    classroom = (
        db.query(Classroom)
        .filter(Classroom.id == payload.class_id, Classroom.teacher_id == creator_id)
        .first()
    )
    if not classroom:
        raise NotFoundError("Class not found or unauthorized")

    a = Assignment(
        class_id=classroom.id,
        created_by=creator_id,
        title=payload.title,
        description=payload.description,
        due_date=payload.due_date,
        points=payload.points,
        status=payload.status,
    )
    db.add(a)
    db.commit()
    db.refresh(a)
    logger.info("Assignment %s created in class %s by %s", a.id, classroom.id, creator_id)
    return a


@router.get("/class/{class_id}", response_model=list[AssignmentRead])
def list_class_assignments(
    class_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
):
    classroom = db.get(Classroom, class_id)
    if not classroom:
        raise NotFoundError("Class not found")
    ensure_can_view_class(db, classroom, me)

    sees_all = is_class_teacher(classroom, me)
    assignments = (
        db.query(Assignment)
        .filter(Assignment.class_id == class_id)
        .order_by(Assignment.due_date.asc(), Assignment.id.asc())
        .all()
    )
    return [
        assignment_for_viewer(a, me, sees_all, settings.GRACE_PERIOD_MINUTES)
        for a in assignments
    ]


@router.get("/student/{student_id}", response_model=list[StudentAssignmentRead])
def list_student_assignments(
    student_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
):
    if me.role == "student" and me.id != student_id:
        raise ForbiddenError("Students can only list their own assignments")

    query = (
        db.query(Assignment)
        .join(Submission, Submission.assignment_id == Assignment.id)
        .filter(Submission.student_id == student_id)
    )
    if me.id != student_id:
        # a teacher only sees work handed in to their own classes
        query = query.join(Classroom, Classroom.id == Assignment.class_id).filter(Classroom.teacher_id == me.id)
    assignments = query.order_by(Assignment.due_date.asc(), Assignment.id.asc()).all()

    # class names come from a second lookup, joined here
    class_ids = {a.class_id for a in assignments}
    class_names: dict[int, str] = {}
    if class_ids:
        class_names = {
            c.id: c.name
            for c in db.query(Classroom).filter(Classroom.id.in_(class_ids)).all()
        }

    result: list[StudentAssignmentRead] = []
    for a in assignments:
        read = assignment_for_viewer(a, me, True, settings.GRACE_PERIOD_MINUTES)
        own = [s for s in read.submissions if s.student_id == student_id]
        result.append(
            StudentAssignmentRead(
                **read.model_dump(exclude={"submissions"}),
                submissions=[s.model_dump() for s in own],
                class_name=class_names.get(a.class_id, UNKNOWN_CLASS),
            )
        )
    return result


@router.get("/{assignment_id}", response_model=AssignmentRead)
def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
):
    a = _ensure_assignment_exists(db, assignment_id)
    classroom = db.get(Classroom, a.class_id)
    if classroom is None:
        raise NotFoundError("Class not found")
    ensure_can_view_class(db, classroom, me)

    return assignment_for_viewer(a, me, is_class_teacher(classroom, me), settings.GRACE_PERIOD_MINUTES)


@router.patch("/{assignment_id}/status", response_model=MessageResponse)
def update_assignment_status(
    assignment_id: int,
    payload: AssignmentStatusUpdate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    a = _ensure_assignment_exists(db, assignment_id)
    ensure_assignment_teacher(db, a, me)

    previous = a.status
    a.status = payload.status
    db.commit()

    logger.info("Assignment %s status %s -> %s", a.id, previous, a.status)
    return {"message": "Assignment status updated successfully"}


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    storage: AttachmentStorage = Depends(get_storage),
):
    a = _ensure_assignment_exists(db, assignment_id)
    ensure_assignment_teacher(db, a, me)

    filenames = [att.filename for s in a.submissions for att in s.attachments]

    db.delete(a)
    db.commit()

    # rows are gone, now the files
    storage.remove(filenames)
    logger.info("Assignment %s deleted with %d attachment(s)", assignment_id, len(filenames))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
