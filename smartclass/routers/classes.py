import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from smartclass.core.config import Settings
from smartclass.core.current_user import get_current_user
from smartclass.core.deps import get_app_settings, get_db
from smartclass.core.errors import ForbiddenError, NotFoundError, ValidationFailedError
from smartclass.core.permissions import (
    ensure_can_view_class,
    ensure_class_exists,
    require_student,
    require_teacher,
)
from smartclass.models.assignment import Assignment
from smartclass.models.classroom import Classroom
from smartclass.models.enrollment import ClassEnrollment
from smartclass.models.user import User
from smartclass.schemas.assignment import AssignmentSummary
from smartclass.schemas.classroom import (
    ClassCreate,
    ClassDetail,
    ClassRead,
    JoinClassRequest,
    JoinClassResponse,
)
from smartclass.schemas.user import UserSummary
from smartclass.services.class_codes import CodeSpaceExhausted, generate_unique_code

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[ClassRead])
def list_classes(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if current_user.role == "student":
        return (
            db.query(Classroom)
            .join(ClassEnrollment, ClassEnrollment.class_id == Classroom.id)
            .filter(ClassEnrollment.student_id == current_user.id)
            .order_by(Classroom.id.asc())
            .all()
        )
    return (
        db.query(Classroom)
        .filter(Classroom.teacher_id == current_user.id)
        .order_by(Classroom.id.asc())
        .all()
    )


@router.post("", response_model=ClassRead, status_code=status.HTTP_201_CREATED)
def create_class(
    payload: ClassCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
    settings: Settings = Depends(get_app_settings),
):
    try:
        code = generate_unique_code(db, attempts=settings.CLASS_CODE_ATTEMPTS)
    except CodeSpaceExhausted:
        logger.error("Class code generation exhausted for teacher %s", teacher.id)
        raise HTTPException(status_code=500, detail="Failed to create class")

    classroom = Classroom(
        name=payload.name,
        description=payload.description,
        schedule=payload.schedule,
        teacher_id=teacher.id,
        code=code,
        status="active",
    )
    db.add(classroom)

    try:
        db.commit()
    except IntegrityError:
        # code taken between the check and the insert
        db.rollback()
        logger.warning("Class code %s collided on insert", code)
        raise HTTPException(status_code=500, detail="Failed to create class")

    db.refresh(classroom)
    logger.info("Teacher %s created class %s (code %s)", teacher.id, classroom.id, code)
    return classroom


@router.post("/join", response_model=JoinClassResponse)
def join_class(
    payload: JoinClassRequest,
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    if payload.student_id is not None and payload.student_id != me.id:
        raise ForbiddenError("Cannot join a class on behalf of another student")

    code = payload.code.strip().upper()
    classroom = db.query(Classroom).filter(Classroom.code == code).first()
    if not classroom:
        raise NotFoundError("Invalid class code")

    if me.id in classroom.student_ids:
        raise ValidationFailedError("Already joined this class")

    db.add(ClassEnrollment(student_id=me.id, class_id=classroom.id))

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationFailedError("Already joined this class")

    logger.info("Student %s joined class %s", me.id, classroom.id)
    return {"message": "Successfully joined class", "class_id": classroom.id}


@router.get("/code/{code}", response_model=ClassRead)
def get_class_by_code(
    code: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    classroom = db.query(Classroom).filter(Classroom.code == code.upper()).first()
    if not classroom:
        raise NotFoundError("Class not found")
    return classroom


@router.get("/{class_id}", response_model=ClassDetail)
def get_class(
    class_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    classroom = ensure_class_exists(db, class_id)
    ensure_can_view_class(db, classroom, current_user)

    students = []
    if classroom.student_ids:
        students = (
            db.query(User)
            .filter(User.id.in_(classroom.student_ids))
            .order_by(User.name.asc())
            .all()
        )

    assignments = (
        db.query(Assignment)
        .filter(Assignment.class_id == classroom.id)
        .order_by(Assignment.due_date.asc(), Assignment.id.asc())
        .all()
    )

    detail = ClassDetail.model_validate(classroom)
    return detail.model_copy(
        update={
            "students": [UserSummary.model_validate(s) for s in students],
            "assignments": [AssignmentSummary.model_validate(a) for a in assignments],
        }
    )
