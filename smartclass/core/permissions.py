from fastapi import Depends
from sqlalchemy.orm import Session

from smartclass.core.current_user import get_current_user
from smartclass.core.errors import ForbiddenError, NotFoundError
from smartclass.models.assignment import Assignment
from smartclass.models.classroom import Classroom
from smartclass.models.enrollment import ClassEnrollment
from smartclass.models.user import User


def require_teacher(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "teacher":
        raise ForbiddenError("Teacher role required")
    return current_user


def require_student(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "student":
        raise ForbiddenError("Student role required")
    return current_user


def ensure_class_exists(db: Session, class_id: int) -> Classroom:
    classroom = db.get(Classroom, class_id)
    if not classroom:
        raise NotFoundError("Class not found")
    return classroom


def is_class_teacher(classroom: Classroom, user: User) -> bool:
    return classroom.teacher_id == user.id


def is_enrolled(db: Session, class_id: int, user_id: int) -> bool:
    return (
        db.query(ClassEnrollment)
        .filter(ClassEnrollment.class_id == class_id, ClassEnrollment.student_id == user_id)
        .first()
        is not None
    )


def ensure_class_teacher(classroom: Classroom, user: User, detail: str = "Not the teacher of this class") -> None:
    if not is_class_teacher(classroom, user):
        raise ForbiddenError(detail)


def ensure_assignment_teacher(
    db: Session,
    assignment: Assignment,
    user: User,
    detail: str = "Only the class teacher can manage this assignment",
) -> Classroom:
    classroom = db.get(Classroom, assignment.class_id)
    if not classroom:
        raise ForbiddenError(detail)
    ensure_class_teacher(classroom, user, detail)
    return classroom


def ensure_can_view_class(db: Session, classroom: Classroom, user: User) -> None:
    # Teacher of the class can view
    if is_class_teacher(classroom, user):
        return

    # Enrolled student can view
    if not is_enrolled(db, classroom.id, user.id):
        raise ForbiddenError("Not enrolled in this class")
