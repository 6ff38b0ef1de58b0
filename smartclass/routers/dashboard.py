from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import and_, case, func
from sqlalchemy.orm import Session

from smartclass.core.deps import get_db
from smartclass.core.permissions import require_student, require_teacher
from smartclass.models.assignment import Assignment
from smartclass.models.classroom import Classroom
from smartclass.models.enrollment import ClassEnrollment
from smartclass.models.submission import Submission
from smartclass.models.user import User
from smartclass.schemas.dashboard import StudentClassDashboardRow, TeacherClassStats

router = APIRouter()


@router.get("/teacher", response_model=list[TeacherClassStats])
def teacher_dashboard(
    db: Session = Depends(get_db),
    me: User = Depends(require_teacher),
):
    classes = (
        db.query(Classroom)
        .filter(Classroom.teacher_id == me.id)
        .order_by(Classroom.id.asc())
        .all()
    )

    rows: list[TeacherClassStats] = []

    for classroom in classes:
        total_students = (
            db.query(func.count(ClassEnrollment.id))
            .filter(ClassEnrollment.class_id == classroom.id)
            .scalar()
        ) or 0

        total_assignments = (
            db.query(func.count(Assignment.id))
            .filter(Assignment.class_id == classroom.id)
            .scalar()
        ) or 0

        total_submissions = (
            db.query(func.count(Submission.id))
            .join(Assignment, Submission.assignment_id == Assignment.id)
            .filter(Assignment.class_id == classroom.id)
            .scalar()
        ) or 0

        ungraded_submissions = (
            db.query(func.count(Submission.id))
            .join(Assignment, Submission.assignment_id == Assignment.id)
            .filter(
                Assignment.class_id == classroom.id,
                Submission.status == "submitted",
            )
            .scalar()
        ) or 0

        rows.append(
            TeacherClassStats(
                class_id=classroom.id,
                class_name=classroom.name,
                total_students=total_students,
                total_assignments=total_assignments,
                total_submissions=total_submissions,
                ungraded_submissions=ungraded_submissions,
            )
        )

    return rows


@router.get("/student", response_model=list[StudentClassDashboardRow])
def student_dashboard(
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    classes = (
        db.query(Classroom)
        .join(ClassEnrollment, ClassEnrollment.class_id == Classroom.id)
        .filter(ClassEnrollment.student_id == me.id)
        .order_by(Classroom.id.asc())
        .all()
    )

    result: list[dict] = []
    for c in classes:
        agg = (
            db.query(
                func.count(Assignment.id).label("total_assignments"),
                func.sum(case((Submission.id.is_not(None), 1), else_=0)).label(
                    "submitted"
                ),
                func.sum(case((Submission.id.is_(None), 1), else_=0)).label("missing"),
                func.sum(case((Submission.status == "graded", 1), else_=0)).label(
                    "graded"
                ),
                func.avg(Submission.grade).label("average_grade"),
            )
            .select_from(Assignment)
            .outerjoin(
                Submission,
                and_(
                    Submission.assignment_id == Assignment.id,
                    Submission.student_id == me.id,
                ),
            )
            .filter(Assignment.class_id == c.id)
            .first()
        )

        avg = float(agg.average_grade) if agg.average_grade is not None else None

        # next due assignment the student has NOT submitted
        next_due = (
            db.query(Assignment)
            .outerjoin(
                Submission,
                and_(
                    Submission.assignment_id == Assignment.id,
                    Submission.student_id == me.id,
                ),
            )
            .filter(Assignment.class_id == c.id)
            .filter(Assignment.status != "archived")
            .filter(Submission.id.is_(None))
            .order_by(Assignment.due_date.asc())
            .first()
        )

        next_due_is_overdue = False
        if next_due:
            due = next_due.due_date
            if due.tzinfo is None:
                due = due.replace(tzinfo=timezone.utc)
            next_due_is_overdue = due < datetime.now(timezone.utc)

        result.append(
            {
                "class_id": c.id,
                "class_name": c.name,
                "total_assignments": int(agg.total_assignments or 0),
                "submitted": int(agg.submitted or 0),
                "missing": int(agg.missing or 0),
                "graded": int(agg.graded or 0),
                "average_grade": avg,
                "next_due_at": next_due.due_date if next_due else None,
                "next_due_title": next_due.title if next_due else None,
                "next_due_is_overdue": next_due_is_overdue,
            }
        )

    return result
