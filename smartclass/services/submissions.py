from datetime import datetime, timezone

from smartclass.models.assignment import Assignment
from smartclass.models.user import User
from smartclass.schemas.assignment import AssignmentRead


def _as_utc(value: datetime) -> datetime:
    # SQLite often returns naive datetimes; treat as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def late_flags(due_date: datetime | None, submitted_at: datetime, grace_minutes: int) -> tuple[bool, int | None]:
    """
    Returns: (is_late, late_by_minutes)

    late_by_minutes is reported whenever the submission is past due; is_late
    only once it is past the grace period.
    """
    if due_date is None:
        return (False, None)

    due = _as_utc(due_date)
    submitted = _as_utc(submitted_at)
    if submitted <= due:
        return (False, None)

    late_minutes = int((submitted - due).total_seconds() // 60)
    return (late_minutes > grace_minutes, late_minutes)


def annotate_late(assignment: Assignment, grace_minutes: int) -> None:
    for s in assignment.submissions:
        s.is_late, s.late_by_minutes = late_flags(assignment.due_date, s.submitted_at, grace_minutes)


def assignment_for_viewer(
    assignment: Assignment,
    viewer: User,
    sees_all: bool,
    grace_minutes: int,
) -> AssignmentRead:
    """
    Serialize an assignment; unless `sees_all`, only the viewer's own
    submission is included. Aggregate counts always cover every submission.
    """
    annotate_late(assignment, grace_minutes)
    read = AssignmentRead.model_validate(assignment)
    if sees_all:
        return read
    return read.model_copy(
        update={"submissions": [s for s in read.submissions if s.student_id == viewer.id]}
    )
