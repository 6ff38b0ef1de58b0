import os
import shutil
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from smartclass.core.config import Settings
from smartclass.core.security import hash_password
from smartclass.db.base import Base
from smartclass.main import create_app
from smartclass.models.assignment import Assignment
from smartclass.models.attachment import Attachment
from smartclass.models.classroom import Classroom
from smartclass.models.enrollment import ClassEnrollment
from smartclass.models.submission import Submission
from smartclass.models.user import User
from tests.utils import PASSWORD, TEST_MAX_ATTACHMENT_BYTES

TEST_DB_FILE = "test_smartclass.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"


@pytest.fixture(scope="session")
def upload_dir(tmp_path_factory):
    return tmp_path_factory.mktemp("uploads") / "assignments"


@pytest.fixture(scope="session")
def settings(upload_dir):
    return Settings(
        DATABASE_URL=TEST_DB_URL,
        UPLOAD_DIR=str(upload_dir),
        BCRYPT_ROUNDS=4,
        MAX_ATTACHMENT_BYTES=TEST_MAX_ATTACHMENT_BYTES,
        SECRET_KEY="test-secret-key",
    )


@pytest.fixture(scope="session")
def app(settings):
    """Create a fresh schema once for the whole test session."""
    application = create_app(settings)
    engine = application.state.engine
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield application
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture()
def db_session(app):
    db = app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def seed(app, upload_dir):
    """Seed a clean minimal dataset for each test and return its ids."""
    shutil.rmtree(upload_dir, ignore_errors=True)
    upload_dir.mkdir(parents=True)

    db = app.state.session_factory()
    try:
        # Clear tables (child -> parent)
        db.query(Attachment).delete()
        db.query(Submission).delete()
        db.query(Assignment).delete()
        db.query(ClassEnrollment).delete()
        db.query(Classroom).delete()
        db.query(User).delete()
        db.commit()

        hashed = hash_password(PASSWORD, rounds=4)

        # Users
        teacher = User(name="Teacher One", email="teacher1@example.com", role="teacher", hashed_password=hashed)
        other_teacher = User(name="Teacher Two", email="teacher2@example.com", role="teacher", hashed_password=hashed)
        student = User(name="Student One", email="student1@example.com", role="student", hashed_password=hashed)
        classmate = User(name="Student Two", email="student2@example.com", role="student", hashed_password=hashed)
        outsider = User(name="Student Three", email="student3@example.com", role="student", hashed_password=hashed)
        db.add_all([teacher, other_teacher, student, classmate, outsider])
        db.commit()

        # Class
        classroom = Classroom(name="CS101", code="ABC123", teacher_id=teacher.id, status="active")
        db.add(classroom)
        db.commit()

        # Enrollments
        db.add_all(
            [
                ClassEnrollment(class_id=classroom.id, student_id=student.id),
                ClassEnrollment(class_id=classroom.id, student_id=classmate.id),
            ]
        )

        # Assignment (future due date)
        assignment = Assignment(
            class_id=classroom.id,
            created_by=teacher.id,
            title="HW1",
            description="First homework",
            due_date=datetime.now(timezone.utc) + timedelta(days=1),
            points=100,
            status="active",
        )
        db.add(assignment)
        db.commit()

        yield SimpleNamespace(
            teacher_id=teacher.id,
            other_teacher_id=other_teacher.id,
            student_id=student.id,
            classmate_id=classmate.id,
            outsider_id=outsider.id,
            class_id=classroom.id,
            class_code=classroom.code,
            assignment_id=assignment.id,
        )
    finally:
        db.close()


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c
