import re

import pytest

from smartclass.core.security import hash_password
from smartclass.models.user import User
from smartclass.services import class_codes
from smartclass.services.class_codes import CodeSpaceExhausted, generate_unique_code
from tests.utils import OUTSIDER, PASSWORD, STUDENT, TEACHER, headers_for


def test_teacher_creates_class_with_six_char_code(client):
    teacher = headers_for(client, TEACHER)
    r = client.post("/api/classes", headers=teacher, json={"name": "Physics", "description": "Waves"})
    assert r.status_code == 201, r.text
    body = r.json()
    assert re.fullmatch(r"[0-9A-F]{6}", body["code"])
    assert body["studentIds"] == []
    assert body["status"] == "active"


def test_student_cannot_create_class(client):
    student = headers_for(client, STUDENT)
    r = client.post("/api/classes", headers=student, json={"name": "Nope"})
    assert r.status_code == 403


def test_only_teacher_role_creates_classes(client, db_session):
    db_session.add(
        User(name="Ops", email="ops@example.com", role="admin", hashed_password=hash_password(PASSWORD, rounds=4))
    )
    db_session.commit()

    r = client.post("/api/classes", headers=headers_for(client, "ops@example.com"), json={"name": "Nope"})
    assert r.status_code == 403


def test_join_by_code(client, seed):
    outsider = headers_for(client, OUTSIDER)
    r = client.post("/api/classes/join", headers=outsider, json={"code": seed.class_code})
    assert r.status_code == 200, r.text
    assert r.json()["classId"] == seed.class_id

    detail = client.get(f"/api/classes/{seed.class_id}", headers=outsider).json()
    assert seed.outsider_id in detail["studentIds"]


def test_join_is_case_insensitive(client, seed):
    outsider = headers_for(client, OUTSIDER)
    r = client.post("/api/classes/join", headers=outsider, json={"code": seed.class_code.lower()})
    assert r.status_code == 200


def test_double_join_rejected(client, seed):
    student = headers_for(client, STUDENT)
    r = client.post("/api/classes/join", headers=student, json={"code": seed.class_code})
    assert r.status_code == 400
    assert r.json()["detail"] == "Already joined this class"


def test_join_with_unknown_code(client):
    student = headers_for(client, OUTSIDER)
    r = client.post("/api/classes/join", headers=student, json={"code": "ZZZZZZ"})
    assert r.status_code == 404
    assert r.json()["detail"] == "Invalid class code"


def test_join_on_behalf_of_someone_else_forbidden(client, seed):
    outsider = headers_for(client, OUTSIDER)
    r = client.post(
        "/api/classes/join",
        headers=outsider,
        json={"code": seed.class_code, "studentId": seed.student_id},
    )
    assert r.status_code == 403


def test_list_classes_by_role(client, seed):
    teacher = client.get("/api/classes", headers=headers_for(client, TEACHER)).json()
    assert [c["id"] for c in teacher] == [seed.class_id]

    student = client.get("/api/classes", headers=headers_for(client, STUDENT)).json()
    assert [c["id"] for c in student] == [seed.class_id]

    outsider = client.get("/api/classes", headers=headers_for(client, OUTSIDER)).json()
    assert outsider == []


def test_class_detail_lists_students_and_assignments(client, seed):
    r = client.get(f"/api/classes/{seed.class_id}", headers=headers_for(client, TEACHER))
    assert r.status_code == 200
    body = r.json()
    assert body["teacher"]["email"] == TEACHER
    assert {s["id"] for s in body["students"]} == {seed.student_id, seed.classmate_id}
    assert [a["title"] for a in body["assignments"]] == ["HW1"]


def test_class_detail_hidden_from_non_members(client, seed):
    r = client.get(f"/api/classes/{seed.class_id}", headers=headers_for(client, OUTSIDER))
    assert r.status_code == 403


def test_class_by_code(client, seed):
    headers = headers_for(client, OUTSIDER)
    assert client.get(f"/api/classes/code/{seed.class_code}", headers=headers).json()["id"] == seed.class_id
    assert client.get("/api/classes/code/NOPE00", headers=headers).status_code == 404


def test_code_generation_falls_back_to_longer_codes(db_session, seed, monkeypatch):
    codes = iter([seed.class_code, seed.class_code, "LONGERCODE"])
    monkeypatch.setattr(class_codes, "generate_code", lambda length=6: next(codes))

    assert generate_unique_code(db_session, attempts=2) == "LONGERCODE"


def test_code_generation_is_bounded(db_session, seed, monkeypatch):
    calls = []

    def always_taken(length=6):
        calls.append(length)
        return seed.class_code

    monkeypatch.setattr(class_codes, "generate_code", always_taken)

    with pytest.raises(CodeSpaceExhausted):
        generate_unique_code(db_session, attempts=3)
    assert calls == [6, 6, 6, 10, 10, 10]
