PASSWORD = "password123"

# small cap so the over-size test doesn't have to push 10MB around
TEST_MAX_ATTACHMENT_BYTES = 64 * 1024

TEACHER = "teacher1@example.com"
OTHER_TEACHER = "teacher2@example.com"
STUDENT = "student1@example.com"
CLASSMATE = "student2@example.com"
OUTSIDER = "student3@example.com"


def login(client, email: str, password: str = PASSWORD) -> str:
    r = client.post("/api/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def headers_for(client, email: str) -> dict:
    return auth_header(login(client, email))


def submit(client, headers: dict, assignment_id: int, student_id: int, content: str = "done", files=None, **fields):
    data = {"studentId": str(student_id), "content": content, **fields}
    return client.post(
        f"/api/assignments/{assignment_id}/submit",
        headers=headers,
        data=data,
        files=files,
    )
