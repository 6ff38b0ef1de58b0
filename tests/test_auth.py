from tests.utils import STUDENT, auth_header, login


def test_register_then_login(client):
    r = client.post(
        "/api/auth/register",
        json={
            "name": "New Student",
            "email": "new@example.com",
            "password": "supersecret",
            "role": "student",
        },
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["email"] == "new@example.com"
    assert body["role"] == "student"
    assert "hashed_password" not in body

    token = login(client, "new@example.com", "supersecret")
    me = client.get("/api/auth/me", headers=auth_header(token))
    assert me.status_code == 200
    assert me.json()["name"] == "New Student"


def test_register_duplicate_email_rejected(client):
    r = client.post(
        "/api/auth/register",
        json={"name": "Dup", "email": STUDENT, "password": "password123", "role": "student"},
    )
    assert r.status_code == 400


def test_register_cannot_self_assign_admin(client):
    r = client.post(
        "/api/auth/register",
        json={"name": "Root", "email": "root@example.com", "password": "password123", "role": "admin"},
    )
    assert r.status_code == 422


def test_login_with_wrong_password_is_unauthorized(client):
    r = client.post("/api/auth/login", json={"email": STUDENT, "password": "wrong-password"})
    assert r.status_code == 401


def test_login_returns_user(client):
    r = client.post("/api/auth/login", json={"email": STUDENT, "password": "password123"})
    assert r.status_code == 200
    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == STUDENT


def test_missing_token_is_unauthorized(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json()["detail"] == "Access token required"


def test_garbage_token_is_forbidden(client):
    r = client.get("/api/auth/me", headers=auth_header("not-a-jwt"))
    assert r.status_code == 403
    assert r.json()["detail"] == "Invalid token"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
