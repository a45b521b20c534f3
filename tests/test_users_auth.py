"""Tests /auth (signup, login, refresh) et /users (validation des comptes par les hr)."""

from conftest import auth_headers, create_user
from teamflow.core.security import create_refresh_token


def _signup(client, email="new@test.com", role="employee"):
    return client.post(
        "/auth/signup",
        json={"email": email, "name": "Nouveau", "password": "pass123", "role": role, "department": "Tech"}
    )


def test_signup_creates_pending_user(client):
    response = _signup(client)
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["role"] == "employee"
    assert "password_hash" not in data


def test_signup_duplicate_email(client):
    _signup(client)
    response = _signup(client)
    assert response.status_code == 400
    assert response.json()["error"] == "Email already registered"


def test_signup_cannot_request_hr(client):
    assert _signup(client, role="hr").status_code == 400


def test_login_and_pending_access(client):
    _signup(client)
    response = client.post("/auth/login", json={"email": "new@test.com", "password": "pass123"})
    assert response.status_code == 200
    token = response.json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    # /users/me accessible, le reste bloqué tant que le compte est pending
    assert client.get("/users/me", headers=headers).json()["status"] == "pending"
    assert client.get("/projects", headers=headers).status_code == 403


def test_login_wrong_password(client):
    _signup(client)
    response = client.post("/auth/login", json={"email": "new@test.com", "password": "mauvais"})
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Invalid email or password"}


def test_refresh_token(client, employee):
    refresh = create_refresh_token(employee.id, employee.email, employee.role)
    response = client.post("/auth/refresh", json={"refresh_token": refresh})
    assert response.status_code == 200
    assert response.json()["refresh_token"] == refresh

    # un refresh token n'est pas un access token
    assert client.get("/users/me", headers={"Authorization": f"Bearer {refresh}"}).status_code == 401


def test_refresh_rejects_access_token(client, employee):
    access = auth_headers(employee)["Authorization"].replace("Bearer ", "")
    assert client.post("/auth/refresh", json={"refresh_token": access}).status_code == 401


def test_hr_approves_user(client, hr):
    pending = create_user("employee", status="pending")

    response = client.patch(
        f"/users/{pending.id}", headers=auth_headers(hr),
        json={"status": "active", "department": "Design"}
    )

    assert response.status_code == 200
    assert response.json()["status"] == "active"
    assert response.json()["department"] == "Design"
    assert client.get("/projects", headers=auth_headers(pending)).status_code == 200


def test_pm_cannot_approve(client, pm):
    pending = create_user("employee", status="pending")
    response = client.patch(f"/users/{pending.id}", headers=auth_headers(pm), json={"status": "active"})
    assert response.status_code == 403
    assert response.json()["error"] == "Forbidden - HR access only"


def test_rejected_user_blocked(client):
    rejected = create_user("employee", status="rejected")
    response = client.get("/tasks", headers=auth_headers(rejected))
    assert response.json()["error"] == "Account rejected"


def test_list_users_filters(client, pm):
    create_user("employee", status="pending")
    create_user("employee")

    response = client.get("/users", headers=auth_headers(pm), params={"status_filter": "pending"})
    assert [u["status"] for u in response.json()] == ["pending"]
