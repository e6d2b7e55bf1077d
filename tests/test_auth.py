from datetime import timedelta

import pytest

import config
import storage
from app import create_app
from models import db
from tests.conftest import ADMIN_PASSWORD, STUDENT_PASSWORD


# ----------------- admin -----------------
def test_admin_login_then_me(admin_client, admin):
    resp = admin_client.get("/api/admin/me")
    assert resp.status_code == 200
    assert resp.get_json() == admin
    assert "password" not in resp.get_json()


def test_admin_login_response_is_sanitized(client, admin):
    resp = client.post("/api/admin/login", json={"adminId": "admin", "password": ADMIN_PASSWORD})
    body = resp.get_json()
    assert body["success"] is True
    assert body["admin"]["adminId"] == "admin"
    assert "password" not in body["admin"]


@pytest.mark.parametrize("payload", [
    {"adminId": "admin", "password": "wrong"},
    {"adminId": "nobody", "password": ADMIN_PASSWORD},
])
def test_admin_login_failures_are_uniform(client, admin, payload):
    resp = client.post("/api/admin/login", json=payload)
    assert resp.status_code == 401
    assert resp.get_json() == {"message": "Invalid credentials"}


def test_admin_login_validation(client):
    resp = client.post("/api/admin/login", json={"adminId": ""})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["message"] == "Invalid input"
    fields = {e["field"] for e in body["errors"]}
    assert {"adminId", "password"} <= fields
    assert all("code" in e for e in body["errors"])


def test_admin_logout_ends_session(admin_client):
    assert admin_client.post("/api/admin/logout").get_json() == {"success": True}
    assert admin_client.get("/api/admin/me").status_code == 401


def test_logout_without_session_succeeds(client):
    assert client.post("/api/student/logout").get_json() == {"success": True}


def test_admin_me_requires_session(client):
    resp = client.get("/api/admin/me")
    assert resp.status_code == 401
    assert resp.get_json() == {"message": "Admin authentication required"}


# ----------------- students -----------------
def test_register_logs_student_in(student_client):
    resp = student_client.get("/api/student/me")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["studentId"] == "S1"
    assert body["email"] == "s1@x.com"
    assert "password" not in body


def test_register_duplicate_email(app, client, register):
    assert register(client).status_code == 200
    resp = register(app.test_client(), student_id="S2", email="S1@x.com")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Student with this email already exists"
    with app.app_context():
        assert storage.get_student_by_student_id("S2") is None


def test_register_duplicate_student_id(app, client, register):
    assert register(client).status_code == 200
    resp = register(app.test_client(), email="other@x.com")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Student ID already exists"
    with app.app_context():
        assert storage.get_student_by_email("other@x.com") is None


def test_register_validation(client):
    resp = client.post("/api/student/register", json={
        "studentId": "S9", "email": "not-an-email", "password": "123",
        "firstName": "A", "lastName": "B",
    })
    assert resp.status_code == 400
    codes = {e["field"]: e["code"] for e in resp.get_json()["errors"]}
    assert codes["email"] == "string_pattern_mismatch"
    assert codes["password"] == "string_too_short"


def test_student_login(app, client, register):
    register(client)
    client.post("/api/student/logout")

    fresh = app.test_client()
    resp = fresh.post("/api/student/login", json={"email": "s1@x.com", "password": STUDENT_PASSWORD})
    assert resp.status_code == 200
    assert resp.get_json()["student"]["studentId"] == "S1"
    assert fresh.get("/api/student/me").status_code == 200


def test_student_login_wrong_password(client, register):
    register(client)
    resp = client.post("/api/student/login", json={"email": "s1@x.com", "password": "nope"})
    assert resp.status_code == 401
    assert resp.get_json() == {"message": "Invalid credentials"}


def test_passwords_are_hashed(app, register, client):
    register(client)
    with app.app_context():
        student = storage.get_student_by_student_id("S1")
        assert student.password != STUDENT_PASSWORD


# ----------------- guards -----------------
def test_roles_do_not_cross(admin_client, student_client):
    assert admin_client.get("/api/student/me").status_code == 401
    assert student_client.get("/api/admin/me").status_code == 401
    assert student_client.get("/api/admin/stats").get_json() == {
        "message": "Admin authentication required"}


def test_student_me_after_account_removed(app, student_client):
    with app.app_context():
        db.session.delete(storage.get_student_by_student_id("S1"))
        db.session.commit()
    resp = student_client.get("/api/student/me")
    assert resp.status_code == 404


# ----------------- session cookie -----------------
def test_session_cookie_settings(app, client, admin):
    resp = client.post("/api/admin/login", json={"adminId": "admin", "password": ADMIN_PASSWORD})
    cookie = resp.headers["Set-Cookie"]
    assert cookie.startswith(config.SESSION_COOKIE + "=")
    assert "HttpOnly" in cookie
    assert "Secure" not in cookie
    assert app.permanent_session_lifetime == timedelta(days=7)


def test_production_cookie_policy():
    policy = config.cookie_policy(True)
    assert policy["SESSION_COOKIE_SECURE"] is True
    assert policy["SESSION_COOKIE_SAMESITE"] == "None"
    assert config.cookie_policy(False)["SESSION_COOKIE_SAMESITE"] == "Lax"


def test_production_requires_secret():
    class Production(config.TestingConfig):
        PRODUCTION = True
        SECRET_KEY = None

    with pytest.raises(RuntimeError):
        create_app(Production)


def test_password_whitespace_is_kept(app, client, register):
    assert register(client, password="  padded pass  ").status_code == 200

    stripped = app.test_client().post("/api/student/login",
                                      json={"email": "s1@x.com", "password": "padded pass"})
    assert stripped.status_code == 401

    exact = app.test_client().post("/api/student/login",
                                   json={"email": " s1@x.com ", "password": "  padded pass  "})
    assert exact.status_code == 200
