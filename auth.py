"""
Session identity and route guards.

The server-side session holds at most one of ``admin_id`` / ``student_id``
plus a ``user_type``. Handlers never read those keys directly; they ask for
the current identity, which is one of the three types below.
"""
from dataclasses import dataclass
from functools import wraps
from typing import Union

from flask import g, jsonify, session


@dataclass(frozen=True)
class Anonymous:
    pass


@dataclass(frozen=True)
class AdminSession:
    admin_id: str  # login id, not the row id


@dataclass(frozen=True)
class StudentSession:
    student_id: str  # row id


Identity = Union[Anonymous, AdminSession, StudentSession]


def current_identity() -> Identity:
    user_type = session.get("user_type")
    if user_type == "admin" and session.get("admin_id"):
        return AdminSession(session["admin_id"])
    if user_type == "student" and session.get("student_id"):
        return StudentSession(session["student_id"])
    return Anonymous()


def login_admin(admin):
    session.clear()
    session["admin_id"] = admin.admin_id
    session["user_type"] = "admin"


def login_student(student):
    session.clear()
    session["student_id"] = student.id
    session["user_type"] = "student"


def logout():
    # Flask-Session drops the stored record when the session is saved empty
    session.clear()


def _guard(identity_type, message):
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            identity = current_identity()
            if not isinstance(identity, identity_type):
                return jsonify({"message": message}), 401
            g.identity = identity
            return view(*args, **kwargs)
        return wrapped
    return decorator


require_admin = _guard(AdminSession, "Admin authentication required")
require_student = _guard(StudentSession, "Student authentication required")
