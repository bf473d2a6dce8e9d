"""
Identity & access: Flask-Login blueprint.

Users sign in with a display name and a role; there are no passwords. Every
user is bound to the single Student record, which the first student login
provisions. Sessions live server-side (Flask-Session) for one week and are
refreshed on every request.
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, session
from flask_login import (
    LoginManager,
    UserMixin,
    current_user,
    login_required,
    login_user,
    logout_user,
)

from audit import log_event
from database import get_db, new_id, now_iso
from db_stores import StudentStore
from errors import Unauthenticated, ValidationError
from extensions import limiter

ROLES = ("student", "parent")

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")
login_manager = LoginManager()


class User(UserMixin):
    """Wraps a DB user row for Flask-Login."""

    def __init__(self, row):
        self.id = row["id"]
        self.name = row["name"]
        self.role = row["role"]
        self.student_id = row["student_id"]
        self.created_at = row["created_at"]
        self.updated_at = row["updated_at"]

    @property
    def is_student(self) -> bool:
        return self.role == "student"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "studentId": self.student_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @staticmethod
    def get(user_id: str):
        row = get_db().execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return User(row) if row else None

    @staticmethod
    def get_by_name(name: str):
        row = get_db().execute("SELECT * FROM users WHERE name = ?", (name,)).fetchone()
        return User(row) if row else None

    @staticmethod
    def sign_in(name: str, role: str, student_id: str) -> "User":
        """Find the user by name or create it, bound to ``student_id``.

        An existing user takes the requested role and gains a student binding
        if it had none.
        """
        db = get_db()
        now = now_iso()
        existing = User.get_by_name(name)
        if existing:
            db.execute(
                "UPDATE users SET role = ?, student_id = COALESCE(student_id, ?), updated_at = ? "
                "WHERE id = ?",
                (role, student_id, now, existing.id),
            )
            db.commit()
            return User.get(existing.id)

        user_id = new_id()
        try:
            db.execute(
                "INSERT INTO users (id, name, role, student_id, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (user_id, name, role, student_id, now, now),
            )
            db.commit()
        except db.IntegrityError:
            # Same name registered concurrently
            db.rollback()
            return User.sign_in(name, role, student_id)
        log_event("user_created", user_id, f"role={role}")
        return User.get(user_id)


@login_manager.user_loader
def load_user(user_id):
    return User.get(user_id)


@login_manager.unauthorized_handler
def unauthorized():
    """JSON 401; a session pointing at a deleted user is discarded."""
    if session.get("_user_id"):
        log_event("stale_session", session.get("_user_id"))
        session.clear()
        raise Unauthenticated("User not found")
    raise Unauthenticated()


def _parse_login(data) -> tuple[str, str]:
    if not isinstance(data, dict):
        data = {}
    name = data.get("name")
    role = data.get("role")
    name = name.strip() if isinstance(name, str) else ""
    if not name or not role:
        raise ValidationError("Name and role are required")
    if len(name) < 2:
        raise ValidationError("Name must be at least 2 characters")
    if role not in ROLES:
        raise ValidationError("Role must be 'student' or 'parent'")
    return name, role


@auth_bp.route("/login", methods=["POST"])
@limiter.limit(lambda: current_app.config.get("LOGIN_RATE_LIMIT", "10 per minute"))
def login():
    name, role = _parse_login(request.get_json(silent=True))

    student = StudentStore.get()
    if student is None:
        if role != "student":
            raise ValidationError("A student must register first before parents can join")
        student = StudentStore.provision(current_app.config.get("DEFAULT_STUDENT_NAME") or name)

    user = User.sign_in(name, role, student["id"])

    # Fresh session id on every login
    current_app.session_interface.regenerate(session)
    session.permanent = True
    login_user(user)
    log_event("login", user.id, f"role={role}")
    return jsonify(user.to_dict())


@auth_bp.route("/user", methods=["GET"])
@login_required
def get_user():
    return jsonify(current_user.to_dict())


@auth_bp.route("/logout", methods=["POST"])
def logout():
    user_id = current_user.get_id() if current_user.is_authenticated else None
    logout_user()
    session.clear()
    if user_id:
        log_event("logout", user_id)
    return jsonify({"message": "Logged out successfully"})
