"""
Shared helpers used across blueprints.

Kept out of app.py and auth.py to avoid circular imports.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any

from flask_login import current_user

from auth import login_manager
from db_stores import StudentStore
from errors import Forbidden


def current_student_id() -> str:
    """Student id the authenticated user's data is scoped to."""
    if current_user.student_id:
        return current_user.student_id
    student = StudentStore.get()
    if student is None:
        raise Forbidden("No student has registered yet")
    return student["id"]


def student_required(f: Callable) -> Callable:
    """Decorator that requires an authenticated user with the student role."""
    @wraps(f)
    def decorated(*args: Any, **kwargs: Any) -> Any:
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        if current_user.role != "student":
            raise Forbidden()
        return f(*args, **kwargs)
    return decorated

