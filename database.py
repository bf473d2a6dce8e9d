"""
SQLite database layer for the Student Life Tracker.

Uses raw sqlite3 with WAL mode and parameterized queries. PostgreSQL is used
instead when DATABASE is a postgres URL (see pg_compat.py).

Every domain table carries a text UUID primary key, the owning student_id and
created_at/updated_at timestamps. Booleans are stored as 0/1 integers.
"""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime
from pathlib import Path

from flask import current_app, g

from pg_compat import connect_pg, is_postgres_url

DEFAULT_DATABASE = str(Path(__file__).parent / "life_tracker.db")


SCHEMA = """
-- The one student every user is bound to. The singleton column makes a
-- second row impossible at the store level.
CREATE TABLE IF NOT EXISTS students (
    id TEXT PRIMARY KEY,
    singleton INTEGER NOT NULL DEFAULT 1 UNIQUE CHECK (singleton = 1),
    name TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    role TEXT NOT NULL DEFAULT 'student' CHECK (role IN ('student', 'parent')),
    student_id TEXT REFERENCES students(id),
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS audit_log (
    id TEXT PRIMARY KEY,
    user_id TEXT,
    action TEXT NOT NULL,
    detail TEXT NOT NULL DEFAULT '',
    ip_address TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL DEFAULT ''
);

-- Per-user display profile, independent of the shared student data
CREATE TABLE IF NOT EXISTS app_profiles (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    email TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'student',
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);

-- Academics
CREATE TABLE IF NOT EXISTS classes (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    course_name TEXT NOT NULL,
    credits INTEGER NOT NULL,
    status TEXT NOT NULL DEFAULT 'remaining',
    semester TEXT,
    estimated_completion_date TEXT,
    grade TEXT,
    gpa REAL,
    instructor TEXT,
    passing_threshold TEXT DEFAULT 'C',
    current_grade_percent REAL,
    critical_tracking INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_classes_student ON classes(student_id);

CREATE TABLE IF NOT EXISTS grading_categories (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    class_id TEXT NOT NULL,
    name TEXT NOT NULL,
    weight REAL NOT NULL,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_grading_categories_student ON grading_categories(student_id);

CREATE TABLE IF NOT EXISTS exams (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    class_id TEXT,
    category_id TEXT,
    exam_name TEXT NOT NULL,
    exam_date TEXT NOT NULL,
    weight REAL,
    grade TEXT,
    grade_percent REAL,
    max_score REAL,
    score REAL,
    notes TEXT,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_exams_student ON exams(student_id, exam_date);

CREATE TABLE IF NOT EXISTS assignments (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    class_id TEXT,
    title TEXT NOT NULL,
    description TEXT,
    due_date TEXT NOT NULL,
    completed INTEGER NOT NULL DEFAULT 0,
    priority TEXT NOT NULL DEFAULT 'medium',
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_assignments_student ON assignments(student_id, due_date);

CREATE TABLE IF NOT EXISTS class_notes (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    class_id TEXT NOT NULL,
    note TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_class_notes_student ON class_notes(student_id);

CREATE TABLE IF NOT EXISTS study_sessions (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    class_id TEXT,
    date TEXT NOT NULL,
    duration_minutes INTEGER NOT NULL,
    focus_duration INTEGER NOT NULL DEFAULT 25,
    break_duration INTEGER NOT NULL DEFAULT 5,
    session_type TEXT NOT NULL DEFAULT 'solo',
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_study_sessions_student ON study_sessions(student_id, date);

CREATE TABLE IF NOT EXISTS semesters (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    start_date TEXT NOT NULL,
    end_date TEXT,
    is_active INTEGER NOT NULL DEFAULT 0,
    is_new INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS semester_archives (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    semester_id TEXT NOT NULL,
    semester_name TEXT NOT NULL,
    class_count INTEGER NOT NULL DEFAULT 0,
    completed_credits INTEGER NOT NULL DEFAULT 0,
    semester_gpa REAL,
    total_study_minutes INTEGER NOT NULL DEFAULT 0,
    notes TEXT,
    archived_at TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);

-- Wellness
CREATE TABLE IF NOT EXISTS gym_sessions (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    date TEXT NOT NULL,
    duration_minutes INTEGER NOT NULL,
    type TEXT NOT NULL CHECK (type IN ('gym', 'walk', 'workout')),
    weight REAL,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_gym_sessions_student ON gym_sessions(student_id, date);

CREATE TABLE IF NOT EXISTS happiness_entries (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    date TEXT NOT NULL,
    entry TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS sleep_entries (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    date TEXT NOT NULL,
    bedtime TEXT,
    waketime TEXT,
    hours_slept REAL,
    quality INTEGER NOT NULL DEFAULT 3,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS hydration_entries (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    date TEXT NOT NULL,
    glasses INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS daily_tracking (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    date TEXT NOT NULL,
    study_completed INTEGER NOT NULL DEFAULT 0,
    movement_completed INTEGER NOT NULL DEFAULT 0,
    happiness_completed INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT '',
    UNIQUE(student_id, date)
);

-- Budget
CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    month TEXT NOT NULL,
    category TEXT NOT NULL,
    description TEXT NOT NULL,
    amount REAL NOT NULL,
    date TEXT NOT NULL,
    is_fixed INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_expenses_student_month ON expenses(student_id, month);

CREATE TABLE IF NOT EXISTS income_entries (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    amount REAL NOT NULL,
    source TEXT NOT NULL,
    date TEXT NOT NULL,
    note TEXT,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS credit_cards (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    card_name TEXT NOT NULL,
    balance REAL NOT NULL DEFAULT 0,
    due_date TEXT,
    is_paid INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS emergency_fund (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL UNIQUE REFERENCES students(id) ON DELETE CASCADE,
    current_amount REAL NOT NULL DEFAULT 0,
    target_months INTEGER NOT NULL DEFAULT 3,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS emergency_fund_contributions (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL REFERENCES students(id) ON DELETE CASCADE,
    amount REAL NOT NULL,
    date TEXT NOT NULL,
    note TEXT,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);

-- One settings row per student
CREATE TABLE IF NOT EXISTS user_settings (
    id TEXT PRIMARY KEY,
    student_id TEXT NOT NULL UNIQUE REFERENCES students(id) ON DELETE CASCADE,
    total_credits_required INTEGER NOT NULL DEFAULT 60,
    daily_study_goal_minutes INTEGER NOT NULL DEFAULT 60,
    weekly_gym_goal INTEGER NOT NULL DEFAULT 3,
    weekly_movement_minutes INTEGER NOT NULL DEFAULT 90,
    theme TEXT NOT NULL DEFAULT 'dark',
    university_theme TEXT NOT NULL DEFAULT 'uf',
    target_gpa REAL NOT NULL DEFAULT 3.5,
    daily_water_goal INTEGER NOT NULL DEFAULT 8,
    sleep_goal_hours REAL NOT NULL DEFAULT 8,
    created_at TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT ''
);
"""


def new_id() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


def _is_postgres() -> bool:
    """Check if the configured database is PostgreSQL."""
    return is_postgres_url(current_app.config.get("DATABASE", ""))


def get_db():
    """Return a DB connection from Flask g, creating if needed.

    Supports both SQLite (default) and PostgreSQL (when DATABASE starts
    with postgresql:// or postgres://).
    """
    if "db" not in g:
        db_url = current_app.config.get("DATABASE", DEFAULT_DATABASE)

        if is_postgres_url(db_url):
            g.db = connect_pg(db_url)
            return g.db

        g.db = sqlite3.connect(db_url)
        g.db.row_factory = sqlite3.Row
        g.db.execute("PRAGMA journal_mode=WAL")
        g.db.execute("PRAGMA foreign_keys=ON")
    return g.db


def close_db(e=None) -> None:
    """Teardown handler: close DB connection."""
    db = g.pop("db", None)
    if db is not None:
        db.close()


def init_db() -> None:
    """Execute schema DDL to create all tables."""
    db = get_db()
    db.executescript(SCHEMA)
    db.commit()


def init_app(app) -> None:
    """Register teardown and create the schema on first request."""
    app.teardown_appcontext(close_db)

    @app.before_request
    def _ensure_db():
        if not app.extensions.get("db_initialized"):
            init_db()
            app.extensions["db_initialized"] = True
