"""
DB-backed store classes for the Student Life Tracker.

Every store is scoped to one student id: reads filter on it and writes stamp
it, so a record belonging to another student is indistinguishable from a
missing one. Each public mutation commits once, side effects included.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from pydantic.alias_generators import to_camel

import schemas
from database import get_db, new_id, now_iso
from errors import NotFound, ValidationError

logger = logging.getLogger(__name__)


# ── Domain registry ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Domain:
    slug: str
    table: str
    schema: Optional[type[schemas.APIModel]]
    order_by: str = "created_at DESC"

    @property
    def read_only(self) -> bool:
        return self.schema is None

    @property
    def snapshot_key(self) -> str:
        return to_camel(self.table)

    @property
    def bools(self) -> set[str]:
        return schemas.bool_fields(self.schema) if self.schema else set()


DOMAINS: list[Domain] = [
    Domain("classes", "classes", schemas.ClassCreate),
    Domain("exams", "exams", schemas.ExamCreate, "exam_date DESC"),
    Domain("grading-categories", "grading_categories", schemas.GradingCategoryCreate),
    Domain("study-sessions", "study_sessions", schemas.StudySessionCreate, "date DESC"),
    Domain("gym-sessions", "gym_sessions", schemas.GymSessionCreate, "date DESC"),
    Domain("happiness-entries", "happiness_entries", schemas.HappinessEntryCreate,
           "date DESC, created_at DESC"),
    Domain("sleep-entries", "sleep_entries", schemas.SleepEntryCreate, "date DESC"),
    Domain("hydration-entries", "hydration_entries", schemas.HydrationEntryCreate, "date DESC"),
    Domain("assignments", "assignments", schemas.AssignmentCreate, "due_date ASC"),
    Domain("class-notes", "class_notes", schemas.ClassNoteCreate),
    Domain("expenses", "expenses", schemas.ExpenseCreate, "date DESC"),
    Domain("income-entries", "income_entries", schemas.IncomeEntryCreate, "date DESC"),
    Domain("credit-cards", "credit_cards", schemas.CreditCardCreate),
    Domain(
        "emergency-fund-contributions",
        "emergency_fund_contributions",
        schemas.EmergencyFundContributionCreate,
        "date DESC",
    ),
    Domain("daily-tracking", "daily_tracking", schemas.DailyTrackingCreate, "date DESC"),
    Domain("semesters", "semesters", schemas.SemesterCreate, "start_date DESC"),
    Domain("semester-archives", "semester_archives", None, "archived_at DESC"),
]

DOMAINS_BY_SLUG: dict[str, Domain] = {d.slug: d for d in DOMAINS}

# Creating one of these marks today's daily tracking flag
TRACKING_FLAGS: dict[str, str] = {
    "study-sessions": "study_completed",
    "gym-sessions": "movement_completed",
    "happiness-entries": "happiness_completed",
}

# Domains that can be listed for one month (YYYY-MM)
MONTH_COLUMNS: dict[str, str] = {
    "expenses": "month",
    "income-entries": "substr(date, 1, 7)",
}


def get_domain(slug: str) -> Domain:
    try:
        return DOMAINS_BY_SLUG[slug]
    except KeyError:
        raise NotFound(f"Unknown resource '{slug}'") from None


def _adapt(value: Any) -> Any:
    # Boolean columns are 0/1 integers on both backends
    return int(value) if isinstance(value, bool) else value


def _insert(table: str, values: dict[str, Any]) -> None:
    columns = ", ".join(values)
    placeholders = ", ".join("?" for _ in values)
    get_db().execute(
        f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
        tuple(_adapt(v) for v in values.values()),
    )


# ── Student ──────────────────────────────────────────────────────────


class StudentStore:
    """The single Student row every user is bound to."""

    @staticmethod
    def get() -> Optional[dict]:
        row = get_db().execute("SELECT * FROM students WHERE singleton = 1").fetchone()
        return dict(row) if row else None

    @staticmethod
    def provision(name: str) -> dict:
        """Return the Student, creating it when none exists yet.

        The insert is ignored when a row already exists, so concurrent first
        logins still end with exactly one Student.
        """
        db = get_db()
        db.execute(
            "INSERT OR IGNORE INTO students (id, singleton, name, created_at) VALUES (?, 1, ?, ?)",
            (new_id(), name or "Student", now_iso()),
        )
        db.commit()
        student = StudentStore.get()
        logger.info("Student record ready: %s", student["id"])
        return student


# ── Generic domain records ───────────────────────────────────────────


class RecordStoreDB:
    """CRUD over one domain table, scoped to a student."""

    def __init__(self, domain: Domain, student_id: str):
        self.domain = domain
        self.student_id = student_id

    def _wire(self, row) -> dict:
        return schemas.to_wire(row, self.domain.bools)

    def _select(self, where: str = "", params: tuple = (), limit: int | None = None) -> list[dict]:
        sql = (
            f"SELECT * FROM {self.domain.table} WHERE student_id = ?{where} "
            f"ORDER BY {self.domain.order_by}"
        )
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        rows = get_db().execute(sql, (self.student_id, *params)).fetchall()
        return [self._wire(r) for r in rows]

    def list(self) -> list[dict]:
        return self._select()

    def list_for_month(self, month: str) -> list[dict]:
        column = MONTH_COLUMNS.get(self.domain.slug)
        if column is None:
            raise ValidationError(f"month: {self.domain.slug} cannot be filtered by month")
        return self._select(f" AND {column} = ?", (month,))

    def list_for_class(self, class_id: str) -> list[dict]:
        return self._select(" AND class_id = ?", (class_id,))

    def list_between(self, start: date, end: date) -> list[dict]:
        """Records dated from ``start`` through ``end``, both inclusive."""
        return self._select(
            " AND substr(date, 1, 10) BETWEEN ? AND ?", (start.isoformat(), end.isoformat())
        )

    def latest(self) -> Optional[dict]:
        rows = self._select(limit=1)
        return rows[0] if rows else None

    def _row(self, record_id: str):
        return get_db().execute(
            f"SELECT * FROM {self.domain.table} WHERE id = ? AND student_id = ?",
            (record_id, self.student_id),
        ).fetchone()

    def get(self, record_id: str) -> dict:
        row = self._row(record_id)
        if row is None:
            raise NotFound()
        return self._wire(row)

    def _check_unique_date(self, value: str, exclude_id: str | None = None) -> None:
        if self.domain.slug != "daily-tracking":
            return
        row = get_db().execute(
            "SELECT id FROM daily_tracking WHERE student_id = ? AND date = ?",
            (self.student_id, value),
        ).fetchone()
        if row and row["id"] != exclude_id:
            raise ValidationError(f"date: tracking for {value} already exists")

    def create(self, payload: Any) -> dict:
        data = schemas.validate_create(self.domain.schema, payload)
        if "date" in data:
            self._check_unique_date(data["date"])

        now = now_iso()
        record_id = new_id()
        _insert(self.domain.table, {
            "id": record_id,
            "student_id": self.student_id,
            **data,
            "created_at": now,
            "updated_at": now,
        })
        self._after_write()
        get_db().commit()
        return self.get(record_id)

    def update(self, record_id: str, payload: Any) -> dict:
        data = schemas.validate_patch(self.domain.schema, payload)
        if self._row(record_id) is None:
            raise NotFound()
        if "date" in data:
            self._check_unique_date(data["date"], exclude_id=record_id)

        assignments = ", ".join(f"{col} = ?" for col in data)
        params = (*map(_adapt, data.values()), now_iso(), record_id, self.student_id)
        sep = ", " if data else ""
        get_db().execute(
            f"UPDATE {self.domain.table} SET {assignments}{sep}updated_at = ? "
            "WHERE id = ? AND student_id = ?",
            params,
        )
        if self.domain.slug == "semesters" and data.get("is_active"):
            SemesterStoreDB(self.student_id).deactivate_others(record_id)
        self._after_write(created=False)
        get_db().commit()
        return self.get(record_id)

    def delete(self, record_id: str) -> None:
        cur = get_db().execute(
            f"DELETE FROM {self.domain.table} WHERE id = ? AND student_id = ?",
            (record_id, self.student_id),
        )
        if cur.rowcount == 0:
            raise NotFound()
        self._after_write(created=False)
        get_db().commit()

    def _after_write(self, created: bool = True) -> None:
        """Apply derived writes in the same transaction as the record write."""
        flag = TRACKING_FLAGS.get(self.domain.slug)
        if created and flag:
            DailyTrackingDB(self.student_id).mark_today(flag)
        if self.domain.slug == "emergency-fund-contributions":
            EmergencyFundDB(self.student_id).resync()


# ── Daily tracking ───────────────────────────────────────────────────


class DailyTrackingDB:
    def __init__(self, student_id: str):
        self.student_id = student_id

    def for_date(self, day: str) -> Optional[dict]:
        row = get_db().execute(
            "SELECT * FROM daily_tracking WHERE student_id = ? AND date = ?",
            (self.student_id, day),
        ).fetchone()
        return schemas.to_wire(row, schemas.bool_fields(schemas.DailyTrackingCreate)) if row else None

    def today(self) -> dict:
        """Today's flags; all false when nothing was tracked yet."""
        return self.for_date(date.today().isoformat()) or {
            "date": date.today().isoformat(),
            "studyCompleted": False,
            "movementCompleted": False,
            "happinessCompleted": False,
        }

    def mark_today(self, flag: str) -> None:
        """Set one completion flag on today's row, creating the row if needed. No commit."""
        if flag not in TRACKING_FLAGS.values():
            raise ValueError(f"unknown tracking flag {flag!r}")
        now = now_iso()
        get_db().execute(
            f"INSERT INTO daily_tracking (id, student_id, date, {flag}, created_at, updated_at) "
            f"VALUES (?, ?, ?, 1, ?, ?) "
            f"ON CONFLICT(student_id, date) DO UPDATE SET {flag} = 1, updated_at = excluded.updated_at",
            (new_id(), self.student_id, date.today().isoformat(), now, now),
        )


# ── Singletons: settings and emergency fund ──────────────────────────


class _UpsertStoreDB:
    """One row per student, filled with defaults until first written."""

    table = ""
    defaults: dict[str, Any] = {}
    patch_model: type[schemas.APIModel] = schemas.APIModel

    def __init__(self, student_id: str):
        self.student_id = student_id

    def _row(self):
        return get_db().execute(
            f"SELECT * FROM {self.table} WHERE student_id = ?", (self.student_id,)
        ).fetchone()

    def get(self) -> dict:
        row = self._row()
        if row is None:
            return {to_camel(k): v for k, v in self.defaults.items()}
        return schemas.to_wire(row)

    def _upsert(self, data: dict[str, Any]) -> None:
        now = now_iso()
        if self._row() is None:
            _insert(self.table, {
                "id": new_id(),
                "student_id": self.student_id,
                **self.defaults,
                **data,
                "created_at": now,
                "updated_at": now,
            })
        elif data:
            assignments = ", ".join(f"{col} = ?" for col in data)
            get_db().execute(
                f"UPDATE {self.table} SET {assignments}, updated_at = ? WHERE student_id = ?",
                (*map(_adapt, data.values()), now, self.student_id),
            )

    def update(self, payload: Any) -> dict:
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        patch = self.patch_model.model_validate(payload)
        data = {k: v for k, v in patch.model_dump(mode="json", exclude_unset=True).items()
                if v is not None}
        self._upsert(data)
        get_db().commit()
        return self.get()


class SettingsStoreDB(_UpsertStoreDB):
    table = "user_settings"
    defaults = schemas.SETTINGS_DEFAULTS
    patch_model = schemas.SettingsPatch


class EmergencyFundDB(_UpsertStoreDB):
    table = "emergency_fund"
    defaults = schemas.EMERGENCY_FUND_DEFAULTS
    patch_model = schemas.EmergencyFundPatch

    def resync(self) -> None:
        """Set current_amount to the sum of contributions. No commit."""
        row = get_db().execute(
            "SELECT COALESCE(SUM(amount), 0) AS total FROM emergency_fund_contributions "
            "WHERE student_id = ?",
            (self.student_id,),
        ).fetchone()
        self._upsert({"current_amount": row["total"]})


# ── Semesters ────────────────────────────────────────────────────────


class SemesterStoreDB:
    def __init__(self, student_id: str):
        self.student_id = student_id
        self.records = RecordStoreDB(DOMAINS_BY_SLUG["semesters"], student_id)

    def active(self) -> Optional[dict]:
        row = get_db().execute(
            "SELECT * FROM semesters WHERE student_id = ? AND is_active = 1 "
            "ORDER BY start_date DESC LIMIT 1",
            (self.student_id,),
        ).fetchone()
        return self.records._wire(row) if row else None

    def _archive(self, semester: dict) -> None:
        """Snapshot the stats of an outgoing semester into semester_archives. No commit."""
        db = get_db()
        classes = db.execute(
            "SELECT * FROM classes WHERE student_id = ? "
            "AND (semester = ? OR (status = 'in_progress' AND (semester IS NULL OR semester = '')))",
            (self.student_id, semester["name"]),
        ).fetchall()
        completed = [c for c in classes if c["status"] == "completed"]
        completed_credits = sum(c["credits"] for c in completed)
        graded = [c for c in completed if c["gpa"] is not None]
        semester_gpa = None
        if graded and completed_credits > 0:
            semester_gpa = sum(c["gpa"] * c["credits"] for c in graded) / completed_credits

        minutes = db.execute(
            "SELECT COALESCE(SUM(duration_minutes), 0) AS total FROM study_sessions "
            "WHERE student_id = ? AND substr(date, 1, 10) >= ?",
            (self.student_id, semester["startDate"][:10]),
        ).fetchone()["total"]

        now = now_iso()
        _insert("semester_archives", {
            "id": new_id(),
            "student_id": self.student_id,
            "semester_id": semester["id"],
            "semester_name": semester["name"],
            "class_count": len(classes),
            "completed_credits": completed_credits,
            "semester_gpa": semester_gpa,
            "total_study_minutes": minutes,
            "archived_at": now,
            "created_at": now,
            "updated_at": now,
        })
        logger.info("Archived semester %s (%d classes)", semester["name"], len(classes))

    def start(self, payload: Any) -> dict:
        """Archive the active semester, then create and activate a new one."""
        data = schemas.validate_create(schemas.SemesterCreate, payload)
        current = self.active()
        if current:
            self._archive(current)

        now = now_iso()
        record_id = new_id()
        get_db().execute(
            "UPDATE semesters SET is_active = 0, updated_at = ? WHERE student_id = ? AND is_active = 1",
            (now, self.student_id),
        )
        _insert("semesters", {
            "id": record_id,
            "student_id": self.student_id,
            **data,
            "is_active": True,
            "is_new": True,
            "created_at": now,
            "updated_at": now,
        })
        get_db().commit()
        return self.records.get(record_id)

    def deactivate_others(self, record_id: str) -> None:
        """Clear is_active on every semester except ``record_id``. No commit."""
        get_db().execute(
            "UPDATE semesters SET is_active = 0, updated_at = ? "
            "WHERE student_id = ? AND id != ? AND is_active = 1",
            (now_iso(), self.student_id, record_id),
        )

    def activate(self, record_id: str) -> dict:
        if self.records._row(record_id) is None:
            raise NotFound("Semester not found")
        now = now_iso()
        db = get_db()
        self.deactivate_others(record_id)
        db.execute(
            "UPDATE semesters SET is_active = 1, updated_at = ? WHERE id = ? AND student_id = ?",
            (now, record_id, self.student_id),
        )
        db.commit()
        return self.records.get(record_id)

    def dismiss_welcome(self, record_id: str) -> dict:
        cur = get_db().execute(
            "UPDATE semesters SET is_new = 0, updated_at = ? WHERE id = ? AND student_id = ?",
            (now_iso(), record_id, self.student_id),
        )
        if cur.rowcount == 0:
            raise NotFound("Semester not found")
        get_db().commit()
        return self.records.get(record_id)


# ── App profile ──────────────────────────────────────────────────────


class ProfileStoreDB:
    """The signed-in user's own display profile, separate from student data."""

    def __init__(self, user_id: str):
        self.user_id = user_id

    def _row(self):
        return get_db().execute(
            "SELECT * FROM app_profiles WHERE user_id = ?", (self.user_id,)
        ).fetchone()

    def get(self) -> Optional[dict]:
        row = self._row()
        return schemas.to_wire(row) if row else None

    def create(self, payload: Any) -> dict:
        data = schemas.validate_create(schemas.AppProfileCreate, payload)
        if self._row() is not None:
            raise ValidationError("Profile already exists")
        now = now_iso()
        _insert("app_profiles", {
            "id": new_id(),
            "user_id": self.user_id,
            **data,
            "created_at": now,
            "updated_at": now,
        })
        get_db().commit()
        return self.get()

    def update(self, payload: Any) -> dict:
        data = schemas.validate_patch(schemas.AppProfileCreate, payload)
        if self._row() is None:
            raise NotFound("Profile not found")
        assignments = "".join(f"{col} = ?, " for col in data)
        get_db().execute(
            f"UPDATE app_profiles SET {assignments}updated_at = ? WHERE user_id = ?",
            (*data.values(), now_iso(), self.user_id),
        )
        get_db().commit()
        return self.get()
