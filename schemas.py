"""
Request schemas for every student-owned domain.

Payloads arrive in camelCase and are stored in snake_case columns. Each
domain has a ``*Create`` model (required fields, defaults, enum and range
constraints); the matching patch model accepts any subset of the same fields.
Keys the client is not allowed to set (``id``, ``studentId``, timestamps) are
simply ignored.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, create_model
from pydantic.alias_generators import to_camel

from errors import ValidationError


def _today() -> str:
    return date.today().isoformat()


def _now() -> str:
    return datetime.now().isoformat(timespec="seconds")


class APIModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


ClassStatus = Literal["completed", "in_progress", "remaining", "failed"]
PassingThreshold = Literal["A", "B", "C"]
Priority = Literal["low", "medium", "high"]
LetterGrade = Literal["A", "A-", "B+", "B", "B-", "C+", "C", "C-", "D+", "D", "D-", "F"]

MONTH_PATTERN = r"^\d{4}-\d{2}$"


# ---- Academics ----

class ClassCreate(APIModel):
    course_name: str = Field(..., min_length=1)
    credits: int = Field(..., ge=0)
    status: ClassStatus = "remaining"
    semester: Optional[str] = None
    estimated_completion_date: Optional[str] = None
    grade: Optional[str] = None
    gpa: Optional[float] = Field(None, ge=0, le=4)
    instructor: Optional[str] = None
    passing_threshold: PassingThreshold = "C"
    current_grade_percent: Optional[float] = None
    critical_tracking: bool = False


class ExamCreate(APIModel):
    class_id: Optional[str] = None
    category_id: Optional[str] = None
    exam_name: str = Field(..., min_length=1)
    exam_date: str
    weight: Optional[float] = None
    grade: Optional[str] = None
    grade_percent: Optional[float] = None
    max_score: Optional[float] = None
    score: Optional[float] = None
    notes: Optional[str] = None


class GradingCategoryCreate(APIModel):
    class_id: str
    name: str = Field(..., min_length=1)
    weight: float = Field(..., ge=0)


class AssignmentCreate(APIModel):
    class_id: Optional[str] = None
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    due_date: str
    completed: bool = False
    priority: Priority = "medium"


class ClassNoteCreate(APIModel):
    class_id: str
    note: str = Field(..., min_length=1)


class StudySessionCreate(APIModel):
    class_id: Optional[str] = None
    date: str = Field(default_factory=_now)
    duration_minutes: int = Field(..., gt=0)
    focus_duration: int = Field(25, gt=0)
    break_duration: int = Field(5, ge=0)
    session_type: Literal["solo", "group"] = "solo"


class SemesterCreate(APIModel):
    name: str = Field(..., min_length=1)
    start_date: str
    end_date: Optional[str] = None
    is_active: bool = False
    is_new: bool = True


# ---- Wellness ----

class GymSessionCreate(APIModel):
    date: str = Field(default_factory=_now)
    duration_minutes: int = Field(..., gt=0)
    type: Literal["gym", "walk", "workout"]
    weight: Optional[float] = None


class HappinessEntryCreate(APIModel):
    date: str = Field(default_factory=_today)
    entry: str = Field(..., min_length=1)


class SleepEntryCreate(APIModel):
    date: str = Field(default_factory=_today)
    bedtime: Optional[str] = None
    waketime: Optional[str] = None
    hours_slept: Optional[float] = Field(None, ge=0, le=24)
    quality: int = Field(3, ge=1, le=5)


class HydrationEntryCreate(APIModel):
    date: str = Field(default_factory=_today)
    glasses: int = Field(0, ge=0)


class DailyTrackingCreate(APIModel):
    date: str = Field(default_factory=_today)
    study_completed: bool = False
    movement_completed: bool = False
    happiness_completed: bool = False


# ---- Budget ----

class ExpenseCreate(APIModel):
    month: str = Field(..., pattern=MONTH_PATTERN)
    category: str = Field(..., min_length=1)
    description: str
    amount: float
    date: str = Field(default_factory=_today)
    is_fixed: bool = False


class IncomeEntryCreate(APIModel):
    amount: float
    source: str = Field(..., min_length=1)
    date: str = Field(default_factory=_today)
    note: Optional[str] = None


class CreditCardCreate(APIModel):
    card_name: str = Field(..., min_length=1)
    balance: float = 0
    due_date: Optional[str] = None
    is_paid: bool = False


class EmergencyFundContributionCreate(APIModel):
    amount: float
    date: str = Field(default_factory=_today)
    note: Optional[str] = None


# ---- Singletons ----

SETTINGS_DEFAULTS: dict[str, Any] = {
    "total_credits_required": 60,
    "daily_study_goal_minutes": 60,
    "weekly_gym_goal": 3,
    "weekly_movement_minutes": 90,
    "theme": "dark",
    "university_theme": "uf",
    "target_gpa": 3.5,
    "daily_water_goal": 8,
    "sleep_goal_hours": 8,
}

EMERGENCY_FUND_DEFAULTS: dict[str, Any] = {
    "current_amount": 0,
    "target_months": 3,
}


class SettingsPatch(APIModel):
    total_credits_required: Optional[int] = Field(None, ge=0)
    daily_study_goal_minutes: Optional[int] = Field(None, ge=0)
    weekly_gym_goal: Optional[int] = Field(None, ge=0)
    weekly_movement_minutes: Optional[int] = Field(None, ge=0)
    theme: Optional[str] = None
    university_theme: Optional[str] = None
    target_gpa: Optional[float] = Field(None, ge=0, le=4)
    daily_water_goal: Optional[int] = Field(None, ge=0)
    sleep_goal_hours: Optional[float] = Field(None, ge=0, le=24)


class EmergencyFundPatch(APIModel):
    current_amount: Optional[float] = None
    target_months: Optional[int] = Field(None, ge=1)


# ---- Profile ----

class AppProfileCreate(APIModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    role: Literal["student", "parent"] = "student"


# ---- Queries and calculators ----

class MonthQuery(APIModel):
    month: Optional[str] = Field(None, pattern=MONTH_PATTERN)


class GradeNeededQuery(APIModel):
    current: float = Field(..., ge=0)
    desired: float = Field(..., ge=0)
    # Percentage of the course grade the final is worth
    final_weight: float = Field(..., gt=0, le=100)


class GpaSimulation(APIModel):
    """Hypothetical letter grades keyed by in-progress class id."""

    grades: dict[str, LetterGrade]


class StudyTimerStop(APIModel):
    status: Literal["running", "paused", "idle"]
    elapsed_seconds: int = Field(0, ge=0)
    start_timestamp: Optional[int] = None
    class_id: Optional[str] = None
    focus_duration: int = Field(25, gt=0)
    break_duration: int = Field(5, ge=0)
    session_type: Literal["solo", "group"] = "solo"


# ---- Patch models ----

def _patch_model(create_cls: type[APIModel]) -> type[APIModel]:
    """Derive a model accepting any subset of ``create_cls``'s fields."""
    fields: dict[str, Any] = {}
    for name, field in create_cls.model_fields.items():
        annotation = field.annotation
        if field.metadata:
            annotation = Annotated[(annotation, *field.metadata)]
        fields[name] = (Optional[annotation], None)
    return create_model(
        create_cls.__name__.replace("Create", "Patch"), __base__=APIModel, **fields
    )


def non_nullable_fields(create_cls: type[APIModel]) -> set[str]:
    """Fields that must carry a value: required ones and ones with a non-null default."""
    result = set()
    for name, field in create_cls.model_fields.items():
        if field.is_required() or field.default_factory is not None or field.default is not None:
            result.add(name)
    return result


def bool_fields(model_cls: type[APIModel]) -> set[str]:
    return {name for name, f in model_cls.model_fields.items() if f.annotation is bool}


PATCH_MODELS: dict[type[APIModel], type[APIModel]] = {}


def patch_model_for(create_cls: type[APIModel]) -> type[APIModel]:
    if create_cls not in PATCH_MODELS:
        PATCH_MODELS[create_cls] = _patch_model(create_cls)
    return PATCH_MODELS[create_cls]


def validate_create(create_cls: type[APIModel], payload: Any) -> dict[str, Any]:
    """Validate a create payload; return snake_case column values."""
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return create_cls.model_validate(payload).model_dump(mode="json")


def validate_patch(create_cls: type[APIModel], payload: Any) -> dict[str, Any]:
    """Validate the supplied subset of fields; return only those fields."""
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    patch = patch_model_for(create_cls).model_validate(payload)
    data = patch.model_dump(mode="json", exclude_unset=True)
    required = non_nullable_fields(create_cls)
    for name, value in data.items():
        if value is None and name in required:
            raise ValidationError(f"{to_camel(name)}: must not be null")
    return data


# ---- Output ----

def to_wire(row: Any, bools: set[str] = frozenset()) -> dict[str, Any]:
    """Convert a stored row into its camelCase JSON shape."""
    out = {}
    for key in row.keys():
        value = row[key]
        if key in bools and value is not None:
            value = bool(value)
        out[to_camel(key)] = value
    return out
