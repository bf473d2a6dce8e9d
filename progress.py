"""
Derived values computed from a student snapshot.

Everything here is a pure function of snapshot dicts (camelCase keys, as
returned by student_data.build_snapshot) plus an explicit "today", so the
numbers shown to students and parents are reproducible in tests.
"""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import date, timedelta
from typing import Any, Optional

DEFAULT_FIXED_EXPENSES = 500

GRADE_POINTS = {
    "A": 4.0, "A-": 3.7,
    "B+": 3.3, "B": 3.0, "B-": 2.7,
    "C+": 2.3, "C": 2.0, "C-": 1.7,
    "D+": 1.3, "D": 1.0, "D-": 0.7,
    "F": 0.0,
}


def goal_percent(done: float, goal: float) -> int:
    """Percentage of a goal reached, floored and capped at 100.

    A goal of zero or less counts as already met.
    """
    if goal <= 0:
        return 100
    return min(100, math.floor(100 * done / goal))


def _day(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def week_bounds(today: date) -> tuple[date, date]:
    """Sunday through Saturday of the week containing ``today``."""
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def _in_week(value: Optional[str], today: date) -> bool:
    day = _day(value)
    if day is None:
        return False
    start, end = week_bounds(today)
    return start <= day <= end


# ── Wellness ────────────────────────────────────────────────────────


def weekly_gym(gym_sessions: list[dict], settings: dict, today: date) -> dict:
    this_week = [s for s in gym_sessions if _in_week(s.get("date"), today)]
    minutes = sum(s.get("durationMinutes") or 0 for s in this_week)
    goal = settings.get("weeklyGymGoal", 3)
    movement_goal = settings.get("weeklyMovementMinutes", 90)
    return {
        "sessions": len(this_week),
        "goal": goal,
        "percent": goal_percent(len(this_week), goal),
        "movementMinutes": minutes,
        "movementGoal": movement_goal,
        "movementPercent": goal_percent(minutes, movement_goal),
    }


# ── Study ───────────────────────────────────────────────────────────


def study_summary(study_sessions: list[dict], settings: dict, today: date) -> dict:
    today_minutes = sum(
        s.get("durationMinutes") or 0 for s in study_sessions if _day(s.get("date")) == today
    )
    week_minutes = sum(
        s.get("durationMinutes") or 0 for s in study_sessions if _in_week(s.get("date"), today)
    )
    goal = settings.get("dailyStudyGoalMinutes", 60)
    return {
        "todayMinutes": today_minutes,
        "dailyGoal": goal,
        "dailyPercent": goal_percent(today_minutes, goal),
        "weeklyHours": round(week_minutes / 60, 1),
    }


# ── Academics ───────────────────────────────────────────────────────


def degree_progress(classes: list[dict], settings: dict) -> dict:
    """Credit pie for the degree: completed, in progress and what is left.

    The three segments always cover ``totalCreditsRequired``; ``plannedCredits``
    separately sums the classes marked as remaining.
    """
    completed = in_progress = planned = 0
    for c in classes:
        credits = c.get("credits") or 0
        status = c.get("status")
        if status == "completed":
            completed += credits
        elif status in ("in_progress", None, ""):
            in_progress += credits
        elif status == "remaining":
            planned += credits
    required = settings.get("totalCreditsRequired", 60)
    remaining = max(0, required - completed - in_progress)

    def pct(n: int) -> float:
        return n / required * 100 if required > 0 else 0.0

    return {
        "completedCredits": completed,
        "inProgressCredits": in_progress,
        "remainingCredits": remaining,
        "plannedCredits": planned,
        "totalCreditsRequired": required,
        "completedPercent": round(pct(completed)),
        "inProgressPercent": pct(in_progress),
        "remainingPercent": pct(remaining),
    }


def cumulative_gpa(classes: list[dict]) -> float:
    """Credit-weighted GPA over classes that have one; 0 when none do."""
    graded = [c for c in classes if c.get("gpa") is not None]
    credits = sum(c.get("credits") or 0 for c in graded)
    if not credits:
        return 0.0
    return sum(c["gpa"] * (c.get("credits") or 0) for c in graded) / credits


def class_grade(
    class_id: str, categories: list[dict], exams: list[dict]
) -> Optional[float]:
    """Weighted grade for one class.

    Each category's grade is the exam-weight-weighted mean of its graded
    exams; the class grade weights those by category weight. Categories with
    nothing graded are left out. None when nothing is graded at all.
    """
    total = 0.0
    weight_used = 0.0
    for cat in categories:
        if cat.get("classId") != class_id:
            continue
        graded = [
            e for e in exams
            if e.get("categoryId") == cat["id"] and e.get("gradePercent") is not None
        ]
        exam_weight = sum(e.get("weight") or 0 for e in graded)
        if not graded or exam_weight <= 0:
            continue
        cat_grade = sum(e["gradePercent"] * (e.get("weight") or 0) for e in graded) / exam_weight
        total += cat_grade * cat["weight"]
        weight_used += cat["weight"]
    if weight_used <= 0:
        return None
    return total / weight_used


def grade_needed(current: float, desired: float, final_weight: float) -> float:
    """Score needed on a final worth ``final_weight`` (0-1) to reach ``desired``."""
    if final_weight <= 0:
        raise ValueError("final_weight must be positive")
    return round((desired - current * (1 - final_weight)) / final_weight, 1)


def simulate_gpa(classes: list[dict], hypothetical: list[dict]) -> float:
    """Cumulative GPA if the hypothetical ``{credits, grade}`` rows were added."""
    rows = [c for c in classes if c.get("gpa") is not None]
    rows += [
        {"credits": h["credits"], "gpa": GRADE_POINTS[h["grade"]]}
        for h in hypothetical
        if h.get("grade") in GRADE_POINTS
    ]
    return round(cumulative_gpa(rows), 2)


# ── Budget ──────────────────────────────────────────────────────────


def budget_summary(snapshot: dict, month: str) -> dict:
    """Income, spending and emergency fund position for ``month`` (YYYY-MM)."""
    income = sum(
        e.get("amount") or 0
        for e in snapshot.get("incomeEntries", [])
        if (e.get("date") or "").startswith(month)
    )
    expenses = [e for e in snapshot.get("expenses", []) if e.get("month") == month]
    total_expenses = sum(e.get("amount") or 0 for e in expenses)

    by_category: dict[str, float] = defaultdict(float)
    for e in expenses:
        by_category[e["category"]] += e.get("amount") or 0

    fixed = sum(e.get("amount") or 0 for e in expenses if e.get("isFixed"))
    monthly_need = fixed or DEFAULT_FIXED_EXPENSES
    fund = snapshot.get("emergencyFund") or {}
    target = monthly_need * (fund.get("targetMonths") or 3)
    current = fund.get("currentAmount") or 0

    return {
        "month": month,
        "totalIncome": income,
        "totalExpenses": total_expenses,
        "balance": income - total_expenses,
        "expensesByCategory": dict(by_category),
        "unpaidCards": [c for c in snapshot.get("creditCards", []) if not c.get("isPaid")],
        "emergencyTarget": target,
        "emergencyProgress": min(100.0, current * 100 / target) if target > 0 else 100.0,
    }


# ── Daily tracking ──────────────────────────────────────────────────


def _active(entry: Optional[dict]) -> bool:
    return bool(entry) and any(
        entry.get(k) for k in ("studyCompleted", "movementCompleted", "happinessCompleted")
    )


def recovery_status(daily_tracking: list[dict], today: date) -> dict:
    """Count inactive days before today (at most 7) and flag a comeback."""
    by_date = {t.get("date"): t for t in daily_tracking}
    inactive = 0
    for i in range(1, 8):
        day = (today - timedelta(days=i)).isoformat()
        if _active(by_date.get(day)):
            break
        inactive += 1
    return {
        "consecutiveInactiveDays": inactive,
        "recoveryMode": inactive >= 2 and not _active(by_date.get(today.isoformat())),
    }


# ── Study timer ─────────────────────────────────────────────────────


def reconcile_timer(state: dict[str, Any], now_ms: int) -> int:
    """Elapsed seconds of a persisted study timer at ``now_ms``.

    ``state`` carries ``status`` (running, paused or idle),
    ``elapsedSeconds`` and, when running, ``startTimestamp`` in epoch ms.
    """
    stored = int(state.get("elapsedSeconds") or 0)
    if state.get("status") != "running" or state.get("startTimestamp") is None:
        return stored
    return stored + max(0, (now_ms - int(state["startTimestamp"])) // 1000)


def minutes_to_log(elapsed_seconds: int) -> int:
    """Minutes recorded when a timer is stopped; partial minutes round up."""
    return math.ceil(elapsed_seconds / 60)


# ── Aggregate ───────────────────────────────────────────────────────


def compute_progress(snapshot: dict, today: date | None = None) -> dict:
    today = today or date.today()
    settings = snapshot.get("settings") or {}
    classes = snapshot.get("classes", [])
    return {
        "date": today.isoformat(),
        "gym": weekly_gym(snapshot.get("gymSessions", []), settings, today),
        "study": study_summary(snapshot.get("studySessions", []), settings, today),
        "degree": degree_progress(classes, settings),
        "gpa": round(cumulative_gpa(classes), 2),
        "targetGpa": settings.get("targetGpa"),
        "classGrades": {
            c["id"]: class_grade(
                c["id"], snapshot.get("gradingCategories", []), snapshot.get("exams", [])
            )
            for c in classes
        },
        "budget": budget_summary(snapshot, today.strftime("%Y-%m")),
        "recovery": recovery_status(snapshot.get("dailyTracking", []), today),
    }
