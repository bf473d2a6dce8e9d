"""Tests for progress.py: goal percentages, GPA, grades, budget, timer."""

from datetime import date

import pytest

from progress import (
    budget_summary,
    class_grade,
    compute_progress,
    cumulative_gpa,
    degree_progress,
    goal_percent,
    grade_needed,
    minutes_to_log,
    reconcile_timer,
    recovery_status,
    simulate_gpa,
    study_summary,
    week_bounds,
    weekly_gym,
)

SATURDAY = date(2026, 10, 17)
SETTINGS = {"weeklyGymGoal": 3, "weeklyMovementMinutes": 90, "dailyStudyGoalMinutes": 60,
            "totalCreditsRequired": 60}


class TestGoalPercent:
    def test_floor(self):
        assert goal_percent(2, 3) == 66

    def test_capped(self):
        assert goal_percent(4, 3) == 100

    def test_zero_goal_counts_as_met(self):
        assert goal_percent(0, 0) == 100
        assert goal_percent(1, -2) == 100

    def test_nothing_done(self):
        assert goal_percent(0, 3) == 0


class TestWeek:
    def test_week_starts_sunday(self):
        assert week_bounds(SATURDAY) == (date(2026, 10, 11), date(2026, 10, 17))

    def test_sunday_is_its_own_start(self):
        assert week_bounds(date(2026, 10, 11))[0] == date(2026, 10, 11)

    def test_weekly_gym(self):
        sessions = [
            {"date": "2026-10-11T07:00:00", "durationMinutes": 30},
            {"date": "2026-10-13", "durationMinutes": 45},
            {"date": "2026-10-10", "durationMinutes": 60},
        ]
        result = weekly_gym(sessions, SETTINGS, SATURDAY)
        assert result["sessions"] == 2
        assert result["percent"] == 66
        assert result["movementMinutes"] == 75
        assert result["movementPercent"] == 83

    def test_study_summary(self):
        sessions = [
            {"date": "2026-10-17T09:00:00", "durationMinutes": 45},
            {"date": "2026-10-15T09:00:00", "durationMinutes": 60},
        ]
        result = study_summary(sessions, SETTINGS, SATURDAY)
        assert result["todayMinutes"] == 45
        assert result["dailyPercent"] == 75
        assert result["weeklyHours"] == 1.8


class TestAcademics:
    def test_cumulative_gpa(self):
        classes = [
            {"credits": 3, "gpa": 4.0},
            {"credits": 1, "gpa": 2.0},
            {"credits": 4, "gpa": None},
        ]
        assert cumulative_gpa(classes) == pytest.approx(3.5)

    def test_gpa_without_grades(self):
        assert cumulative_gpa([{"credits": 3, "gpa": None}]) == 0.0

    def test_degree_progress(self):
        classes = [
            {"credits": 30, "status": "completed"},
            {"credits": 6, "status": "in_progress"},
            {"credits": 3, "status": None},
            {"credits": 12, "status": "remaining"},
            {"credits": 3, "status": "failed"},
        ]
        result = degree_progress(classes, SETTINGS)
        assert result["completedCredits"] == 30
        assert result["inProgressCredits"] == 9
        assert result["remainingCredits"] == 21
        assert result["plannedCredits"] == 12
        assert result["completedPercent"] == 50

    def test_degree_segments_cover_required_credits(self):
        classes = [
            {"credits": 30, "status": "completed"},
            {"credits": 6, "status": "in_progress"},
        ]
        result = degree_progress(classes, SETTINGS)
        assert result["remainingCredits"] == 24
        total = result["inProgressPercent"] + result["remainingPercent"] + 50
        assert total == pytest.approx(100.0)

    def test_degree_remaining_never_negative(self):
        result = degree_progress([{"credits": 70, "status": "completed"}], SETTINGS)
        assert result["remainingCredits"] == 0
        assert result["remainingPercent"] == 0.0

    def test_class_grade(self):
        categories = [
            {"id": "exams", "classId": "bio", "weight": 60},
            {"id": "labs", "classId": "bio", "weight": 40},
            {"id": "quiz", "classId": "bio", "weight": 10},
            {"id": "other", "classId": "chem", "weight": 100},
        ]
        exams = [
            {"categoryId": "exams", "gradePercent": 90, "weight": 1},
            {"categoryId": "exams", "gradePercent": 80, "weight": 1},
            {"categoryId": "labs", "gradePercent": 70, "weight": 2},
            {"categoryId": "quiz", "gradePercent": None, "weight": 1},
            {"categoryId": "other", "gradePercent": 10, "weight": 1},
        ]
        assert class_grade("bio", categories, exams) == pytest.approx(79.0)

    def test_class_grade_none_when_ungraded(self):
        categories = [{"id": "exams", "classId": "bio", "weight": 60}]
        assert class_grade("bio", categories, []) is None

    def test_grade_needed(self):
        assert grade_needed(current=85, desired=90, final_weight=0.3) == 101.7

    def test_grade_needed_rejects_zero_weight(self):
        with pytest.raises(ValueError):
            grade_needed(80, 90, 0)

    def test_simulate_gpa(self):
        classes = [{"credits": 3, "gpa": 4.0}]
        assert simulate_gpa(classes, [{"credits": 3, "grade": "B"}]) == 3.5


class TestBudget:
    SNAPSHOT = {
        "incomeEntries": [
            {"amount": 1000, "date": "2026-10-01"},
            {"amount": 200, "date": "2026-09-30"},
        ],
        "expenses": [
            {"month": "2026-10", "category": "rent", "amount": 400, "isFixed": True},
            {"month": "2026-10", "category": "food", "amount": 100, "isFixed": False},
            {"month": "2026-09", "category": "food", "amount": 80, "isFixed": False},
        ],
        "creditCards": [{"cardName": "Visa", "isPaid": False}, {"cardName": "Amex", "isPaid": True}],
        "emergencyFund": {"currentAmount": 600, "targetMonths": 3},
    }

    def test_month_totals(self):
        result = budget_summary(self.SNAPSHOT, "2026-10")
        assert result["totalIncome"] == 1000
        assert result["totalExpenses"] == 500
        assert result["balance"] == 500
        assert result["expensesByCategory"] == {"rent": 400, "food": 100}
        assert [c["cardName"] for c in result["unpaidCards"]] == ["Visa"]

    def test_emergency_target_from_fixed_expenses(self):
        result = budget_summary(self.SNAPSHOT, "2026-10")
        assert result["emergencyTarget"] == 1200
        assert result["emergencyProgress"] == 50.0

    def test_emergency_target_default(self):
        result = budget_summary(self.SNAPSHOT, "2026-09")
        assert result["emergencyTarget"] == 1500
        assert result["emergencyProgress"] == 40.0

    def test_emergency_progress_capped(self):
        snapshot = dict(self.SNAPSHOT, emergencyFund={"currentAmount": 5000, "targetMonths": 3})
        assert budget_summary(snapshot, "2026-10")["emergencyProgress"] == 100.0


class TestRecovery:
    def test_counts_inactive_days(self):
        tracking = [{"date": "2026-10-13", "studyCompleted": True}]
        assert recovery_status(tracking, SATURDAY) == {
            "consecutiveInactiveDays": 3,
            "recoveryMode": True,
        }

    def test_one_inactive_day_is_not_recovery(self):
        tracking = [{"date": "2026-10-15", "movementCompleted": True}]
        assert recovery_status(tracking, SATURDAY)["recoveryMode"] is False

    def test_rows_without_flags_are_inactive(self):
        tracking = [{"date": "2026-10-16", "studyCompleted": False}]
        assert recovery_status(tracking, SATURDAY)["consecutiveInactiveDays"] == 7


class TestStudyTimer:
    def test_running_timer_adds_wall_clock(self):
        state = {"status": "running", "elapsedSeconds": 30, "startTimestamp": 1_000_000}
        assert reconcile_timer(state, now_ms=1_090_500) == 120

    def test_paused_timer_keeps_stored(self):
        state = {"status": "paused", "elapsedSeconds": 30, "startTimestamp": 1_000_000}
        assert reconcile_timer(state, now_ms=9_000_000) == 30

    def test_idle_timer(self):
        assert reconcile_timer({"status": "idle"}, now_ms=5) == 0

    def test_minutes_logged_round_up(self):
        assert minutes_to_log(61) == 2
        assert minutes_to_log(60) == 1
        assert minutes_to_log(0) == 0


class TestComputeProgress:
    def test_empty_snapshot(self):
        result = compute_progress({"settings": SETTINGS}, SATURDAY)
        assert result["gym"]["percent"] == 0
        assert result["gpa"] == 0.0
        assert result["budget"]["month"] == "2026-10"
        assert result["recovery"]["consecutiveInactiveDays"] == 7

    def test_endpoint(self, student_client):
        student_client.post("/api/gym-sessions", json={"durationMinutes": 30, "type": "gym"})
        body = student_client.get("/api/progress").get_json()
        assert body["gym"]["sessions"] == 1
        assert body["gym"]["percent"] == 33
        assert body["recovery"]["recoveryMode"] is False
