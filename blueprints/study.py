"""Academic views: per-class listings, the weekly study log, the study timer
and the grade calculators."""

from __future__ import annotations

import logging
import time
from datetime import date

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from audit import log_event
from db_stores import DOMAINS_BY_SLUG, RecordStoreDB
from errors import ValidationError
from helpers import current_student_id, student_required
from progress import (
    cumulative_gpa,
    grade_needed,
    minutes_to_log,
    reconcile_timer,
    simulate_gpa,
    week_bounds,
)
from schemas import GpaSimulation, GradeNeededQuery, StudyTimerStop

logger = logging.getLogger(__name__)

bp = Blueprint("study", __name__, url_prefix="/api")


def _store(slug: str) -> RecordStoreDB:
    return RecordStoreDB(DOMAINS_BY_SLUG[slug], current_student_id())


def _now_ms() -> int:
    return int(time.time() * 1000)


@bp.route("/classes/<class_id>/exams")
@login_required
def class_exams(class_id):
    _store("classes").get(class_id)
    return jsonify(_store("exams").list_for_class(class_id))


@bp.route("/classes/<class_id>/categories")
@login_required
def class_categories(class_id):
    _store("classes").get(class_id)
    return jsonify(_store("grading-categories").list_for_class(class_id))


@bp.route("/study-sessions/week")
@login_required
def study_sessions_week():
    return jsonify(_store("study-sessions").list_between(*week_bounds(date.today())))


@bp.route("/study-sessions/timer", methods=["POST"])
@student_required
def stop_timer():
    """Stop a persisted study timer and log the time as a study session."""
    timer = StudyTimerStop.model_validate(request.get_json(silent=True) or {})
    elapsed = reconcile_timer(timer.model_dump(by_alias=True), now_ms=_now_ms())
    minutes = minutes_to_log(elapsed)
    if minutes <= 0:
        raise ValidationError("elapsedSeconds: the timer has not recorded any time")

    record = _store("study-sessions").create({
        "classId": timer.class_id,
        "durationMinutes": minutes,
        "focusDuration": timer.focus_duration,
        "breakDuration": timer.break_duration,
        "sessionType": timer.session_type,
    })
    log_event("study-sessions.create", current_user.id, record["id"])
    logger.info("Study timer stopped after %ds, logged %d min", elapsed, minutes)
    return jsonify(record), 201


@bp.route("/progress/grade-needed")
@login_required
def progress_grade_needed():
    query = GradeNeededQuery.model_validate(request.args.to_dict())
    needed = grade_needed(query.current, query.desired, query.final_weight / 100)
    return jsonify({"gradeNeeded": needed, "achievable": needed <= 100})


@bp.route("/progress/gpa-simulation", methods=["POST"])
@login_required
def progress_gpa_simulation():
    body = GpaSimulation.model_validate(request.get_json(silent=True) or {})
    classes = _store("classes").list()
    in_progress = {c["id"]: c for c in classes if c["status"] == "in_progress"}

    hypothetical = []
    for class_id, grade in body.grades.items():
        if class_id not in in_progress:
            raise ValidationError(f"grades: {class_id} is not an in-progress class")
        hypothetical.append({"credits": in_progress[class_id]["credits"], "grade": grade})

    return jsonify({
        "currentGpa": round(cumulative_gpa(classes), 2),
        "simulatedGpa": simulate_gpa(classes, hypothetical) if hypothetical else None,
    })
