"""Core routes: student snapshot, derived progress, daily tracking, wellness
views and the health check."""

from __future__ import annotations

import logging
from datetime import date

from flask import Blueprint, jsonify
from flask_login import login_required

from db_stores import DailyTrackingDB, DOMAINS_BY_SLUG, RecordStoreDB
from helpers import current_student_id
from progress import compute_progress, recovery_status, week_bounds
from student_data import build_snapshot

logger = logging.getLogger(__name__)

bp = Blueprint("core", __name__, url_prefix="/api")


@bp.route("/health")
def health():
    return jsonify({"status": "ok"})


@bp.route("/student-data")
@login_required
def student_data():
    return jsonify(build_snapshot(current_student_id()))


@bp.route("/progress")
@login_required
def progress():
    snapshot = build_snapshot(current_student_id())
    return jsonify(compute_progress(snapshot))


@bp.route("/daily-tracking/today")
@login_required
def daily_tracking_today():
    return jsonify(DailyTrackingDB(current_student_id()).today())


@bp.route("/daily-tracking/recovery-status")
@login_required
def daily_tracking_recovery():
    entries = RecordStoreDB(DOMAINS_BY_SLUG["daily-tracking"], current_student_id()).list()
    return jsonify(recovery_status(entries, date.today()))


@bp.route("/gym-sessions/week")
@login_required
def gym_sessions_week():
    store = RecordStoreDB(DOMAINS_BY_SLUG["gym-sessions"], current_student_id())
    return jsonify(store.list_between(*week_bounds(date.today())))


@bp.route("/happiness-entries/latest")
@bp.route("/happiness/latest")
@login_required
def happiness_latest():
    store = RecordStoreDB(DOMAINS_BY_SLUG["happiness-entries"], current_student_id())
    return jsonify(store.latest())
