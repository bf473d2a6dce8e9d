"""Semester lifecycle routes: active semester, activation, welcome banner."""

from __future__ import annotations

from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from audit import log_event
from db_stores import SemesterStoreDB
from helpers import current_student_id, student_required

bp = Blueprint("semesters", __name__, url_prefix="/api/semesters")


@bp.route("/active")
@login_required
def active():
    return jsonify(SemesterStoreDB(current_student_id()).active())


@bp.route("/<semester_id>/activate", methods=["POST"])
@student_required
def activate(semester_id):
    result = SemesterStoreDB(current_student_id()).activate(semester_id)
    log_event("semesters.activate", current_user.id, semester_id)
    return jsonify(result)


@bp.route("/<semester_id>/dismiss-welcome", methods=["POST"])
@student_required
def dismiss_welcome(semester_id):
    result = SemesterStoreDB(current_student_id()).dismiss_welcome(semester_id)
    log_event("semesters.dismiss-welcome", current_user.id, semester_id)
    return jsonify(result)
