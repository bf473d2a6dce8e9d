"""Per-student singletons: app settings and the emergency fund."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from audit import log_event
from db_stores import EmergencyFundDB, SettingsStoreDB
from helpers import current_student_id, student_required

bp = Blueprint("settings", __name__, url_prefix="/api")


@bp.route("/settings", methods=["GET"])
@login_required
def get_settings():
    return jsonify(SettingsStoreDB(current_student_id()).get())


@bp.route("/settings", methods=["PATCH"])
@student_required
def update_settings():
    result = SettingsStoreDB(current_student_id()).update(request.get_json(silent=True))
    log_event("settings.update", current_user.id)
    return jsonify(result)


@bp.route("/emergency-fund", methods=["GET"])
@login_required
def get_emergency_fund():
    return jsonify(EmergencyFundDB(current_student_id()).get())


@bp.route("/emergency-fund", methods=["PATCH"])
@student_required
def update_emergency_fund():
    result = EmergencyFundDB(current_student_id()).update(request.get_json(silent=True))
    log_event("emergency-fund.update", current_user.id)
    return jsonify(result)
