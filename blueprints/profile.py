"""The signed-in user's app profile (/api/profile)."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from audit import log_event
from db_stores import ProfileStoreDB

bp = Blueprint("profile", __name__, url_prefix="/api")


@bp.route("/profile", methods=["GET"])
@login_required
def get_profile():
    return jsonify(ProfileStoreDB(current_user.id).get())


@bp.route("/profile", methods=["POST"])
@login_required
def create_profile():
    profile = ProfileStoreDB(current_user.id).create(request.get_json(silent=True))
    log_event("profile.create", current_user.id, profile["id"])
    return jsonify(profile), 201


@bp.route("/profile", methods=["PATCH"])
@login_required
def update_profile():
    profile = ProfileStoreDB(current_user.id).update(request.get_json(silent=True))
    log_event("profile.update", current_user.id, profile["id"])
    return jsonify(profile)
