"""Generic CRUD routes for every student-owned domain (/api/<domain>)."""

from __future__ import annotations

import logging

from flask import Blueprint, abort, jsonify, request
from flask_login import current_user, login_required

from audit import log_event
from db_stores import Domain, RecordStoreDB, SemesterStoreDB, get_domain
from helpers import current_student_id, student_required
from schemas import MonthQuery

logger = logging.getLogger(__name__)

bp = Blueprint("records", __name__, url_prefix="/api")


def _writable(slug: str) -> Domain:
    domain = get_domain(slug)
    if domain.read_only:
        abort(405, description=f"{slug} is read-only")
    return domain


@bp.route("/<domain>", methods=["GET"])
@login_required
def list_records(domain):
    store = RecordStoreDB(get_domain(domain), current_student_id())
    month = MonthQuery.model_validate(request.args.to_dict()).month
    if month:
        return jsonify(store.list_for_month(month))
    return jsonify(store.list())


@bp.route("/<domain>/<record_id>", methods=["GET"])
@login_required
def get_record(domain, record_id):
    store = RecordStoreDB(get_domain(domain), current_student_id())
    return jsonify(store.get(record_id))


@bp.route("/<domain>", methods=["POST"])
@student_required
def create_record(domain):
    target = _writable(domain)
    payload = request.get_json(silent=True)
    if target.slug == "semesters":
        record = SemesterStoreDB(current_student_id()).start(payload)
    else:
        record = RecordStoreDB(target, current_student_id()).create(payload)
    log_event(f"{target.slug}.create", current_user.id, record["id"])
    return jsonify(record), 201


@bp.route("/<domain>/<record_id>", methods=["PATCH"])
@student_required
def update_record(domain, record_id):
    target = _writable(domain)
    store = RecordStoreDB(target, current_student_id())
    record = store.update(record_id, request.get_json(silent=True))
    log_event(f"{target.slug}.update", current_user.id, record_id)
    return jsonify(record)


@bp.route("/<domain>/<record_id>", methods=["DELETE"])
@student_required
def delete_record(domain, record_id):
    target = _writable(domain)
    RecordStoreDB(target, current_student_id()).delete(record_id)
    log_event(f"{target.slug}.delete", current_user.id, record_id)
    return "", 204
