"""
Audit logging: records sign-ins, sign-outs, stale sessions and data mutations.

Events are written to both the audit_log table and structured logging.
"""

from __future__ import annotations

import logging

from flask import has_request_context, request

from database import get_db, new_id, now_iso

logger = logging.getLogger(__name__)


def log_event(action: str, user_id: str | None = None, detail: str = "") -> None:
    """Insert an audit log entry and emit a structured log line."""
    ip = (request.remote_addr or "") if has_request_context() else ""

    db = get_db()
    try:
        db.execute(
            "INSERT INTO audit_log (id, user_id, action, detail, ip_address, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (new_id(), user_id, action, detail, ip, now_iso()),
        )
        db.commit()
    except db.DatabaseError:
        # An audit write must never fail the request it describes
        db.rollback()
        logger.warning("audit write failed for %s", action, exc_info=True)

    logger.info("audit: %s user_id=%s detail=%s ip=%s", action, user_id, detail, ip)
