"""
Consolidated read-model of everything stored for the student.

build_snapshot() reads every domain table once and returns the object served
at /api/student-data. It never writes: settings and the emergency fund fall
back to their defaults when no row exists yet.
"""

from __future__ import annotations

import logging

from db_stores import (
    DOMAINS,
    EmergencyFundDB,
    RecordStoreDB,
    SettingsStoreDB,
    StudentStore,
)

logger = logging.getLogger(__name__)


def build_snapshot(student_id: str) -> dict:
    student = StudentStore.get()
    snapshot: dict = {
        "id": student_id,
        "name": student["name"] if student and student["id"] == student_id else "Student",
    }
    for domain in DOMAINS:
        snapshot[domain.snapshot_key] = RecordStoreDB(domain, student_id).list()
    snapshot["emergencyFund"] = EmergencyFundDB(student_id).get()
    snapshot["settings"] = SettingsStoreDB(student_id).get()
    logger.debug("Built snapshot for %s", student_id)
    return snapshot
