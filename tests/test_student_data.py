"""Tests for the /api/student-data snapshot and the stores behind it."""

from datetime import date

SNAPSHOT_KEYS = {
    "id", "name", "classes", "exams", "gradingCategories", "studySessions",
    "gymSessions", "happinessEntries", "dailyTracking", "expenses",
    "incomeEntries", "creditCards", "emergencyFund", "emergencyFundContributions",
    "semesters", "semesterArchives", "settings", "sleepEntries", "assignments",
    "hydrationEntries", "classNotes",
}


class TestEmptySnapshot:
    def test_keys_and_defaults(self, student_client, student_id):
        resp = student_client.get("/api/student-data")
        assert resp.status_code == 200
        snap = resp.get_json()

        assert set(snap) == SNAPSHOT_KEYS
        assert snap["id"] == student_id
        assert snap["name"] == "Alex Rivera"
        for key in SNAPSHOT_KEYS - {"id", "name", "emergencyFund", "settings"}:
            assert snap[key] == [], key

        assert snap["emergencyFund"] == {"currentAmount": 0, "targetMonths": 3}
        assert snap["settings"] == {
            "totalCreditsRequired": 60,
            "dailyStudyGoalMinutes": 60,
            "weeklyGymGoal": 3,
            "weeklyMovementMinutes": 90,
            "theme": "dark",
            "universityTheme": "uf",
            "targetGpa": 3.5,
            "dailyWaterGoal": 8,
            "sleepGoalHours": 8,
        }

    def test_reading_does_not_write(self, app, student_client):
        student_client.get("/api/student-data")
        with app.app_context():
            from database import get_db
            db = get_db()
            assert db.execute("SELECT COUNT(*) AS n FROM user_settings").fetchone()["n"] == 0
            assert db.execute("SELECT COUNT(*) AS n FROM emergency_fund").fetchone()["n"] == 0


class TestSnapshotReflectsWrites:
    def test_created_record_appears_exactly(self, student_client):
        created = student_client.post("/api/exams", json={
            "examName": "Organic Chemistry Final",
            "examDate": "2026-12-12",
            "weight": 30,
        }).get_json()
        snap = student_client.get("/api/student-data").get_json()
        assert snap["exams"] == [created]

    def test_deleted_record_disappears(self, student_client):
        created = student_client.post("/api/credit-cards", json={"cardName": "Visa", "balance": 120}).get_json()
        student_client.delete(f"/api/credit-cards/{created['id']}")
        snap = student_client.get("/api/student-data").get_json()
        assert snap["creditCards"] == []
        assert student_client.delete(f"/api/credit-cards/{created['id']}").status_code == 404

    def test_updated_record_is_merged(self, student_client):
        created = student_client.post("/api/hydration-entries", json={"glasses": 2}).get_json()
        student_client.patch(f"/api/hydration-entries/{created['id']}", json={"glasses": 5})
        snap = student_client.get("/api/student-data").get_json()
        assert snap["hydrationEntries"][0]["glasses"] == 5
        assert snap["hydrationEntries"][0]["date"] == date.today().isoformat()

    def test_settings_in_snapshot_after_patch(self, student_client):
        student_client.patch("/api/settings", json={"weeklyGymGoal": 5})
        snap = student_client.get("/api/student-data").get_json()
        assert snap["settings"]["weeklyGymGoal"] == 5
        assert snap["settings"]["theme"] == "dark"


class TestStoreScoping:
    def test_other_student_rows_are_invisible(self, app, student_id):
        from db_stores import DOMAINS_BY_SLUG, RecordStoreDB
        from database import get_db

        with app.app_context():
            db = get_db()
            db.execute("PRAGMA foreign_keys=OFF")
            db.execute(
                "INSERT INTO gym_sessions (id, student_id, date, duration_minutes, type, created_at, updated_at) "
                "VALUES ('g1', 'someone-else', '2026-10-01', 30, 'gym', '', '')"
            )
            db.commit()
            store = RecordStoreDB(DOMAINS_BY_SLUG["gym-sessions"], student_id)
            assert store.list() == []
