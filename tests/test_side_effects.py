"""Writes that update other records in the same transaction."""

from datetime import date


class TestDailyTrackingMarks:
    def test_study_session_marks_study(self, student_client):
        student_client.post("/api/study-sessions", json={"durationMinutes": 30})
        today = student_client.get("/api/daily-tracking/today").get_json()
        assert today["date"] == date.today().isoformat()
        assert today["studyCompleted"] is True
        assert today["movementCompleted"] is False

    def test_all_three_flags(self, student_client):
        student_client.post("/api/study-sessions", json={"durationMinutes": 30})
        student_client.post("/api/gym-sessions", json={"durationMinutes": 20, "type": "walk"})
        student_client.post("/api/happiness-entries", json={"entry": "Coffee with friends"})
        snap = student_client.get("/api/student-data").get_json()
        assert len(snap["dailyTracking"]) == 1
        row = snap["dailyTracking"][0]
        assert row["studyCompleted"] and row["movementCompleted"] and row["happinessCompleted"]

    def test_today_defaults_when_untracked(self, student_client):
        today = student_client.get("/api/daily-tracking/today").get_json()
        assert today["studyCompleted"] is False
        assert today["happinessCompleted"] is False

    def test_failed_create_marks_nothing(self, student_client):
        student_client.post("/api/gym-sessions", json={"durationMinutes": 20, "type": "swim"})
        snap = student_client.get("/api/student-data").get_json()
        assert snap["dailyTracking"] == []


class TestRecoveryStatus:
    def test_no_history_is_recovery(self, student_client):
        body = student_client.get("/api/daily-tracking/recovery-status").get_json()
        assert body == {"consecutiveInactiveDays": 7, "recoveryMode": True}

    def test_activity_today_ends_recovery(self, student_client):
        student_client.post("/api/happiness-entries", json={"entry": "Back at it"})
        body = student_client.get("/api/daily-tracking/recovery-status").get_json()
        assert body["consecutiveInactiveDays"] == 7
        assert body["recoveryMode"] is False


class TestEmergencyFundResync:
    def test_contributions_sum_into_fund(self, student_client):
        a = student_client.post("/api/emergency-fund-contributions", json={"amount": 100}).get_json()
        student_client.post("/api/emergency-fund-contributions", json={"amount": 50.5})
        fund = student_client.get("/api/emergency-fund").get_json()
        assert fund["currentAmount"] == 150.5
        assert fund["targetMonths"] == 3

        student_client.patch(f"/api/emergency-fund-contributions/{a['id']}", json={"amount": 200})
        assert student_client.get("/api/emergency-fund").get_json()["currentAmount"] == 250.5

        student_client.delete(f"/api/emergency-fund-contributions/{a['id']}")
        assert student_client.get("/api/emergency-fund").get_json()["currentAmount"] == 50.5


class TestSingletonUpserts:
    def test_settings_upsert(self, student_client):
        resp = student_client.patch("/api/settings", json={"dailyStudyGoalMinutes": 90, "theme": "light"})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["dailyStudyGoalMinutes"] == 90
        assert body["theme"] == "light"
        assert body["totalCreditsRequired"] == 60

        again = student_client.patch("/api/settings", json={"targetGpa": 3.8}).get_json()
        assert again["dailyStudyGoalMinutes"] == 90
        assert again["targetGpa"] == 3.8

    def test_settings_validation(self, student_client):
        resp = student_client.patch("/api/settings", json={"targetGpa": 7})
        assert resp.status_code == 400

    def test_one_settings_row(self, app, student_client):
        student_client.patch("/api/settings", json={"theme": "light"})
        student_client.patch("/api/settings", json={"theme": "dark"})
        with app.app_context():
            from database import get_db
            assert get_db().execute("SELECT COUNT(*) AS n FROM user_settings").fetchone()["n"] == 1

    def test_emergency_fund_patch(self, student_client):
        body = student_client.patch("/api/emergency-fund", json={"targetMonths": 6}).get_json()
        assert body["targetMonths"] == 6
        assert body["currentAmount"] == 0
