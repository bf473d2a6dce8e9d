"""Tests for the app factory: config, error envelope, headers, logging."""

import json
import logging

import pytest


class TestHealth:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.get_json() == {"status": "ok"}

    def test_request_id_header(self, client):
        resp = client.get("/api/health", headers={"X-Request-ID": "abc123"})
        assert resp.headers["X-Request-ID"] == "abc123"

    def test_security_headers(self, client):
        resp = client.get("/api/health")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "DENY"

    def test_etag_not_modified(self, client):
        first = client.get("/api/health")
        etag = first.headers["ETag"]
        second = client.get("/api/health", headers={"If-None-Match": etag})
        assert second.status_code == 304


class TestErrorEnvelope:
    def test_unknown_route_is_json(self, client):
        resp = client.get("/api/a/b/c")
        assert resp.status_code == 404
        assert "error" in resp.get_json()

    def test_wrong_method_is_json(self, client):
        resp = client.put("/api/health")
        assert resp.status_code == 405
        assert "error" in resp.get_json()

    def test_unexpected_error_is_500(self, app, student_client, monkeypatch):
        import blueprints.core as core

        def boom(student_id):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(core, "build_snapshot", boom)
        resp = student_client.get("/api/student-data")
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error"}


class TestConfig:
    def test_production_rejects_default_secret(self, monkeypatch):
        from config import ProductionConfig

        monkeypatch.setattr(ProductionConfig, "SECRET_KEY", "dev-key-change-in-production")
        with pytest.raises(RuntimeError, match="SECRET_KEY"):
            ProductionConfig.validate()

    def test_production_cookie_is_cross_site(self):
        from config import ProductionConfig

        assert ProductionConfig.SESSION_COOKIE_SECURE is True
        assert ProductionConfig.SESSION_COOKIE_SAMESITE == "None"

    def test_session_lifetime_is_one_week(self, app):
        assert app.config["PERMANENT_SESSION_LIFETIME"].days == 7

    def test_blank_env_falls_back_to_default(self, monkeypatch):
        from config import env

        monkeypatch.setenv("DATABASE_URL", "")
        monkeypatch.setenv("SESSION_STORE_DIR", "   ")
        assert env("DATABASE_URL", "life_tracker.db") == "life_tracker.db"
        assert env("SESSION_STORE_DIR", "session_data") == "session_data"

    def test_set_env_wins(self, monkeypatch):
        from config import env

        monkeypatch.setenv("DATABASE_URL", "postgresql://db/tracker")
        assert env("DATABASE_URL", "life_tracker.db") == "postgresql://db/tracker"

    def test_env_template_keeps_defaults(self, monkeypatch):
        from dotenv import dotenv_values

        from config import BASE_DIR, env

        for key, value in dotenv_values(BASE_DIR / ".env.example").items():
            monkeypatch.setenv(key, value or "")
        assert env("DATABASE_URL", "life_tracker.db") == "life_tracker.db"
        assert env("SESSION_STORE_DIR", "session_data") == "session_data"
        assert env("REDIS_URL", "memory://") == "memory://"

    def test_test_config_overrides(self, app):
        assert app.config["TESTING"] is True
        assert app.config["SECRET_KEY"] == "test-secret-key"


class TestLogging:
    def test_json_formatter(self):
        from logging_config import JSONFormatter

        record = logging.LogRecord("tracker", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        record.request_id = "req-1"
        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "hello world"
        assert entry["level"] == "INFO"
        assert entry["request_id"] == "req-1"
