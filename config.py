"""
Application configuration: environment-aware settings.

All environment variables are documented here. See .env.example for a template.
"""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).parent

load_dotenv(BASE_DIR / ".env")


def env(key: str, default: str = "") -> str:
    """Read an environment variable; unset and blank values fall back to ``default``."""
    return os.environ.get(key, "").strip() or default


class BaseConfig:
    # Core Flask
    SECRET_KEY = env("SECRET_KEY", "dev-key-change-in-production")
    # Database: SQLite (default) or PostgreSQL (set DATABASE_URL=postgresql://...)
    DATABASE = env("DATABASE_URL", str(BASE_DIR / "life_tracker.db"))

    # Session security
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)
    SESSION_REFRESH_EACH_REQUEST = True

    # Server-side sessions (filesystem by default; Redis when REDIS_URL is set)
    SESSION_PERMANENT = True
    SESSION_KEY_PREFIX = "lifetracker:"
    SESSION_STORE_DIR = env("SESSION_STORE_DIR", str(BASE_DIR / "session_data"))
    SESSION_STORE_THRESHOLD = 2000

    # Request limits
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # 1 MB

    # Logging
    LOG_FORMAT = env("LOG_FORMAT", "text")  # "json" or "text"
    LOG_LEVEL = env("LOG_LEVEL", "INFO")

    # Redis (sessions + rate limiting)
    REDIS_URL = env("REDIS_URL")

    # Rate limiting (defaults to in-memory; set REDIS_URL for Redis-backed)
    RATELIMIT_STORAGE_URI = env("REDIS_URL", "memory://")
    LOGIN_RATE_LIMIT = env("LOGIN_RATE_LIMIT", "10 per minute")

    # Name used for the student record when it is first provisioned
    DEFAULT_STUDENT_NAME = env("DEFAULT_STUDENT_NAME")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_FORMAT = env("LOG_FORMAT", "text")


class ProductionConfig(BaseConfig):
    DEBUG = False
    LOG_FORMAT = env("LOG_FORMAT", "json")
    # Cookie must travel on cross-site requests from the hosted frontend
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_SAMESITE = "None"

    @classmethod
    def validate(cls):
        """Fail fast on missing or insecure configuration in production."""
        errors: list[str] = []

        if cls.SECRET_KEY in ("dev-key-change-in-production", ""):
            errors.append("SECRET_KEY must be set to a secure value in production.")

        if cls.DATABASE.endswith(".db") and not os.environ.get("DATABASE_URL"):
            errors.append("DATABASE_URL must be set in production.")

        if errors:
            raise RuntimeError(
                "Production configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            )


class TestingConfig(BaseConfig):
    TESTING = True
    RATELIMIT_ENABLED = False


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
