"""
Shared extension instances: rate limiter and server-side session store.

Created unbound here and attached to the app in create_app().
"""

from __future__ import annotations

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_session import Session

limiter = Limiter(key_func=get_remote_address, default_limits=["300 per hour"])

server_session = Session()


def configure_session_store(app) -> None:
    """Point Flask-Session at Redis when REDIS_URL is set, else at a file cache."""
    if "SESSION_TYPE" in app.config:
        return
    redis_url = app.config.get("REDIS_URL", "")
    if redis_url:
        import redis

        app.config["SESSION_TYPE"] = "redis"
        app.config["SESSION_REDIS"] = redis.Redis.from_url(redis_url)
    else:
        from cachelib import FileSystemCache

        app.config["SESSION_TYPE"] = "cachelib"
        app.config["SESSION_CACHELIB"] = FileSystemCache(
            app.config["SESSION_STORE_DIR"],
            threshold=app.config.get("SESSION_STORE_THRESHOLD", 2000),
        )
