"""
Student Life Tracker: Flask JSON API.

One student's classes, study time, wellness and budget, readable by the
student and by parents, writable only by the student.
"""

from __future__ import annotations

import hashlib
import os
from typing import Any

from flask import Flask, Response, request

import database
from auth import auth_bp, login_manager
from blueprints import register_blueprints
from errors import register_error_handlers
from extensions import configure_session_store, limiter, server_session


def create_app(test_config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)

    # Load config
    from config import config_by_name
    if test_config is not None:
        app.config.from_object(config_by_name["testing"])
        app.config.update(test_config)
    else:
        env = os.environ.get("FLASK_ENV", "development")
        cfg = config_by_name.get(env, config_by_name["development"])
        app.config.from_object(cfg)
        if hasattr(cfg, "validate"):
            cfg.validate()

    # Structured logging
    from logging_config import init_logging
    init_logging(app)

    # Server-side sessions (Redis if REDIS_URL set, file cache otherwise)
    configure_session_store(app)
    server_session.init_app(app)

    # Register database teardown and schema bootstrap
    database.init_app(app)

    # Rate limiter (disabled in testing)
    limiter.init_app(app)
    if app.config.get("TESTING"):
        limiter.enabled = False

    # Register auth blueprint and login manager
    login_manager.init_app(app)
    app.register_blueprint(auth_bp)

    # Register all application blueprints
    register_blueprints(app)
    register_error_handlers(app)

    # Security headers
    @app.after_request
    def set_security_headers(response: Response) -> Response:
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if not app.debug and not app.testing:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # ETag support for JSON API responses
    @app.after_request
    def set_etag(response: Response) -> Response:
        if (
            request.method == "GET"
            and response.status_code == 200
            and response.is_json
            and response.content_length
            and response.content_length < 1_048_576
        ):
            etag = '"' + hashlib.md5(response.get_data()).hexdigest() + '"'
            response.headers["ETag"] = etag
            if request.headers.get("If-None-Match") == etag:
                response.status_code = 304
                response.set_data(b"")
        return response

    return app


if __name__ == "__main__":
    create_app().run(port=int(os.environ.get("PORT", 5000)))
