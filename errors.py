"""
API error taxonomy and JSON error handlers.

Every error leaves the API as ``{"error": "<message>"}`` with the status
code of its class.
"""

from __future__ import annotations

import logging

import pydantic
from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid data"


class Unauthenticated(ApiError):
    status_code = 401
    default_message = "Not authenticated"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Only students can perform this action"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


def describe_validation_error(exc: pydantic.ValidationError) -> str:
    """Collapse a pydantic error into one short human-readable line."""
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first.get("loc", ()) if part != "__root__")
    msg = first.get("msg", "Invalid value")
    return f"{loc}: {msg}" if loc else msg


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def _handle_api_error(exc: ApiError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, exc.message)
        return jsonify({"error": exc.message}), exc.status_code

    @app.errorhandler(pydantic.ValidationError)
    def _handle_pydantic_error(exc: pydantic.ValidationError):
        return jsonify({"error": describe_validation_error(exc)}), 400

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        return jsonify({"error": exc.description or exc.name}), exc.code

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": ApiError.default_message}), 500
