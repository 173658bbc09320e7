# Overview: Domain exception taxonomy and the JSON error renderer shared by all blueprints.

"""
Every error leaves the API in one shape:

    {"error": "<short label>", "message": "<human text>", "details": ...}

Services raise the exceptions below; routes never build error bodies by hand.
`details` is optional and carries itemized validation messages or the
offending field/value of a duplicate key.
"""

from __future__ import annotations

import re
from typing import Any

from flask import current_app, jsonify
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 400
    label = "Bad request"

    def __init__(self, message: str, *, details: Any = None, label: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if label is not None:
            self.label = label

    def to_dict(self) -> dict:
        body = {"error": self.label, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(ApiError):
    """400-level input problem."""

    status_code = 400
    label = "Validation failed"


class NotFoundError(ApiError):
    status_code = 404
    label = "Not found"


class ConflictError(ApiError):
    """
    Duplicate business key.

    The default status is 409; customer and driver numbers are reported as 400
    to keep the historical contract of those endpoints.
    """

    status_code = 409
    label = "Duplicate field error"

    def __init__(self, field: str, value: Any, *, status_code: int | None = None, message: str | None = None):
        super().__init__(
            message or f"{field} '{value}' already exists",
            details={"field": field, "value": value},
        )
        self.field = field
        self.value = value
        if status_code is not None:
            self.status_code = status_code


class StateError(ApiError):
    """Operation not allowed in the record's current lifecycle state."""

    status_code = 400
    label = "Invalid state"


class DependencyError(ApiError):
    """A referenced record exists but cannot be used (inactive customer/item)."""

    status_code = 400
    label = "Invalid reference"


class AuthenticationError(ApiError):
    status_code = 401
    label = "Authentication required"


class PermissionDeniedError(ApiError):
    status_code = 403
    label = "Permission denied"


class OrderNumberAllocationError(ApiError):
    """The allocator could not find a free block of order numbers."""

    status_code = 500
    label = "Order number allocation failed"


_UNIQUE_COLUMN_RE = re.compile(r"UNIQUE constraint failed: ([\w.,\s]+)")


def _duplicate_key_body(exc: IntegrityError) -> dict:
    raw = str(exc.orig) if exc.orig is not None else str(exc)
    match = _UNIQUE_COLUMN_RE.search(raw)
    if match:
        columns = [c.strip().split(".")[-1] for c in match.group(1).split(",")]
        field = ", ".join(columns)
        return {
            "error": "Duplicate field error",
            "message": f"{field} already exists",
            "details": {"field": field},
        }
    return {"error": "Duplicate field error", "message": "A record with the same unique key already exists"}


def register_error_handlers(app) -> None:
    @app.errorhandler(ApiError)
    def handle_api_error(exc: ApiError):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(exc: IntegrityError):
        from .extensions import db

        db.session.rollback()
        current_app.logger.warning("Integrity error: %s", exc.orig)
        return jsonify(_duplicate_key_body(exc)), 409

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        return jsonify({"error": exc.name, "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        from .extensions import db

        db.session.rollback()
        current_app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error", "message": "An unexpected error occurred"}), 500
