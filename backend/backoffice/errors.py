# Overview: API error taxonomy and the JSON error handlers registered on the app.

"""
Every error leaving the HTTP boundary has the shape:

    {"error": "<message>", "details": [{"field": ..., "message": ...}]}

`details` is only present for validation failures. Unexpected exceptions are
logged with their traceback and reported as a generic 500.
"""

from __future__ import annotations

from flask import current_app, request
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from .extensions import db


class ErrorMessages:
    INVALID_CREDENTIALS = "Invalid phone number or password"
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "You do not have permission to perform this action"
    NOT_FOUND = "Resource not found"
    VALIDATION_ERROR = "Validation error"
    INVALID_QUERY = "Invalid query parameters"
    DUPLICATE_ENTRY = "A record with this value already exists"
    INTERNAL_ERROR = "An internal server error occurred"


class ApiError(Exception):
    status_code = 500
    default_message = ErrorMessages.INTERNAL_ERROR

    def __init__(self, message: str | None = None, details: list[dict] | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ApiError):
    """400: malformed or out-of-range input. Always names the offending field(s)."""
    status_code = 400
    default_message = ErrorMessages.VALIDATION_ERROR

    @classmethod
    def for_field(cls, field: str, message: str, summary: str | None = None) -> "ValidationError":
        return cls(summary or ErrorMessages.VALIDATION_ERROR, [{"field": field, "message": message}])


class AuthenticationError(ApiError):
    """401: the message never says why authentication failed."""
    status_code = 401
    default_message = ErrorMessages.UNAUTHORIZED


class AuthorizationError(ApiError):
    status_code = 403
    default_message = ErrorMessages.FORBIDDEN


class NotFoundError(ApiError):
    status_code = 404
    default_message = ErrorMessages.NOT_FOUND


class ConflictError(ApiError):
    status_code = 409
    default_message = ErrorMessages.DUPLICATE_ENTRY


def register_error_handlers(app) -> None:
    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError):
        if error.status_code >= 500:
            current_app.logger.error("API error on %s %s: %s", request.method, request.path, error.message)
        return error.to_dict(), error.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error: IntegrityError):
        db.session.rollback()
        current_app.logger.warning("Integrity error on %s %s: %s", request.method, request.path, error.orig)
        return {"error": ErrorMessages.DUPLICATE_ENTRY}, 409

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        if error.code is None or error.code < 400 or not request.path.startswith("/api/"):
            return error
        return {"error": error.description or error.name}, error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        db.session.rollback()
        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return {"error": ErrorMessages.INTERNAL_ERROR}, 500
