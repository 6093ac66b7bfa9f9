# utils/errors.py
"""
Application error taxonomy and the JSON error handlers.

Every failure of an operation is terminal for that request: the session is
rolled back, the client gets ``{"error": CODE, "message": text}`` and nothing
is retried on the server.
"""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 400
    code = "BAD_REQUEST"
    default_message = "Request could not be processed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {"error": self.code, "message": self.message}


class ValidationError(AppError, ValueError):
    """Bad input, detected before anything is written."""

    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid input."


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found."


class PermissionDeniedError(AppError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "You are not allowed to do this."


class PreconditionError(AppError):
    """Transition attempted from the wrong source state."""

    status_code = 409
    code = "PRECONDITION_FAILED"
    default_message = "The record is not in a state that allows this action."


class ConflictError(AppError):
    """Stale or concurrent write."""

    status_code = 409
    code = "CONFLICT"
    default_message = "The record was changed by someone else. Reload and try again."


def register_error_handlers(app):
    from configs import db

    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        db.session.rollback()
        logger.warning("%s: %s", err.code, err.message)
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        code = (err.name or "error").upper().replace(" ", "_")
        return jsonify({"error": code, "message": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        db.session.rollback()
        logger.exception("Unhandled error")
        return (
            jsonify({"error": "INTERNAL_SERVER_ERROR", "message": "Unexpected error."}),
            500,
        )
