# studysphere/errors.py
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

logger = logging.getLogger(__name__)


class StudySphereError(Exception):
    """Base exception; carries the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str = "", status_code: int = None):
        self.message = message or self.__class__.__name__
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


# --- Client errors ---

class BadRequest(StudySphereError):
    status_code = 400


class Unauthorized(StudySphereError):
    status_code = 401


class Forbidden(StudySphereError):
    status_code = 403


class NotFound(StudySphereError):
    status_code = 404


class InvalidTransition(StudySphereError):
    """Raised on a backward status change or any change out of a terminal state."""

    status_code = 409


# --- Collaborator errors ---

class CollaboratorError(StudySphereError):
    status_code = 502


class ExtractionError(CollaboratorError):
    pass


class ClassificationError(CollaboratorError):
    pass


class GenerationError(CollaboratorError):
    pass


class TranscriptionError(CollaboratorError):
    pass


class RateLimited(CollaboratorError):
    status_code = 429

    def __init__(self, message: str = "rate limited", retry_after: float = None):
        super().__init__(message)
        self.retry_after = retry_after


def _error(message: str, status_code: int):
    return jsonify({"success": False, "error": message}), status_code


def register_error_handlers(app):
    @app.errorhandler(StudySphereError)
    def _studysphere_error(exc):
        if exc.status_code >= 500:
            logger.error("request failed: %s", exc.message)
        return _error(exc.message, exc.status_code)

    @app.errorhandler(RequestEntityTooLarge)
    def _too_large(exc):
        return _error("File too large", 413)

    @app.errorhandler(HTTPException)
    def _http_error(exc):
        return _error(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def _unexpected(exc):
        logger.exception("unhandled error")
        return _error("Internal server error", 500)
