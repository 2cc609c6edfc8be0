from flask import Blueprint, current_app, jsonify

from .core.types import ErrorResponse
from .errors import (
    AppError,
    AuthenticationError,
    DuplicateResourceError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)

error_handlers_bp = Blueprint("error_handlers", __name__)


def _error_response(message, status_code):
    body: ErrorResponse = {"status": "error", "message": message}
    return jsonify(body), status_code


@error_handlers_bp.app_errorhandler(ValidationError)
def handle_validation_error(error):
    """Handles malformed or self-referential input."""
    current_app.logger.warning(f"Validation Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(AuthenticationError)
def handle_authentication_error(error):
    """Handles requests made without a logged in user."""
    current_app.logger.info(f"Authentication Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(UnauthorizedError)
def handle_unauthorized_error(error):
    """Handles callers that are not the required principal."""
    current_app.logger.warning(f"Unauthorized: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(DuplicateResourceError)
def handle_duplicate_resource_error(error):
    """Handles duplicate resource errors."""
    current_app.logger.warning(f"Duplicate Resource Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(InvalidStateError)
def handle_invalid_state_error(error):
    """Handles operations against an aggregate in the wrong state."""
    current_app.logger.warning(f"Invalid State Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles generic application errors."""
    current_app.logger.error(f"Application Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return _error_response("Page Not Found", 404)


@error_handlers_bp.app_errorhandler(405)
def handle_405(e):
    """Handles requests with an unsupported method."""
    return _error_response("Method Not Allowed", 405)


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    # Avoid exposing raw error details to the caller
    return _error_response("An unexpected error occurred. Please try again later.", 500)
