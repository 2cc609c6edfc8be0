"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when input is malformed or refers to the caller itself."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class AuthenticationError(AppError):
    """Raised when no principal is logged in."""

    def __init__(self, message="User must be logged in for this action"):
        """Initialize the error."""
        super().__init__(message, 401)


class UnauthorizedError(AppError):
    """Raised when the caller is not the principal an operation requires."""

    def __init__(self, message="You are not allowed to perform this action."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class DuplicateResourceError(AppError):
    """Raised when trying to create a resource that already exists."""

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message, 409)


class InvalidStateError(AppError):
    """Raised when the target's current state forbids the operation."""

    def __init__(self, message="Operation not allowed in the current state."):
        """Initialize the error."""
        super().__init__(message, 422)
