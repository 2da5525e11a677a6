"""
Domain Exceptions

Services raise these; the FastAPI exception handlers in ``coffeeshop.main``
render every one of them as ``{"message": ...}`` with ``status_code``.
"""


class AppError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Missing or malformed input."""
    status_code = 400


class InvalidTransitionError(ValidationError):
    """Order status change not allowed from the current status."""


class AuthenticationError(AppError):
    """Missing, invalid or expired credentials."""
    status_code = 401


class AuthorizationError(AppError):
    """Acting user does not own the resource."""
    status_code = 403


class NotFoundError(AppError):
    status_code = 404
