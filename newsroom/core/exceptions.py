"""
Exception taxonomy for the newsroom services.

Every error carries the HTTP status the API layer should answer with, so the
orchestrators can raise and the routes only have to translate.
"""


class NewsroomError(Exception):
    """Base exception for newsroom operations."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RequestValidationError(NewsroomError):
    """Raised when a request is malformed or references unknown data."""
    status_code = 400


class AuthenticationError(NewsroomError):
    """Raised when credentials are missing, wrong, or the tenant is suspended."""
    status_code = 401


class PermissionDeniedError(NewsroomError):
    """Raised when an authenticated caller may not perform the action."""
    status_code = 403


class NotFoundError(NewsroomError):
    """Raised when a referenced record does not exist."""
    status_code = 404


class InsufficientCreditsError(NewsroomError):
    """Raised when the tenant cannot afford the requested operation."""
    status_code = 402

    def __init__(self, message: str, credits_required: int, credits_remaining: int):
        super().__init__(message)
        self.credits_required = credits_required
        self.credits_remaining = credits_remaining


class GenerationError(NewsroomError):
    """Raised when the text generation provider returns nothing usable."""
    status_code = 500


class SlugExhaustedError(NewsroomError):
    """Raised when no free slug was found within the allowed attempts."""
    status_code = 500
