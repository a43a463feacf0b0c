"""
Domain Exceptions

Errors raised by the rating engine (app.services.rating_store and
app.services.ratings). They know nothing about HTTP routing; each one just
carries the status code the API should answer with, and a single handler in
app.main turns them into JSON responses.

Duplicate helpful votes and repeat reports are NOT errors: both operations
are idempotent and never raise for them.
"""

from typing import Any

from fastapi import status


class RatingEngineError(Exception):
    """
    Base class for all rating engine errors.

    Attributes:
        message: Human readable description, returned as "detail"
        status_code: HTTP status the API layer responds with
        details: Optional structured context for logs
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidValue(RatingEngineError):
    """Rating value outside 1-5, or feedback longer than allowed (400)."""

    status_code = status.HTTP_400_BAD_REQUEST


class SelfRatingForbidden(RatingEngineError):
    """A resource author tried to rate their own resource (400)."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "You cannot rate your own resource", details=None):
        super().__init__(message, details)


class NotFound(RatingEngineError):
    """Referenced rating or resource does not exist (404)."""

    status_code = status.HTTP_404_NOT_FOUND


class ConcurrentModification(RatingEngineError):
    """
    A write conflict was detected on a resource summary (409).

    Raised when another writer bumped the resource version between our read
    and our write. The service layer retries the whole operation first; this
    only reaches the client when every attempt conflicted.
    """

    status_code = status.HTTP_409_CONFLICT

    def __init__(
        self,
        message: str = "The resource was modified concurrently, please retry",
        details=None,
    ):
        super().__init__(message, details)
