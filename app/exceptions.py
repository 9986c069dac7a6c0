"""Error taxonomy for the URL shortener.

Classes:
    ShortenerError:
        Base class for every error raised by the service layer.

    ValidationError:
        Bad caller input (HTTP 400).

    NotFoundError:
        No record exists for the requested short code (HTTP 404).

    StoreError:
        The persistent store failed (HTTP 500).

    CodeConflictError:
        An insert lost the race for a short code; the caller retries with a new code.

    CacheError:
        The cache failed. Never surfaced to HTTP callers.

Example:
    >>> from app.exceptions import NotFoundError
    >>> raise NotFoundError("Short URL not found")
    Traceback (most recent call last):
        ...
    app.exceptions.NotFoundError: Short URL not found
"""

__all__ = [
    "ShortenerError",
    "ValidationError",
    "NotFoundError",
    "StoreError",
    "CodeConflictError",
    "CacheError",
]


class ShortenerError(Exception):
    """Generic base class for URL shortener errors."""

    status_code: int = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ShortenerError):
    """Raised when the caller submits unusable input."""

    status_code = 400


class NotFoundError(ShortenerError):
    """Raised when a short code has no record in the store."""

    status_code = 404


class StoreError(ShortenerError):
    """Raised when the persistent store cannot complete an operation.

    e.g. connection issues, timeouts, constraint violations.
    """

    status_code = 500


class CodeConflictError(StoreError):
    """Raised when inserting a short code that already exists."""

    pass


class CacheError(ShortenerError):
    """Raised when the cache cannot complete an operation."""

    pass
