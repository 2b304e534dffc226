"""
Custom Exceptions

This module defines the error taxonomy of the shortener.

Every exception carries the HTTP status it maps to, so the API layer can
render any of them with a single handler. Click-accounting failures never
appear here: they are logged and absorbed by the resolver.
"""

from typing import Optional

from fastapi import status


class URLShortenerException(Exception):
    """Base exception for URL shortener service."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


# Invalid input (always surfaced, never retried)

class InvalidInputError(URLShortenerException):
    """Raised when a creation request is malformed."""
    status_code = status.HTTP_400_BAD_REQUEST


class MissingURLError(InvalidInputError):
    def __init__(self):
        super().__init__('The "url" parameter is required')


class InvalidEncodingError(InvalidInputError):
    """Raised when percent-decoding of the submitted URL fails."""

    def __init__(self, url: str):
        self.url = url
        super().__init__("Invalid URL encoding")


class URLTooLongError(InvalidInputError):
    def __init__(self, max_length: int):
        self.max_length = max_length
        super().__init__(f"URL cannot be longer than {max_length} characters")


class LocalhostForbiddenError(InvalidInputError):
    def __init__(self, url: str):
        self.url = url
        super().__init__("Localhost URLs are not allowed")


class InvalidCharactersError(InvalidInputError):
    def __init__(self, vanity: str):
        self.vanity = vanity
        super().__init__("Vanity URL contains invalid characters")


class VanityTooLongError(InvalidInputError):
    def __init__(self, max_length: int):
        self.max_length = max_length
        super().__init__(f"Vanity URL cannot be longer than {max_length} characters")


class VanityTooShortError(InvalidInputError):
    def __init__(self, min_length: int):
        self.min_length = min_length
        super().__init__(f"Vanity URL must be at least {min_length} characters")


class ReservedSegmentError(InvalidInputError):
    def __init__(self, vanity: str):
        self.vanity = vanity
        super().__init__("That vanity URL is reserved")


class InvalidExpiryError(InvalidInputError):
    """Raised when days_active cannot be turned into an expiry time."""

    def __init__(self, days_active):
        self.days_active = days_active
        super().__init__("Invalid days_active value")


class TargetUnreachableError(InvalidInputError):
    """Raised when the liveness probe gets an error status or no response."""

    def __init__(self, url: str, reason: str = "The URL is not reachable"):
        self.url = url
        self.reason = reason
        super().__init__(reason)


class TargetTimeoutError(TargetUnreachableError):
    def __init__(self, url: str):
        super().__init__(url, reason="The URL is not reachable (timeout)")


# Conflicts

class ConflictError(URLShortenerException):
    status_code = status.HTTP_409_CONFLICT


class VanityTakenError(ConflictError):
    """Raised when a vanity segment is already in use (pre-check or insert)."""

    def __init__(self, vanity: str):
        self.vanity = vanity
        super().__init__("That vanity URL is already taken")


class RateLimitedError(URLShortenerException):
    """Raised when a client reached its hourly creation quota."""
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, ip: str, limit: int):
        self.ip = ip
        self.limit = limit
        super().__init__("Rate limit exceeded. Try again later.")


# Resolution

class SegmentNotFoundError(URLShortenerException):
    """Raised when a segment is not found in the database."""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, segment: str):
        self.segment = segment
        super().__init__("Short link not found")


class LinkExpiredError(URLShortenerException):
    """Raised when a link exists but its expiry time has passed."""
    status_code = status.HTTP_410_GONE

    def __init__(self, segment: str):
        self.segment = segment
        super().__init__("Short link has expired")


# Server-side failures

class GenerationExhaustedError(URLShortenerException):
    """Raised when every random segment candidate collided."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not allocate a unique segment after {attempts} attempts")


class DatabaseError(URLShortenerException):
    """Raised when database operations fail."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class UniqueConstraintViolation(DatabaseError):
    """
    Raised by the store when an insert breaks a uniqueness constraint.

    `column` names the violated column ("segment" or "original_url") when
    the backend reports it, None otherwise.
    """

    def __init__(self, column: Optional[str] = None, original_error: Optional[Exception] = None):
        self.column = column
        super().__init__(
            f"unique constraint violated on {column or 'unknown column'}",
            original_error=original_error
        )
