"""
Input Validators and Sanitizers

This module provides validation and sanitization functions for user inputs.
All of them are pure: they run before any storage lookup, so malformed
input never touches the database.

Validation order for a creation request:
encoding -> URL length -> localhost -> vanity charset -> vanity length -> reserved word
"""

import re
from typing import Iterable, Optional
from urllib.parse import unquote

from shortener.core.exceptions import (
    InvalidCharactersError,
    InvalidEncodingError,
    LocalhostForbiddenError,
    ReservedSegmentError,
    URLTooLongError,
    VanityTooLongError,
    VanityTooShortError,
)

MAX_URL_LENGTH = 1000
MAX_SEGMENT_LENGTH = 15

# Path tokens used by the service's own routes
RESERVED_SEGMENTS = frozenset({"add", "whatis", "stats", "shorten", "health"})

SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_INVALID_SEGMENT_CHAR = re.compile(r"[^A-Za-z0-9_-]")
_LOCALHOST_PATTERN = re.compile(r"^https?://localhost", re.IGNORECASE)
_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def decode_url(raw_url: str) -> str:
    """
    Percent-decode a submitted URL.

    A '%' not followed by two hex digits, or escapes that do not form
    valid UTF-8, are rejected instead of being passed through.

    Raises:
        InvalidEncodingError: If the string cannot be decoded
    """
    if _MALFORMED_ESCAPE.search(raw_url):
        raise InvalidEncodingError(raw_url)
    try:
        return unquote(raw_url, errors="strict")
    except UnicodeDecodeError:
        raise InvalidEncodingError(raw_url)


def validate_url(raw_url: str, max_length: int = MAX_URL_LENGTH) -> str:
    """
    Decode and check a target URL.

    Args:
        raw_url: The URL as submitted by the client
        max_length: Maximum decoded length

    Returns:
        The decoded URL, which is what gets stored and deduplicated on

    Raises:
        InvalidEncodingError, URLTooLongError, LocalhostForbiddenError
    """
    url = decode_url(raw_url)

    if len(url) > max_length:
        raise URLTooLongError(max_length)

    # Loopback guard only, not a security boundary
    if _LOCALHOST_PATTERN.match(url):
        raise LocalhostForbiddenError(url)

    return url


def validate_vanity(
    vanity: str,
    min_length: int = 4,
    reserved: Iterable[str] = RESERVED_SEGMENTS,
) -> str:
    """
    Check a caller-chosen segment.

    Args:
        vanity: The requested segment
        min_length: Minimum length, 0 disables the check
        reserved: Lowercase words that can never be used as a segment

    Returns:
        The vanity segment unchanged (segments are case-sensitive)
    """
    if _INVALID_SEGMENT_CHAR.search(vanity):
        raise InvalidCharactersError(vanity)

    if len(vanity) > MAX_SEGMENT_LENGTH:
        raise VanityTooLongError(MAX_SEGMENT_LENGTH)

    if min_length > 0 and len(vanity) < min_length:
        raise VanityTooShortError(min_length)

    if vanity.lower() in reserved:
        raise ReservedSegmentError(vanity)

    return vanity


def sanitize_segment(segment: str) -> Optional[str]:
    """
    Sanitize a segment taken from a request path.

    Returns:
        The segment if it could exist in the store, None otherwise
    """
    if not segment or not isinstance(segment, str):
        return None

    if len(segment) > MAX_SEGMENT_LENGTH:
        return None

    if not SEGMENT_PATTERN.fullmatch(segment):
        return None

    return segment
