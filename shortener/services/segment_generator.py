"""
Segment Generator

Produces random short codes for links created without a vanity segment.

Design Decisions:
- Random bytes from the OS CSPRNG, not a counter or a hash of the URL, so
  segments of other users' links cannot be enumerated or guessed
- base64url without padding: the alphabet is exactly [A-Za-z0-9_-]
- 4 bytes -> 6 characters -> 2**32 possible codes; collisions are handled
  by the caller with a bounded retry, each retry drawing fresh bytes
"""

import base64
import secrets

DEFAULT_SEGMENT_BYTES = 4
# 11 bytes encode to 15 characters, the longest segment the store accepts
MAX_SEGMENT_BYTES = 11


def generate_segment(num_bytes: int = DEFAULT_SEGMENT_BYTES) -> str:
    """
    Generate a random segment.

    Args:
        num_bytes: Amount of randomness, between 1 and MAX_SEGMENT_BYTES

    Returns:
        A segment of ceil(num_bytes * 4 / 3) characters

    Example:
        generate_segment() -> "q3Zx-A"
    """
    if not 1 <= num_bytes <= MAX_SEGMENT_BYTES:
        raise ValueError(f"num_bytes must be between 1 and {MAX_SEGMENT_BYTES}")

    raw = secrets.token_bytes(num_bytes)
    segment = base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    return segment
