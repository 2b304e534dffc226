"""
Request Throttling Configuration

Per-endpoint request throttling for the read paths (redirect, whatis,
stats), keyed on client IP.

This is separate from the hourly creation quota enforced by
SubmissionRateLimiter: that one counts persisted links, this one only
caps raw request volume and keeps its counters in memory.
"""

from slowapi import Limiter

from shortener.core.request_utils import get_client_ip
from shortener.core.setting import settings

limiter = Limiter(key_func=get_client_ip, enabled=settings.THROTTLING_ENABLED)

# Format: "count/period" (e.g., "100/minute" means 100 requests per minute)
RATE_LIMITS = {
    "redirect": "600/minute",
    "whatis": "60/minute",
    "stats": "30/minute",
}
