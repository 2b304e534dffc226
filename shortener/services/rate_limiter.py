"""
Submission Rate Limiter

Answers "has this client exceeded its creation quota in the trailing
window?" by counting the links it created, straight from the store.

There is no counter state of its own: the quota is always consistent with
persisted history, needs no reset, and the window slides with the clock
instead of being bucketed.
"""

import logging
from datetime import timedelta
from typing import Callable, Optional

from shortener.core.exceptions import RateLimitedError
from shortener.core.timeutils import utcnow
from shortener.db.interface import LinkStore

logger = logging.getLogger(__name__)


class SubmissionRateLimiter:
    """
    Sliding-window quota on link creation per client IP.

    Args:
        store: Link store holding the submission history
        limit: Maximum links per window (0 blocks every submission)
        window: Length of the trailing window
        clock: Returns the current naive UTC time
    """

    def __init__(
        self,
        store: LinkStore,
        limit: int = 5000,
        window: timedelta = timedelta(hours=1),
        clock: Optional[Callable] = None,
    ):
        self.store = store
        self.limit = limit
        self.window = window
        self.clock = clock or utcnow

    async def count_recent_submissions(self, ip: str) -> int:
        """Links created by `ip` within the window ending now."""
        since = self.clock() - self.window
        return await self.store.count_recent_by_ip(ip, since)

    async def check(self, ip: str) -> None:
        """
        Raise if `ip` already used up its quota.

        Raises:
            RateLimitedError: When the recent count is >= the limit
        """
        recent = await self.count_recent_submissions(ip)
        if recent >= self.limit:
            logger.info(f"Rate limit hit for {ip}: {recent} links in the last {self.window}")
            raise RateLimitedError(ip, self.limit)
