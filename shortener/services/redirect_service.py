"""
Redirect Service

This service handles segment resolution for redirects.

A missing segment and an expired link are different outcomes: an expired
link once existed and is answered with "gone", never "not found". The
stored URL is returned verbatim, it is not validated again here.
"""

from typing import Callable, Optional

from shortener.core.exceptions import LinkExpiredError, SegmentNotFoundError
from shortener.core.timeutils import utcnow
from shortener.db.interface import LinkStore
from shortener.db.models import Link


class RedirectService:
    """
    Service for handling URL redirections.

    Click accounting is not done here; see ClickRecorder, which the API
    layer runs after the redirect has been answered.
    """

    def __init__(self, store: LinkStore, clock: Optional[Callable] = None):
        self.store = store
        self.clock = clock or utcnow

    async def resolve(self, segment: str) -> Link:
        """
        Look up the live link for `segment`.

        Raises:
            SegmentNotFoundError: No link has this segment
            LinkExpiredError: The link's expiry time has passed
        """
        link = await self.store.find_by_segment(segment)
        if link is None:
            raise SegmentNotFoundError(segment)

        if link.is_expired(self.clock()):
            raise LinkExpiredError(segment)

        return link
