"""
Click Recorder

Best-effort click accounting for resolved links.

Design Decisions:
- Two independent writes: append a Click row, then bump Link.click_count.
  One failing does not stop the other, so the counter and the log can
  drift apart under failure
- Every failure is logged and absorbed; redirect availability matters more
  than exact counts
- Designed to run as a background task after the redirect response
"""

import logging
from typing import Optional

from shortener.db.interface import LinkStore

logger = logging.getLogger(__name__)


class ClickRecorder:
    """Records clicks without ever raising to the caller."""

    def __init__(self, store: LinkStore):
        self.store = store

    async def record(self, link_id: int, ip: str, referer: Optional[str] = None) -> bool:
        """
        Log a click and increment the link's counter.

        Args:
            link_id: The resolved link
            ip: Visitor address
            referer: Referer header, if any

        Returns:
            True if both writes succeeded
        """
        ok = True

        try:
            await self.store.record_click(link_id, ip, referer)
        except Exception as e:
            logger.error(f"Failed to record click for link {link_id}: {e}", exc_info=True)
            ok = False

        try:
            await self.store.increment_click_count(link_id)
        except Exception as e:
            logger.error(f"Failed to increment click count for link {link_id}: {e}", exc_info=True)
            ok = False

        return ok
