"""
Statistics Service

Read-only views over links and clicks:
- get_all_stats: one row per link for the stats dashboard
- describe: metadata for a single segment ("whatis")

Timestamps are rendered for humans here so every consumer shows the same
text.
"""

from typing import List, Optional

from shortener.core.exceptions import SegmentNotFoundError
from shortener.core.setting import settings
from shortener.core.timeutils import format_timestamp, time_since
from shortener.db.interface import LinkStore
from shortener.services.url_service import build_short_url


class StatsService:
    """
    Service for retrieving URL statistics.

    Args:
        store: Link store
        base_url: Root URL for short links (defaults to settings.BASE_URL)
    """

    def __init__(self, store: LinkStore, base_url: Optional[str] = None):
        self.store = store
        self.base_url = base_url or settings.BASE_URL

    async def get_all_stats(self) -> List[dict]:
        """
        Summary of every link, newest first.

        Returns:
            A list of dictionaries with url, title, segment, short_url,
            click_count, created_at, last_clicked_at and expires_at; the
            timestamps are formatted and missing ones read "Never".
            Empty when no links exist.
        """
        rows = await self.store.all_with_stats()
        return [
            {
                "url": row.link.original_url,
                "title": row.link.title or "",
                "segment": row.link.segment,
                "short_url": build_short_url(row.link.segment, self.base_url),
                "click_count": row.link.click_count,
                "created_at": format_timestamp(row.link.created_at),
                "last_clicked_at": format_timestamp(row.last_clicked_at),
                "expires_at": format_timestamp(row.link.expires_at),
            }
            for row in rows
        ]

    async def describe(self, segment: str) -> dict:
        """
        Metadata for one short link.

        `segment` may also be a full short URL; the base URL prefix is
        stripped before the lookup.

        Raises:
            SegmentNotFoundError: If no link has this segment
        """
        if segment.startswith(self.base_url):
            segment = segment[len(self.base_url):]

        link = await self.store.find_by_segment(segment)
        if link is None:
            raise SegmentNotFoundError(segment)

        return {
            "url": link.original_url,
            "segment": link.segment,
            "short_url": build_short_url(link.segment, self.base_url),
            "clicks": link.click_count,
            "created": time_since(link.created_at),
        }
