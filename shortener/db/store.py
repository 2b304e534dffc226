"""
SQL Link Store

SQLModel/SQLAlchemy implementation of the LinkStore interface.

Concurrency model:
- Reads open their own session and run concurrently
- Writes go through one asyncio.Lock per store (single-writer discipline)
- Uniqueness of segment and original_url is enforced by the schema; an
  IntegrityError on insert is reported as UniqueConstraintViolation so the
  caller can tell a collision apart from a storage failure
"""

import asyncio
import logging
import re
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from shortener.core.exceptions import DatabaseError, UniqueConstraintViolation
from shortener.db.interface import LinkStatsRow, LinkStore
from shortener.db.models import Click, Link
from shortener.db.session import create_engine, create_session_maker, init_models

logger = logging.getLogger(__name__)

_UNIQUE_FAILED = re.compile(r"UNIQUE constraint failed: ([\w.]+)")


def _violated_column(error: IntegrityError) -> Optional[str]:
    """Column name from a SQLite unique-violation message, e.g. 'segment'."""
    match = _UNIQUE_FAILED.search(str(error.orig))
    if not match:
        return None
    return match.group(1).split(".")[-1]


def _is_unique_violation(error: IntegrityError) -> bool:
    return "UNIQUE" in str(error.orig).upper()


class SQLLinkStore(LinkStore):
    """
    Link store backed by an async SQLAlchemy engine.

    Args:
        engine: Engine created through the database adapter
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_maker = create_session_maker(engine)
        self._write_lock = asyncio.Lock()

    @classmethod
    def from_url(cls, database_url: Optional[str] = None) -> "SQLLinkStore":
        return cls(create_engine(database_url))

    async def initialize(self) -> None:
        """Create the schema if it does not exist yet."""
        try:
            await init_models(self.engine)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to initialize schema: {e}", original_error=e)

    async def find_by_segment(self, segment: str) -> Optional[Link]:
        statement = select(Link).where(Link.segment == segment)
        return await self._fetch_one(statement)

    async def find_by_url(self, original_url: str) -> Optional[Link]:
        statement = select(Link).where(Link.original_url == original_url).limit(1)
        return await self._fetch_one(statement)

    async def insert(self, link: Link) -> Link:
        async with self._write_lock:
            async with self.session_maker() as session:
                try:
                    session.add(link)
                    await session.commit()
                    await session.refresh(link)
                    logger.debug(f"Stored link id={link.id} segment={link.segment}")
                    return link
                except IntegrityError as e:
                    await session.rollback()
                    if _is_unique_violation(e):
                        raise UniqueConstraintViolation(_violated_column(e), original_error=e)
                    raise DatabaseError(f"Failed to insert link: {e.orig}", original_error=e)
                except SQLAlchemyError as e:
                    await session.rollback()
                    raise DatabaseError(f"Failed to insert link: {e}", original_error=e)

    async def count_recent_by_ip(self, ip: str, since: datetime) -> int:
        statement = (
            select(func.count(Link.id))
            .where(Link.submitter_ip == ip)
            .where(Link.created_at >= since)
        )
        try:
            async with self.session_maker() as session:
                result = await session.execute(statement)
                return result.scalar() or 0
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to count recent links: {e}", original_error=e)

    async def record_click(self, link_id: int, ip: str, referer: Optional[str] = None) -> None:
        click = Click(link_id=link_id, ip=ip, referer=referer or "")

        async with self._write_lock:
            async with self.session_maker() as session:
                try:
                    session.add(click)
                    await session.commit()
                except SQLAlchemyError as e:
                    await session.rollback()
                    raise DatabaseError(f"Failed to record click: {e}", original_error=e)

    async def increment_click_count(self, link_id: int) -> None:
        # Database-level increment, no read-modify-write
        statement = (
            update(Link)
            .where(Link.id == link_id)
            .values(click_count=Link.click_count + 1)
        )

        async with self._write_lock:
            async with self.session_maker() as session:
                try:
                    await session.execute(statement)
                    await session.commit()
                except SQLAlchemyError as e:
                    await session.rollback()
                    raise DatabaseError(f"Failed to increment click count: {e}", original_error=e)

    async def all_with_stats(self) -> List[LinkStatsRow]:
        last_clicked_at = func.max(Click.clicked_at).label("last_clicked_at")
        statement = (
            select(Link, last_clicked_at)
            .outerjoin(Click, Click.link_id == Link.id)
            .group_by(Link.id)
            .order_by(Link.created_at.desc(), Link.id.desc())
        )
        try:
            async with self.session_maker() as session:
                result = await session.execute(statement)
                return [LinkStatsRow(link=link, last_clicked_at=last) for link, last in result.all()]
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to load stats: {e}", original_error=e)

    async def close(self) -> None:
        await self.engine.dispose()

    async def _fetch_one(self, statement) -> Optional[Link]:
        try:
            async with self.session_maker() as session:
                result = await session.execute(statement)
                return result.scalars().first()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Lookup failed: {e}", original_error=e)
