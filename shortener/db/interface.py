"""
Database Abstraction Interface

This module defines the abstractions the rest of the codebase programs
against:

- DatabaseAdapter: engine configuration for one database backend
- LinkStore: the storage capability used by the services (lookups, insert
  with uniqueness enforcement, click accounting, stats)

Services receive a LinkStore instance explicitly, so tests can substitute
doubles for failure injection.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.pool import Pool

from shortener.db.models import Link


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    To add a new database backend:
    1. Create a new class inheriting from DatabaseAdapter
    2. Implement all abstract methods
    3. Update the factory function to return the new adapter
    """

    @abstractmethod
    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create and configure the async database engine.

        Args:
            database_url: Connection string for the database
            **kwargs: Additional engine configuration options

        Returns:
            Configured AsyncEngine instance
        """
        pass

    @abstractmethod
    def get_pool_class(self) -> Optional[type[Pool]]:
        """Pool class for this database type, or None for the default."""
        pass

    @abstractmethod
    def get_connect_args(self) -> dict[str, Any]:
        pass

    @abstractmethod
    def get_engine_kwargs(self) -> dict[str, Any]:
        pass

    @abstractmethod
    def configure_connection(self, dbapi_connection: Any) -> None:
        """
        Apply per-connection settings right after a connection is opened.

        Args:
            dbapi_connection: The raw DBAPI connection
        """
        pass


@dataclass
class LinkStatsRow:
    """One Link joined with the time of its latest click."""
    link: Link
    last_clicked_at: Optional[datetime]


class LinkStore(ABC):
    """
    Durable store of links and clicks.

    Implementations must enforce uniqueness of Link.segment and
    Link.original_url themselves and report a violation as
    UniqueConstraintViolation; any other failure is a DatabaseError.
    """

    @abstractmethod
    async def find_by_segment(self, segment: str) -> Optional[Link]:
        """Exact, case-sensitive lookup by segment."""
        pass

    @abstractmethod
    async def find_by_url(self, original_url: str) -> Optional[Link]:
        """Exact lookup by decoded original URL."""
        pass

    @abstractmethod
    async def insert(self, link: Link) -> Link:
        """
        Persist a new link.

        Returns:
            The stored link with id populated

        Raises:
            UniqueConstraintViolation: If segment or original_url is taken
            DatabaseError: On any other storage failure
        """
        pass

    @abstractmethod
    async def count_recent_by_ip(self, ip: str, since: datetime) -> int:
        """Number of links created by `ip` at or after `since`."""
        pass

    @abstractmethod
    async def record_click(self, link_id: int, ip: str, referer: Optional[str] = None) -> None:
        pass

    @abstractmethod
    async def increment_click_count(self, link_id: int) -> None:
        pass

    @abstractmethod
    async def all_with_stats(self) -> List[LinkStatsRow]:
        """Every link with its latest click time, newest link first."""
        pass

    async def close(self) -> None:
        """Release resources held by the store."""
        return None
