"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: engine configuration per database backend
- LinkStore interface: the storage capability the services depend on
- SQLLinkStore: SQLModel implementation of LinkStore (SQLite by default)
"""

from shortener.db.interface import DatabaseAdapter, LinkStatsRow, LinkStore
from shortener.db.models import Click, Link
from shortener.db.store import SQLLinkStore

__all__ = [
    "DatabaseAdapter",
    "LinkStore",
    "LinkStatsRow",
    "SQLLinkStore",
    "Link",
    "Click",
]
