"""
Database Models for URL Shortener Service

This module defines the SQLModel database schemas for:
- Link: Stores the mapping between a segment and its original URL
- Click: Append-only log of resolutions, one row per redirect

Design Decisions:
- Uniqueness of segment and original_url is declared on the schema, so the
  storage layer is the single source of truth for the check-then-insert race
- click_count denormalized in Link for quick stats without joins
- Composite index on (submitter_ip, created_at) backs the hourly quota query
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlmodel import Field, SQLModel

from shortener.core.timeutils import utcnow


class Link(SQLModel, table=True):
    """
    Main table storing shortened URLs.

    Fields:
    - id: Auto-incrementing surrogate key
    - original_url: Decoded target URL, unique (dedup key)
    - segment: Short code, unique and case-sensitive
    - submitter_ip: Client address at creation time
    - title: Page title found by the liveness probe, "" if none
    - created_at: Creation timestamp (naive UTC)
    - expires_at: Optional expiry (naive UTC); expired links stay in the table
    - click_count: Denormalized count, only ever incremented
    """
    __tablename__ = "links"
    __table_args__ = (
        Index("ix_links_submitter_ip_created_at", "submitter_ip", "created_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    original_url: str = Field(
        sa_column=Column(String(1000), nullable=False, unique=True)
    )
    segment: str = Field(
        sa_column=Column(String(15), nullable=False, unique=True, index=True)
    )
    submitter_ip: str = Field(sa_column=Column(String(45), nullable=False))  # IPv6 max length
    title: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False, index=True)
    )
    expires_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True)
    )
    click_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at is not None and self.expires_at < (now or utcnow())


class Click(SQLModel, table=True):
    """
    Click log for per-link analytics.

    Rows are appended by the resolver and never updated or deleted.
    """
    __tablename__ = "clicks"

    id: Optional[int] = Field(default=None, primary_key=True)
    link_id: int = Field(
        sa_column=Column(Integer, ForeignKey("links.id"), nullable=False, index=True)
    )
    ip: str = Field(sa_column=Column(String(45), nullable=False))
    referer: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    clicked_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False, index=True)
    )
