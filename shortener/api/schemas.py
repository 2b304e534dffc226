"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.

Design Principles:
- Request models stay permissive: URL and vanity checks belong to the
  validators, so every rejection carries the same error shape
- Response models serialize with camelCase keys (shortUrl, clickCount...)
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShortenRequest(BaseModel):
    """Request model for link creation."""
    url: Optional[str] = Field(default=None, description="The long URL to shorten")
    vanity: Optional[str] = Field(default=None, description="Optional custom segment")
    days_active: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("days_active", "daysActive"),
        description="Optional lifetime in days; zero or negative means no expiry"
    )


class ShortenResponse(BaseModel):
    """Response model for link creation."""
    url: str = Field(..., description="The complete short URL")
    segment: str = Field(..., description="The segment of the short URL")


class ErrorResponse(BaseModel):
    error: str


class WhatIsResponse(CamelModel):
    """Metadata for a single short link."""
    url: str
    segment: str
    short_url: str
    clicks: int
    created: str


class LinkStatsResponse(CamelModel):
    """One row of the stats view."""
    url: str
    title: str
    segment: str
    short_url: str
    click_count: int
    created_at: str
    last_clicked_at: str
    expires_at: str
