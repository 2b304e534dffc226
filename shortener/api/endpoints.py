"""
FastAPI Endpoints for URL Shortener Service

This module defines all REST API endpoints with minimal logic.
Endpoints only handle:
- Request parsing (Pydantic models)
- Request throttling on read paths
- Delegating to the service layer

Domain errors propagate as URLShortenerException and are rendered by the
handler in shortener.api.errors.
"""

from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response, status
from fastapi.responses import RedirectResponse

from shortener.api.schemas import (
    ErrorResponse,
    LinkStatsResponse,
    ShortenRequest,
    ShortenResponse,
    WhatIsResponse,
)
from shortener.core.exceptions import SegmentNotFoundError
from shortener.core.rate_limit import RATE_LIMITS, limiter
from shortener.core.request_utils import get_client_ip
from shortener.core.store_manager import get_link_store, get_prober
from shortener.core.validators import sanitize_segment
from shortener.db.interface import LinkStore
from shortener.services.click_recorder import ClickRecorder
from shortener.services.liveness_prober import LivenessProber
from shortener.services.redirect_service import RedirectService
from shortener.services.stats_service import StatsService
from shortener.services.url_service import URLShorteningService, build_short_url

router = APIRouter()


def get_url_service(
    store: LinkStore = Depends(get_link_store),
    prober: LivenessProber = Depends(get_prober),
) -> URLShorteningService:
    return URLShorteningService.from_settings(store, prober)


@router.post(
    "/add",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"model": ShortenResponse, "description": "URL was already shortened"},
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
    },
    summary="Create a short URL",
    description="Shortens a URL, optionally with a vanity segment and a lifetime in days"
)
async def create_short_url(
    body: ShortenRequest,
    request: Request,
    response: Response,
    url_service: URLShorteningService = Depends(get_url_service),
) -> ShortenResponse:
    """
    Create a new short URL, or return the existing one for this URL.

    Returns:
        201 with {url, segment} when created, 200 when it already existed
    """
    result = await url_service.create_short_url(
        body.url,
        get_client_ip(request),
        vanity=body.vanity,
        days_active=body.days_active,
    )

    if not result.created:
        response.status_code = status.HTTP_200_OK

    return ShortenResponse(
        url=build_short_url(result.link.segment),
        segment=result.link.segment,
    )


@router.get(
    "/whatis/{segment:path}",
    response_model=WhatIsResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Describe a short URL"
)
@limiter.limit(RATE_LIMITS["whatis"])
async def what_is(
    segment: str,
    request: Request,  # Required for rate limiting
    store: LinkStore = Depends(get_link_store),
) -> WhatIsResponse:
    """Target, click count and age of a short link; accepts a full short URL too."""
    description = await StatsService(store).describe(segment)
    return WhatIsResponse(**description)


@router.get(
    "/stats",
    response_model=List[LinkStatsResponse],
    summary="Statistics for all short URLs"
)
@router.get(
    "/stats/json",
    response_model=List[LinkStatsResponse],
    include_in_schema=False
)
@limiter.limit(RATE_LIMITS["stats"])
async def get_stats(
    request: Request,  # Required for rate limiting
    store: LinkStore = Depends(get_link_store),
) -> List[LinkStatsResponse]:
    """Every link, newest first, with formatted timestamps."""
    rows = await StatsService(store).get_all_stats()
    return [LinkStatsResponse(**row) for row in rows]


@router.get(
    "/{segment}",
    status_code=status.HTTP_302_FOUND,
    responses={404: {"model": ErrorResponse}, 410: {"model": ErrorResponse}},
    summary="Redirect to original URL"
)
@limiter.limit(RATE_LIMITS["redirect"])
async def redirect_to_url(
    segment: str,
    request: Request,
    background_tasks: BackgroundTasks,
    store: LinkStore = Depends(get_link_store),
) -> RedirectResponse:
    """
    Redirect to the original URL for a given segment.

    The click is recorded in a background task once the redirect has been
    sent; accounting failures never reach the client.

    Raises:
        SegmentNotFoundError (404): Unknown or malformed segment
        LinkExpiredError (410): The link has expired
    """
    sanitized = sanitize_segment(segment)
    if not sanitized:
        raise SegmentNotFoundError(segment)

    link = await RedirectService(store).resolve(sanitized)

    background_tasks.add_task(
        ClickRecorder(store).record,
        link.id,
        get_client_ip(request),
        request.headers.get("Referer"),
    )

    return RedirectResponse(url=link.original_url, status_code=status.HTTP_302_FOUND)
