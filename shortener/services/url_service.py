"""
URL Shortening Service

This service composes the create-link workflow:

    validate -> rate check -> dedup -> vanity availability -> probe -> insert

Design Decisions:
- Cheap rejections first: validation runs before any I/O, the quota check
  before the dedup lookup and the network probe
- Idempotent creation: an already-shortened URL returns the existing link
- The vanity pre-check only saves a probe; the unique constraint on insert
  is what actually decides, so an insert-time collision is still VanityTaken
- Generated segments are retried on collision with fresh randomness, up to
  a fixed number of attempts
- The probe runs before the insert, so a dead target never leaves a row
"""

import logging
import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional

from shortener.core.exceptions import (
    GenerationExhaustedError,
    InvalidExpiryError,
    MissingURLError,
    UniqueConstraintViolation,
    VanityTakenError,
)
from shortener.core.setting import Settings, settings as default_settings
from shortener.core.timeutils import utcnow
from shortener.core.validators import validate_url, validate_vanity
from shortener.db.interface import LinkStore
from shortener.db.models import Link
from shortener.services.liveness_prober import LivenessProber, ProbeResult
from shortener.services.rate_limiter import SubmissionRateLimiter
from shortener.services.segment_generator import DEFAULT_SEGMENT_BYTES, generate_segment

logger = logging.getLogger(__name__)


def build_short_url(segment: str, base_url: Optional[str] = None) -> str:
    """Full short link for `segment`, e.g. "http://localhost:3500/q3Zx-A"."""
    return (base_url or default_settings.BASE_URL) + segment


@dataclass
class CreateResult:
    """A link plus whether this request created it (False on a dedup hit)."""
    link: Link
    created: bool


class URLShorteningService:
    """
    Core business logic for URL shortening.

    Args:
        store: Link store (uniqueness is enforced there)
        prober: Liveness prober used before persisting
        rate_limiter: Hourly creation quota; built from `store` if omitted
        min_vanity_length: Minimum vanity length, 0 disables it
        max_retries: Random segment candidates tried before giving up
        segment_factory: Returns a fresh random segment per call
        clock: Returns the current naive UTC time
    """

    def __init__(
        self,
        store: LinkStore,
        prober: LivenessProber,
        rate_limiter: Optional[SubmissionRateLimiter] = None,
        min_vanity_length: int = 4,
        max_retries: int = 3,
        segment_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable] = None,
    ):
        self.store = store
        self.prober = prober
        self.rate_limiter = rate_limiter or SubmissionRateLimiter(store)
        self.min_vanity_length = min_vanity_length
        self.max_retries = max_retries
        self.segment_factory = segment_factory or (lambda: generate_segment(DEFAULT_SEGMENT_BYTES))
        self.clock = clock or utcnow

    @classmethod
    def from_settings(
        cls,
        store: LinkStore,
        prober: LivenessProber,
        config: Settings = default_settings,
    ) -> "URLShorteningService":
        clock = utcnow
        rate_limiter = SubmissionRateLimiter(
            store,
            limit=config.URLS_PER_HOUR,
            window=timedelta(seconds=config.RATE_LIMIT_WINDOW_SECONDS),
            clock=clock,
        )
        return cls(
            store,
            prober,
            rate_limiter=rate_limiter,
            min_vanity_length=config.MIN_VANITY_LENGTH,
            max_retries=config.MAX_SEGMENT_RETRIES,
            segment_factory=lambda: generate_segment(config.SEGMENT_BYTES),
            clock=clock,
        )

    async def create_short_url(
        self,
        raw_url: Optional[str],
        submitter_ip: str,
        vanity: Optional[str] = None,
        days_active: Optional[float] = None,
    ) -> CreateResult:
        """
        Create a new short URL or return the existing one for this URL.

        Args:
            raw_url: The target URL, possibly percent-encoded
            submitter_ip: Client address, used for the quota
            vanity: Optional caller-chosen segment
            days_active: Optional lifetime in days; non-positive means no expiry

        Returns:
            CreateResult with created=False when the URL was already shortened

        Raises:
            InvalidInputError: Malformed URL, vanity or days_active, or unreachable target
            RateLimitedError: Quota for submitter_ip used up
            VanityTakenError: Vanity segment already in use
            GenerationExhaustedError: Every random candidate collided
            DatabaseError: Any other storage failure
        """
        if not raw_url:
            raise MissingURLError()

        url = validate_url(raw_url)
        if vanity:
            validate_vanity(vanity, min_length=self.min_vanity_length)
        expires_at = self._expiry(days_active)

        await self.rate_limiter.check(submitter_ip)

        existing = await self.store.find_by_url(url)
        if existing:
            logger.debug(f"Dedup hit for {url}: {existing.segment}")
            return CreateResult(link=existing, created=False)

        if vanity and await self.store.find_by_segment(vanity):
            raise VanityTakenError(vanity)

        probe = await self.prober.probe(url)

        if vanity:
            return await self._insert_vanity(url, vanity, submitter_ip, probe, expires_at)
        return await self._insert_generated(url, submitter_ip, probe, expires_at)

    async def _insert_vanity(self, url, vanity, submitter_ip, probe: ProbeResult, expires_at) -> CreateResult:
        link = self._build_link(url, vanity, submitter_ip, probe, expires_at)
        try:
            stored = await self.store.insert(link)
        except UniqueConstraintViolation as e:
            existing = await self._existing_after_collision(e, url)
            if existing:
                return CreateResult(link=existing, created=False)
            raise VanityTakenError(vanity)

        logger.info(f"Created link {stored.segment} -> {url} (vanity)")
        return CreateResult(link=stored, created=True)

    async def _insert_generated(self, url, submitter_ip, probe: ProbeResult, expires_at) -> CreateResult:
        for attempt in range(1, self.max_retries + 1):
            segment = self.segment_factory()
            link = self._build_link(url, segment, submitter_ip, probe, expires_at)
            try:
                stored = await self.store.insert(link)
            except UniqueConstraintViolation as e:
                existing = await self._existing_after_collision(e, url)
                if existing:
                    return CreateResult(link=existing, created=False)
                logger.warning(
                    f"Segment collision on {segment} (attempt {attempt}/{self.max_retries})"
                )
                continue

            logger.info(f"Created link {stored.segment} -> {url}")
            return CreateResult(link=stored, created=True)

        logger.error(f"Segment generation exhausted after {self.max_retries} attempts for {url}")
        raise GenerationExhaustedError(self.max_retries)

    async def _existing_after_collision(self, error: UniqueConstraintViolation, url: str) -> Optional[Link]:
        """
        The link for `url` if the collision was a concurrent create of the
        same URL rather than a segment clash.
        """
        if error.column not in ("original_url", None):
            return None
        return await self.store.find_by_url(url)

    def _build_link(self, url, segment, submitter_ip, probe: ProbeResult, expires_at) -> Link:
        return Link(
            original_url=url,
            segment=segment,
            submitter_ip=submitter_ip,
            title=probe.title,
            created_at=self.clock(),
            expires_at=expires_at,
            click_count=0,
        )

    def _expiry(self, days_active: Optional[float]):
        if days_active is None:
            return None
        if math.isnan(days_active):
            raise InvalidExpiryError(days_active)
        if days_active <= 0:
            return None
        try:
            return self.clock() + timedelta(days=days_active)
        except (OverflowError, ValueError):
            raise InvalidExpiryError(days_active)
