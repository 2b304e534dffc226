"""
Tests for the create-link workflow.

The store is a real SQLite file; the prober is a stub so nothing leaves the
process.
"""

from datetime import datetime, timedelta

import pytest

from shortener.core.exceptions import (
    DatabaseError,
    GenerationExhaustedError,
    InvalidEncodingError,
    InvalidExpiryError,
    LocalhostForbiddenError,
    MissingURLError,
    RateLimitedError,
    ReservedSegmentError,
    TargetTimeoutError,
    TargetUnreachableError,
    VanityTakenError,
    VanityTooShortError,
)
from shortener.db.store import SQLLinkStore
from shortener.services.rate_limiter import SubmissionRateLimiter
from shortener.services.url_service import URLShorteningService, build_short_url

IP = "203.0.113.7"


def sequence_factory(*segments):
    """Segment factory returning `segments` in order, recording each call."""
    calls = []

    def factory():
        value = segments[min(len(calls), len(segments) - 1)]
        calls.append(value)
        return value

    factory.calls = calls
    return factory


class BlindSegmentStore(SQLLinkStore):
    """Misses every segment lookup, as if another writer got there first."""

    async def find_by_segment(self, segment):
        return None


class LateURLStore(SQLLinkStore):
    """Misses the first URL lookup only."""

    def __init__(self, engine):
        super().__init__(engine)
        self.url_lookups = 0

    async def find_by_url(self, url):
        self.url_lookups += 1
        if self.url_lookups == 1:
            return None
        return await super().find_by_url(url)


class BrokenInsertStore(SQLLinkStore):

    async def insert(self, link):
        raise DatabaseError("disk I/O error")


class TestBuildShortURL:

    def test_appends_segment_to_base(self):
        assert build_short_url("q3Zx-A", "https://sho.rt/") == "https://sho.rt/q3Zx-A"


@pytest.mark.asyncio
class TestCreateGenerated:

    async def test_creates_link_with_random_segment(self, url_service, prober, store):
        result = await url_service.create_short_url("https://example.com/page", IP)

        assert result.created is True
        assert len(result.link.segment) == 6
        assert result.link.title == "Example Domain"
        assert result.link.submitter_ip == IP
        assert result.link.expires_at is None
        assert prober.calls == ["https://example.com/page"]
        assert (await store.find_by_segment(result.link.segment)).id == result.link.id

    async def test_same_url_returns_existing_link(self, url_service, prober):
        first = await url_service.create_short_url("https://example.com/page", IP)
        second = await url_service.create_short_url("https://example.com/page", "198.51.100.1")

        assert second.created is False
        assert second.link.segment == first.link.segment
        assert len(prober.calls) == 1

    async def test_dedup_compares_decoded_urls(self, url_service):
        first = await url_service.create_short_url("https://example.com/a b", IP)
        second = await url_service.create_short_url("https%3A%2F%2Fexample.com%2Fa%20b", IP)

        assert second.created is False
        assert second.link.segment == first.link.segment
        assert first.link.original_url == "https://example.com/a b"

    async def test_retries_on_segment_collision(self, store, prober, make_link):
        await store.insert(make_link(segment="dupe", url="https://example.com/other"))
        factory = sequence_factory("dupe", "dupe", "fresh")
        service = URLShorteningService(store, prober, segment_factory=factory)

        result = await service.create_short_url("https://example.com/new", IP)

        assert result.link.segment == "fresh"
        assert factory.calls == ["dupe", "dupe", "fresh"]

    async def test_gives_up_after_max_retries(self, store, prober, make_link):
        await store.insert(make_link(segment="dupe", url="https://example.com/other"))
        factory = sequence_factory("dupe")
        service = URLShorteningService(store, prober, segment_factory=factory)

        with pytest.raises(GenerationExhaustedError) as exc_info:
            await service.create_short_url("https://example.com/new", IP)

        assert exc_info.value.attempts == 3
        assert len(factory.calls) == 3
        assert await store.find_by_url("https://example.com/new") is None

    async def test_storage_failure_is_not_retried(self, store, prober):
        factory = sequence_factory("abc123")
        service = URLShorteningService(BrokenInsertStore(store.engine), prober, segment_factory=factory)

        with pytest.raises(DatabaseError):
            await service.create_short_url("https://example.com/new", IP)

        assert len(factory.calls) == 1

    async def test_concurrent_create_of_same_url_returns_winner(self, store, prober, make_link):
        winner = await store.insert(make_link(segment="winner", url="https://example.com/race"))
        service = URLShorteningService(LateURLStore(store.engine), prober)

        result = await service.create_short_url("https://example.com/race", IP)

        assert result.created is False
        assert result.link.id == winner.id


@pytest.mark.asyncio
class TestCreateVanity:

    async def test_vanity_is_used_as_segment(self, url_service):
        result = await url_service.create_short_url("https://example.com/x", IP, vanity="mylink")

        assert result.created is True
        assert result.link.segment == "mylink"

    async def test_taken_vanity_skips_the_probe(self, url_service, prober):
        await url_service.create_short_url("https://example.com/x", IP, vanity="mylink")

        with pytest.raises(VanityTakenError):
            await url_service.create_short_url("https://example.com/y", IP, vanity="mylink")

        assert prober.calls == ["https://example.com/x"]

    async def test_vanity_taken_at_insert_time(self, store, prober, make_link):
        await store.insert(make_link(segment="mylink", url="https://example.com/x"))
        service = URLShorteningService(BlindSegmentStore(store.engine), prober)

        with pytest.raises(VanityTakenError):
            await service.create_short_url("https://example.com/y", IP, vanity="mylink")

        assert await store.find_by_url("https://example.com/y") is None

    async def test_vanity_for_known_url_returns_existing(self, url_service):
        first = await url_service.create_short_url("https://example.com/x", IP)
        second = await url_service.create_short_url("https://example.com/x", IP, vanity="other1")

        assert second.created is False
        assert second.link.segment == first.link.segment

    async def test_short_vanity_rejected(self, url_service, prober):
        with pytest.raises(VanityTooShortError):
            await url_service.create_short_url("https://example.com/x", IP, vanity="abc")
        assert prober.calls == []

    async def test_minimum_comes_from_configuration(self, store, prober):
        service = URLShorteningService(store, prober, min_vanity_length=0)

        result = await service.create_short_url("https://example.com/x", IP, vanity="a")

        assert result.link.segment == "a"

    async def test_reserved_vanity_rejected(self, url_service):
        with pytest.raises(ReservedSegmentError):
            await url_service.create_short_url("https://example.com/x", IP, vanity="Stats")


@pytest.mark.asyncio
class TestCreateRejections:

    @pytest.mark.parametrize("url", [None, ""])
    async def test_missing_url(self, url_service, url):
        with pytest.raises(MissingURLError):
            await url_service.create_short_url(url, IP)

    async def test_localhost_rejected_before_any_io(self, url_service, prober, store):
        with pytest.raises(LocalhostForbiddenError):
            await url_service.create_short_url("http://localhost:8080/admin", IP)

        assert prober.calls == []
        assert await store.all_with_stats() == []

    async def test_bad_encoding(self, url_service):
        with pytest.raises(InvalidEncodingError):
            await url_service.create_short_url("https://example.com/%zz", IP)

    async def test_unreachable_target_leaves_no_row(self, url_service, prober, store):
        prober.error = TargetUnreachableError("https://dead.example")

        with pytest.raises(TargetUnreachableError):
            await url_service.create_short_url("https://dead.example", IP)

        assert await store.find_by_url("https://dead.example") is None

    async def test_probe_timeout_surfaces(self, url_service, prober):
        prober.error = TargetTimeoutError("https://slow.example")

        with pytest.raises(TargetTimeoutError):
            await url_service.create_short_url("https://slow.example", IP)


@pytest.mark.asyncio
class TestQuota:

    async def test_quota_applies_even_to_known_urls(self, store, prober):
        service = URLShorteningService(
            store, prober, rate_limiter=SubmissionRateLimiter(store, limit=1)
        )
        await service.create_short_url("https://example.com/x", IP)

        with pytest.raises(RateLimitedError):
            await service.create_short_url("https://example.com/x", IP)

    async def test_quota_is_per_client(self, store, prober):
        service = URLShorteningService(
            store, prober, rate_limiter=SubmissionRateLimiter(store, limit=1)
        )
        await service.create_short_url("https://example.com/x", IP)

        result = await service.create_short_url("https://example.com/y", "198.51.100.1")

        assert result.created is True

    async def test_quota_checked_before_probe(self, store, prober):
        service = URLShorteningService(
            store, prober, rate_limiter=SubmissionRateLimiter(store, limit=0)
        )

        with pytest.raises(RateLimitedError):
            await service.create_short_url("https://example.com/x", IP)

        assert prober.calls == []


@pytest.mark.asyncio
class TestExpiry:

    NOW = datetime(2026, 3, 1, 12, 0, 0)

    def service(self, store, prober):
        return URLShorteningService(store, prober, clock=lambda: self.NOW)

    async def test_days_active_sets_expiry(self, store, prober):
        result = await self.service(store, prober).create_short_url(
            "https://example.com/x", IP, days_active=2
        )

        assert result.link.expires_at == self.NOW + timedelta(days=2)
        assert result.link.created_at == self.NOW

    async def test_fractional_days(self, store, prober):
        result = await self.service(store, prober).create_short_url(
            "https://example.com/x", IP, days_active=0.5
        )

        assert result.link.expires_at == self.NOW + timedelta(hours=12)

    @pytest.mark.parametrize("days", [None, 0, -1])
    async def test_non_positive_days_mean_no_expiry(self, store, prober, days):
        result = await self.service(store, prober).create_short_url(
            "https://example.com/x", IP, days_active=days
        )

        assert result.link.expires_at is None

    @pytest.mark.parametrize("days", [3_000_000, 1e12, float("inf"), float("nan")])
    async def test_unrepresentable_expiry_is_rejected(self, store, prober, days):
        with pytest.raises(InvalidExpiryError):
            await self.service(store, prober).create_short_url(
                "https://example.com/huge", IP, days_active=days
            )

        assert prober.calls == []
        assert await store.find_by_url("https://example.com/huge") is None
