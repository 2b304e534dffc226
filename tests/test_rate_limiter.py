"""Tests for the sliding-window submission quota."""

from datetime import timedelta

import pytest

from shortener.core.exceptions import RateLimitedError
from shortener.core.timeutils import utcnow
from shortener.services.rate_limiter import SubmissionRateLimiter


class MovableClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.mark.asyncio
class TestSubmissionRateLimiter:

    async def test_counts_links_in_trailing_hour(self, store, make_link):
        clock = MovableClock(utcnow())
        limiter = SubmissionRateLimiter(store, limit=10, clock=clock)

        await store.insert(make_link("a1", "https://example.com/1", ip="1.1.1.1",
                                     created_at=clock.now - timedelta(minutes=10)))
        await store.insert(make_link("a2", "https://example.com/2", ip="1.1.1.1",
                                     created_at=clock.now - timedelta(minutes=50)))

        assert await limiter.count_recent_submissions("1.1.1.1") == 2
        assert await limiter.count_recent_submissions("2.2.2.2") == 0

    async def test_window_slides_with_the_clock(self, store, make_link):
        clock = MovableClock(utcnow())
        limiter = SubmissionRateLimiter(store, limit=10, clock=clock)

        await store.insert(make_link("a1", "https://example.com/1", ip="1.1.1.1",
                                     created_at=clock.now - timedelta(minutes=10)))
        await store.insert(make_link("a2", "https://example.com/2", ip="1.1.1.1",
                                     created_at=clock.now - timedelta(minutes=50)))

        clock.now += timedelta(minutes=20)
        assert await limiter.count_recent_submissions("1.1.1.1") == 1

        clock.now += timedelta(minutes=40)
        assert await limiter.count_recent_submissions("1.1.1.1") == 0

    async def test_check_rejects_at_the_limit(self, store, make_link):
        limiter = SubmissionRateLimiter(store, limit=2)
        await store.insert(make_link("a1", "https://example.com/1", ip="1.1.1.1"))

        await limiter.check("1.1.1.1")

        await store.insert(make_link("a2", "https://example.com/2", ip="1.1.1.1"))
        with pytest.raises(RateLimitedError) as exc_info:
            await limiter.check("1.1.1.1")

        assert exc_info.value.limit == 2
        assert exc_info.value.status_code == 429

    async def test_other_clients_are_unaffected(self, store, make_link):
        limiter = SubmissionRateLimiter(store, limit=1)
        await store.insert(make_link("a1", "https://example.com/1", ip="1.1.1.1"))

        with pytest.raises(RateLimitedError):
            await limiter.check("1.1.1.1")
        await limiter.check("2.2.2.2")

    async def test_custom_window(self, store, make_link):
        clock = MovableClock(utcnow())
        limiter = SubmissionRateLimiter(store, limit=1, window=timedelta(minutes=5), clock=clock)
        await store.insert(make_link("a1", "https://example.com/1", ip="1.1.1.1",
                                     created_at=clock.now - timedelta(minutes=6)))

        await limiter.check("1.1.1.1")
