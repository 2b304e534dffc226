"""Pytest configuration and fixtures."""

import asyncio
import os
from datetime import timedelta

# Settings are read at import time; keep throttling out of the tests
os.environ.setdefault("THROTTLING_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import pytest
import pytest_asyncio

from shortener.core.timeutils import utcnow
from shortener.db.models import Link
from shortener.db.store import SQLLinkStore
from shortener.services.liveness_prober import LivenessProber, ProbeResult
from shortener.services.rate_limiter import SubmissionRateLimiter
from shortener.services.url_service import URLShorteningService


class StubProber(LivenessProber):
    """Prober that never leaves the process; set `error` to make it fail."""

    def __init__(self, title: str = "Example Domain"):
        super().__init__(timeout=1.0)
        self.title = title
        self.error = None
        self.delay = 0.0
        self.calls = []

    async def probe(self, url: str) -> ProbeResult:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ProbeResult(status_code=200, title=self.title)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'shortener-test.db'}"


@pytest_asyncio.fixture
async def store(database_url):
    """Fresh SQLite-file store per test."""
    link_store = SQLLinkStore.from_url(database_url)
    await link_store.initialize()
    yield link_store
    await link_store.close()


@pytest.fixture
def prober():
    return StubProber()


@pytest.fixture
def url_service(store, prober):
    return URLShorteningService(
        store,
        prober,
        rate_limiter=SubmissionRateLimiter(store, limit=5000),
    )


@pytest.fixture
def make_link():
    """Build an unsaved Link with sensible defaults."""

    def _make_link(segment="abcd", url="https://example.com", ip="10.0.0.1", **kwargs):
        kwargs.setdefault("created_at", utcnow())
        return Link(original_url=url, segment=segment, submitter_ip=ip, **kwargs)

    return _make_link


@pytest.fixture
def expired_link(make_link):
    return make_link(
        segment="oldone",
        url="https://example.com/old",
        created_at=utcnow() - timedelta(days=10),
        expires_at=utcnow() - timedelta(days=1),
    )


@pytest.fixture
def app(store, prober):
    """Application with the store and prober swapped for test instances."""
    from shortener.core.store_manager import get_link_store, get_prober
    from shortener.main import create_app

    application = create_app()
    application.dependency_overrides[get_link_store] = lambda: store
    application.dependency_overrides[get_prober] = lambda: prober
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
