"""
Store Manager

This module manages the process-wide link store and liveness prober.
Both are created once on application startup and shared across requests.

Design:
- Initialized on startup, released on shutdown
- Endpoints receive them through FastAPI dependencies, never by importing
  the globals, so tests can swap in their own instances with
  app.dependency_overrides
"""

import logging
from typing import Optional

from shortener.core.setting import settings
from shortener.db.interface import LinkStore
from shortener.db.store import SQLLinkStore
from shortener.services.liveness_prober import LivenessProber

logger = logging.getLogger(__name__)

# Global instances (initialized on startup)
_store: Optional[LinkStore] = None
_prober: Optional[LivenessProber] = None


async def get_link_store() -> LinkStore:
    """
    Dependency returning the link store.

    Raises:
        RuntimeError: If called before initialize_store()
    """
    if _store is None:
        raise RuntimeError("Link store is not initialized")
    return _store


async def get_prober() -> LivenessProber:
    if _prober is None:
        raise RuntimeError("Liveness prober is not initialized")
    return _prober


async def initialize_store() -> None:
    """Open the store, create missing tables and build the prober."""
    global _store, _prober

    if _store is not None:
        logger.warning("Link store already initialized")
        return

    store = SQLLinkStore.from_url(settings.DATABASE_URL)
    await store.initialize()

    _store = store
    _prober = LivenessProber(
        timeout=settings.PROBE_TIMEOUT_SECONDS,
        max_body_bytes=settings.PROBE_MAX_BODY_BYTES,
    )
    logger.info(f"Link store initialized: {settings.DATABASE_URL}")


async def shutdown_store() -> None:
    """Dispose of the store's connections."""
    global _store, _prober

    if _store is not None:
        try:
            await _store.close()
            logger.info("Link store closed")
        except Exception as e:
            logger.warning(f"Failed to close link store: {e}")

    _store = None
    _prober = None
