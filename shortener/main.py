"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes
- Middleware (logging, CORS)
- Error handlers (domain errors and request throttling)
- Store lifecycle (opened on startup, closed on shutdown)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shortener import __version__
from shortener.api import endpoints
from shortener.api.errors import add_exception_handlers
from shortener.core.logging_config import setup_logging
from shortener.core.rate_limit import limiter
from shortener.core.setting import settings
from shortener.core.store_manager import initialize_store, shutdown_store
from shortener.middleware.logging import add_logging_middleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await initialize_store()
    logger.info(f"URL shortener {__version__} started ({settings.ENV_SETTING.value})")
    yield
    await shutdown_store()


def create_app() -> FastAPI:
    """Build the application; tests call this and override the dependencies."""
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="URL Shortener Service",
        description="Short links with vanity segments, expiry and click stats",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    add_exception_handlers(app)

    add_logging_middleware(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health endpoints defined before router to match before catch-all route
    @app.get("/", tags=["Health"])
    async def root():
        return {
            "message": "URL Shortener Service",
            "version": __version__,
            "docs": "/docs"
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        return {"status": "healthy"}

    app.include_router(endpoints.router, tags=["URL Shortener"])

    return app


app = create_app()
