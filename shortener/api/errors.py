"""
Error responses.

Every URLShortenerException is rendered as {"error": message} with the
status code its class declares.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from shortener.core.exceptions import URLShortenerException

logger = logging.getLogger(__name__)


async def url_shortener_exception_handler(request: Request, exc: URLShortenerException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


def add_exception_handlers(app) -> None:
    app.add_exception_handler(URLShortenerException, url_shortener_exception_handler)
