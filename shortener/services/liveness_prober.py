"""
Liveness Prober

Verifies a candidate target is reachable before it gets shortened, and
opportunistically picks up the page title for the stats view.

Design Decisions:
- One GET, redirects followed; the hard timeout bounds the wait for a status
- Runs before the store write; no store lock is held while waiting
- Only text/html bodies are scanned, and only up to max_body_bytes
- Title extraction never fails the probe: a broken or slow body yields
  whatever title arrived within the timeout, usually ""
"""

import asyncio
import html
import logging
import re
from dataclasses import dataclass
from typing import Optional

import httpx

from shortener.core.exceptions import TargetTimeoutError, TargetUnreachableError

logger = logging.getLogger(__name__)

TITLE_PATTERN = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)

DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_MAX_BODY_BYTES = 512 * 1024


@dataclass
class ProbeResult:
    """Outcome of a successful probe."""
    status_code: int
    title: str = ""


def extract_title(document: str) -> str:
    """Return the trimmed, unescaped contents of the first <title>, or ""."""
    match = TITLE_PATTERN.search(document)
    if not match:
        return ""
    return html.unescape(match.group(1)).strip()


class LivenessProber:
    """
    Reachability check for target URLs.

    Args:
        timeout: Hard limit for the whole probe, in seconds
        max_body_bytes: Cap on HTML bytes read while looking for a title
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_body_bytes = max_body_bytes
        self.transport = transport

    async def probe(self, url: str) -> ProbeResult:
        """
        Fetch `url` once and judge whether it is alive.

        The hard timeout bounds the wait for the response status. The title
        is read with whatever is left of it; a slow body only costs the title.

        Returns:
            ProbeResult with the final status and the page title ("" if none)

        Raises:
            TargetTimeoutError: If no response status arrived within the timeout
            TargetUnreachableError: On a status >= 400 or any transport error
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout

        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            try:
                request = client.build_request("GET", url)
                response = await asyncio.wait_for(client.send(request, stream=True), timeout=self.timeout)
            except (asyncio.TimeoutError, httpx.TimeoutException):
                logger.info(f"Probe timed out after {self.timeout}s: {url}")
                raise TargetTimeoutError(url)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                logger.info(f"Probe failed for {url}: {e!r}")
                raise TargetUnreachableError(url)

            try:
                if response.status_code >= 400:
                    logger.info(f"Probe got HTTP {response.status_code} for {url}")
                    raise TargetUnreachableError(url)

                title = ""
                content_type = response.headers.get("content-type", "")
                if "text/html" in content_type.lower():
                    title = await self._read_title(response, max(deadline - loop.time(), 0))

                return ProbeResult(status_code=response.status_code, title=title)
            finally:
                await response.aclose()

    async def _read_title(self, response: httpx.Response, budget: float) -> str:
        body = bytearray()
        try:
            await asyncio.wait_for(self._read_head(response, body), timeout=budget)
        except asyncio.TimeoutError:
            logger.debug(f"Body of {response.url} still incomplete after the probe timeout")
        except httpx.HTTPError as e:
            logger.debug(f"Reading body of {response.url} failed: {e!r}")

        try:
            document = bytes(body[:self.max_body_bytes]).decode(
                response.encoding or "utf-8", errors="replace"
            )
        except LookupError:
            return ""
        return extract_title(document)

    async def _read_head(self, response: httpx.Response, body: bytearray) -> None:
        """Append body bytes into `body` until max_body_bytes or the end."""
        async for chunk in response.aiter_bytes():
            body.extend(chunk)
            if len(body) >= self.max_body_bytes:
                return
