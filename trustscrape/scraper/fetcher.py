"""Async HTTP fetcher with URL guards, byte caps and retry with backoff.

Uses ``httpx`` for all requests.  Network-layer faults never raise: they are
classified into an :class:`~trustscrape.scraper.models.ErrorKind` and
returned inside a :class:`~trustscrape.scraper.models.FetchResult`.  Only
URL validation raises (:class:`~trustscrape.errors.InvalidURLError`), both
before the first request and for every redirect hop.  Non-HTML responses are
reported as failures.
"""

from __future__ import annotations

import asyncio
import dataclasses
import random
import re
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Sequence
from urllib.parse import urljoin

import httpx
import structlog

from trustscrape.config import settings
from trustscrape.errors import InvalidURLError
from trustscrape.scraper.models import ErrorKind, FetchResult
from trustscrape.scraper.retry import backoff_delay, should_retry
from trustscrape.scraper.url_guard import normalize_url

logger = structlog.get_logger(__name__)

USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_2) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
)

_BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
    "DNT": "1",
}

MAX_REDIRECTS = 10

_HTML_CONTENT_RE = re.compile(r"text/html|application/xhtml", re.IGNORECASE)


def _redirect_target(response: httpx.Response) -> str:
    """Resolve and re-validate the ``Location`` of a redirect response.

    Every hop goes through :func:`normalize_url`, so a public page cannot
    bounce the fetcher onto a local or private address.
    """
    location = urljoin(str(response.url), response.headers.get("location", ""))
    try:
        return normalize_url(location)
    except InvalidURLError as exc:
        raise InvalidURLError(location, f"Redirect blocked: {exc.reason}") from exc


# ---------------------------------------------------------------------------
# SPA / JS-rendered page detection heuristics
# ---------------------------------------------------------------------------
_SPA_PATTERNS = [
    re.compile(r'<div[^>]+id=["\'](?:root|app)["\']', re.IGNORECASE),
    re.compile(r"window\.__NEXT_DATA__", re.IGNORECASE),
    re.compile(r"ng-version=", re.IGNORECASE),
    re.compile(r"data-reactroot", re.IGNORECASE),
]


def looks_like_spa(html: str) -> bool:
    """Return ``True`` if *html* looks like a JavaScript SPA that needs rendering."""
    for pattern in _SPA_PATTERNS:
        if pattern.search(html):
            return True
    # Very little visible text relative to total HTML size.  Strip <script>
    # and <style> blocks first so their source doesn't count as visible text.
    no_scripts = re.sub(
        r"<(script|style)[^>]*>.*?</(script|style)>", "", html, flags=re.IGNORECASE | re.DOTALL
    )
    stripped = re.sub(r"<[^>]+>", "", no_scripts).strip()
    return len(html) > 2000 and len(stripped) < 200


async def _read_capped(response: httpx.Response, max_bytes: int) -> tuple[bytes, bool]:
    """Read at most *max_bytes* of the body.  Returns ``(body, truncated)``."""
    buffer = bytearray()
    async for chunk in response.aiter_bytes():
        room = max_bytes - len(buffer)
        if len(chunk) > room:
            buffer.extend(chunk[:room])
            return bytes(buffer), True
        buffer.extend(chunk)
    return bytes(buffer), False


class Fetcher:
    """Fetches pages with a rotating client identity and a bounded retry loop.

    A shared :class:`httpx.AsyncClient` may be passed in (e.g. by a batch
    scraper); otherwise a short-lived client is opened for each ``fetch``.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        timeout_ms: Optional[int] = None,
        max_bytes: Optional[int] = None,
        max_retries: Optional[int] = None,
        base_delay: Optional[float] = None,
        user_agents: Sequence[str] = USER_AGENTS,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._client = client
        self._owns_client = False
        self.timeout_ms = timeout_ms if timeout_ms is not None else settings.fetch_timeout_ms
        self.max_bytes = max_bytes if max_bytes is not None else settings.fetch_max_bytes
        self.max_retries = max_retries if max_retries is not None else settings.fetch_max_retries
        self.base_delay = base_delay if base_delay is not None else settings.fetch_retry_base_delay
        self.user_agents = tuple(user_agents) or USER_AGENTS
        self._rng = rng or random.Random()

    async def __aenter__(self) -> "Fetcher":
        if self._client is None:
            self._client = httpx.AsyncClient()
            self._owns_client = True
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def build_headers(self) -> dict[str, str]:
        """Browser-like request headers with a randomly chosen User-Agent."""
        return {"User-Agent": self._rng.choice(self.user_agents), **_BROWSER_HEADERS}

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient() as client:
            yield client

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        url: str,
        max_bytes: int,
        timeout_s: float,
    ) -> FetchResult:
        target = url
        for _hop in range(MAX_REDIRECTS + 1):
            async with client.stream(
                "GET",
                target,
                headers=self.build_headers(),
                timeout=timeout_s,
                follow_redirects=False,
            ) as response:
                if response.is_redirect:
                    target = _redirect_target(response)
                    logger.debug("fetch.redirect", url=url, location=target)
                    continue
                return await self._read_response(url, response, max_bytes)

        return self._failure(url, ErrorKind.NETWORK_ERROR, f"Too many redirects (> {MAX_REDIRECTS})")

    async def _read_response(
        self, url: str, response: httpx.Response, max_bytes: int
    ) -> FetchResult:
        headers = {key.lower(): value for key, value in response.headers.items()}
        final_url = str(response.url)

        def _rejected(message: str) -> FetchResult:
            return FetchResult(
                url=url,
                final_url=final_url,
                status_code=response.status_code,
                body=b"",
                elapsed_ms=0,
                headers=headers,
                succeeded=False,
                error_kind=ErrorKind.HTTP_ERROR,
                message=message,
            )

        if not 200 <= response.status_code < 300:
            return _rejected(f"HTTP {response.status_code}")
        content_type = headers.get("content-type", "")
        if content_type and not _HTML_CONTENT_RE.search(content_type):
            return _rejected("Not HTML content")

        body, truncated = await _read_capped(response, max_bytes)
        return FetchResult(
            url=url,
            final_url=final_url,
            status_code=response.status_code,
            body=body,
            elapsed_ms=0,
            headers=headers,
            succeeded=True,
            error_kind=ErrorKind.TOO_LARGE if truncated else ErrorKind.NONE,
        )

    def _failure(self, url: str, kind: ErrorKind, message: str) -> FetchResult:
        return FetchResult(
            url=url,
            final_url=url,
            status_code=0,
            body=b"",
            elapsed_ms=0,
            succeeded=False,
            error_kind=kind,
            message=message,
        )

    async def _guarded_attempt(
        self,
        client: httpx.AsyncClient,
        url: str,
        max_bytes: int,
        timeout_ms: int,
    ) -> FetchResult:
        """Run one attempt under a cancellation-based deadline, classifying faults."""
        timeout_s = timeout_ms / 1000
        try:
            return await asyncio.wait_for(
                self._attempt(client, url, max_bytes, timeout_s), timeout=timeout_s
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return self._failure(url, ErrorKind.TIMEOUT, f"Timed out after {timeout_ms} ms")
        except httpx.InvalidURL as exc:
            raise InvalidURLError(url, f"Invalid URL format: {exc}") from exc
        except httpx.HTTPError as exc:
            return self._failure(url, ErrorKind.NETWORK_ERROR, f"Network error: {exc}")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch(
        self,
        url: str,
        *,
        timeout_ms: Optional[int] = None,
        max_bytes: Optional[int] = None,
        max_retries: Optional[int] = None,
    ) -> FetchResult:
        """Fetch *url* and return a :class:`FetchResult`.

        Retries HTTP 429, 5xx, timeouts and network errors up to
        ``max_retries`` times with linear backoff.  Other 4xx responses are
        returned immediately.

        Raises:
            InvalidURLError: If *url* fails pre-flight validation or a
                redirect points at a disallowed address.
        """
        target = normalize_url(url)
        timeout_ms = timeout_ms if timeout_ms is not None else self.timeout_ms
        max_bytes = max_bytes if max_bytes is not None else self.max_bytes
        max_retries = max(0, max_retries if max_retries is not None else self.max_retries)

        started = time.monotonic()
        result: Optional[FetchResult] = None
        attempts = 0

        async with self._session() as client:
            for attempt in range(max_retries + 1):
                if attempt:
                    delay = backoff_delay(attempt, self.base_delay)
                    logger.info("fetch.retry", url=target, attempt=attempt + 1, delay_seconds=delay)
                    await asyncio.sleep(delay)

                attempts = attempt + 1
                result = await self._guarded_attempt(client, target, max_bytes, timeout_ms)
                if not should_retry(result.error_kind, result.status_code, attempt, max_retries):
                    break

        assert result is not None
        elapsed_ms = int((time.monotonic() - started) * 1000)

        if result.succeeded:
            logger.debug(
                "fetch.done",
                url=target,
                status_code=result.status_code,
                bytes=len(result.body),
                truncated=result.truncated,
                attempts=attempts,
                elapsed_ms=elapsed_ms,
            )
        else:
            logger.warning(
                "fetch.failed",
                url=target,
                error_kind=result.error_kind.value,
                message=result.message,
                attempts=attempts,
                elapsed_ms=elapsed_ms,
            )

        return dataclasses.replace(result, elapsed_ms=elapsed_ms, attempts=attempts)
