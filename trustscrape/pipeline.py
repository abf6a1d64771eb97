"""Engine boundary: URL in, extracted document plus credibility verdict out.

``scrape_url`` orchestrates one request::

    fetch → extract → classify source → refine verdict with the page text

``scrape_many`` runs several requests concurrently behind a semaphore,
sharing one HTTP client.  Cancelling the caller cancels every in-flight fetch.
"""

from __future__ import annotations

import asyncio
import dataclasses
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import httpx
import structlog

from trustscrape.config import settings
from trustscrape.credibility.classifier import CredibilityClassifier, CredibilityVerdict
from trustscrape.errors import InvalidURLError
from trustscrape.scraper.extractor import extract
from trustscrape.scraper.fetcher import Fetcher
from trustscrape.scraper.models import ErrorKind, ExtractedDocument

logger = structlog.get_logger(__name__)

_default_classifier: Optional[CredibilityClassifier] = None


def default_classifier() -> CredibilityClassifier:
    """Process-wide classifier over the default registry (read-only)."""
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = CredibilityClassifier()
    return _default_classifier


@dataclass(frozen=True)
class ScrapeResponse:
    """Result of one engine request.

    ``document`` is set only when the fetch succeeded; ``credibility`` is
    always present because it depends on the URL alone.
    """

    url: str
    succeeded: bool
    fetch_timing_ms: int
    credibility: CredibilityVerdict
    document: Optional[ExtractedDocument] = None
    error_kind: ErrorKind = ErrorKind.NONE
    message: str = ""
    requires_rendering: bool = False

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation used by the API and the CLI."""
        payload = dataclasses.asdict(self)
        payload["error_kind"] = self.error_kind.value
        payload["credibility"] = self.credibility.to_dict()
        if self.document is not None:
            payload["document"]["headings"] = list(self.document.headings)
            payload["document"]["links"] = list(self.document.links)
            payload["document"]["images"] = [
                {"alt": alt, "url": url} for alt, url in self.document.images
            ]
        return payload


async def scrape_url(
    url: str,
    *,
    only_main_content: bool = True,
    max_bytes: Optional[int] = None,
    timeout_ms: Optional[int] = None,
    max_retries: Optional[int] = None,
    fetcher: Optional[Fetcher] = None,
    classifier: Optional[CredibilityClassifier] = None,
) -> ScrapeResponse:
    """Fetch, extract and classify *url*.

    Raises:
        InvalidURLError: If *url* fails pre-flight validation or redirects
            to a disallowed address.  Every other
            failure is reported in the returned :class:`ScrapeResponse`.
    """
    fetcher = fetcher or Fetcher()
    classifier = classifier or default_classifier()

    result = await fetcher.fetch(
        url, timeout_ms=timeout_ms, max_bytes=max_bytes, max_retries=max_retries
    )

    if not result.succeeded:
        return ScrapeResponse(
            url=result.url,
            succeeded=False,
            fetch_timing_ms=result.elapsed_ms,
            credibility=classifier.validate_url(result.url),
            error_kind=result.error_kind,
            message=result.message,
        )

    html = result.text
    document = extract(html, only_main_content=only_main_content, base_url=result.final_url)
    credibility = classifier.assess(result.url, document.main_text)
    logger.info(
        "scrape.done",
        url=result.url,
        tier=credibility.tier.value,
        word_count=document.word_count,
        truncated=result.truncated,
        elapsed_ms=result.elapsed_ms,
    )

    return ScrapeResponse(
        url=result.url,
        succeeded=True,
        fetch_timing_ms=result.elapsed_ms,
        credibility=credibility,
        document=document,
        error_kind=result.error_kind,
        message=result.message,
        requires_rendering=result.requires_rendering,
    )


async def scrape_many(
    urls: Iterable[str],
    *,
    concurrency: Optional[int] = None,
    only_main_content: bool = True,
    fetcher: Optional[Fetcher] = None,
    classifier: Optional[CredibilityClassifier] = None,
) -> list[ScrapeResponse]:
    """Scrape several URLs with at most *concurrency* fetches in flight.

    Results keep the input order.  URLs rejected by pre-flight validation
    come back as failed responses instead of aborting the batch.
    """
    url_list = list(urls)
    limit = max(1, concurrency or settings.max_concurrent_scrapes)
    semaphore = asyncio.Semaphore(limit)
    classifier = classifier or default_classifier()

    async def _one(active: Fetcher, url: str) -> ScrapeResponse:
        async with semaphore:
            try:
                return await scrape_url(
                    url,
                    only_main_content=only_main_content,
                    fetcher=active,
                    classifier=classifier,
                )
            except InvalidURLError as exc:
                logger.warning("scrape.invalid_url", url=url, reason=exc.reason)
                return ScrapeResponse(
                    url=url,
                    succeeded=False,
                    fetch_timing_ms=0,
                    credibility=classifier.validate_url(url),
                    error_kind=ErrorKind.INVALID_URL,
                    message=exc.reason,
                )

    if fetcher is not None:
        return list(await asyncio.gather(*(_one(fetcher, url) for url in url_list)))

    async with httpx.AsyncClient(limits=httpx.Limits(max_connections=limit)) as client:
        shared = Fetcher(client)
        return list(await asyncio.gather(*(_one(shared, url) for url in url_list)))
