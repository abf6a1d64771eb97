"""Exception types raised by the engine.

Only pre-flight input problems are exceptional.  Network faults are reported
through :class:`~trustscrape.scraper.models.FetchResult` instead.
"""

from __future__ import annotations


class TrustScrapeError(Exception):
    """Base class for all trustscrape errors."""


class InvalidURLError(TrustScrapeError, ValueError):
    """A URL failed local validation and was never sent to the network."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(reason)
        self.url = url
        self.reason = reason
