"""Data models for the scraper pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


class ErrorKind(str, Enum):
    """How a fetch ended.  ``NONE`` means a clean success.

    ``INVALID_URL`` never appears on a :class:`FetchResult` (the fetcher
    raises instead); batch scraping uses it to report rejected inputs.
    """

    NONE = "none"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    TOO_LARGE = "too_large"
    INVALID_URL = "invalid_url"


_CHARSET_RE = re.compile(r"charset=[\"']?([\w.:-]+)", re.IGNORECASE)


@dataclass(frozen=True)
class FetchResult:
    """The outcome of fetching a single URL.

    ``TOO_LARGE`` is reported alongside ``succeeded=True``: the body was
    truncated to the byte cap and is still usable for extraction.
    """

    url: str
    final_url: str
    status_code: int
    body: bytes
    elapsed_ms: int
    headers: Dict[str, str] = field(default_factory=dict)
    succeeded: bool = True
    error_kind: ErrorKind = ErrorKind.NONE
    message: str = ""
    attempts: int = 1

    @property
    def truncated(self) -> bool:
        return self.error_kind is ErrorKind.TOO_LARGE

    @property
    def charset(self) -> str:
        match = _CHARSET_RE.search(self.headers.get("content-type", ""))
        return match.group(1) if match else "utf-8"

    @property
    def text(self) -> str:
        """The body decoded with the response charset (UTF-8 fallback)."""
        try:
            return self.body.decode(self.charset, errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")

    @property
    def requires_rendering(self) -> bool:
        """``True`` if the body looks like a JS shell that needs a browser."""
        # Imported here to keep the models module free of fetcher imports.
        from trustscrape.scraper.fetcher import looks_like_spa  # noqa: PLC0415

        return self.succeeded and looks_like_spa(self.text)


@dataclass(frozen=True)
class ExtractedDocument:
    """Cleaned, readable content extracted from one page of HTML."""

    title: str = ""
    description: str = ""
    main_text: str = ""
    markdown: str = ""
    headings: Tuple[str, ...] = ()
    links: Tuple[str, ...] = ()
    images: Tuple[Tuple[str, str], ...] = ()
    author: Optional[str] = None
    publish_date: Optional[str] = None
    word_count: int = 0
    language: Optional[str] = None
