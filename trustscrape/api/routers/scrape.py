"""Scrape and credibility endpoints.

Routes
------
POST /scrape        Body: {"url": "...", "only_main_content": true, ...}
POST /credibility   Body: {"url": "...", "text": "..."}
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from trustscrape.errors import InvalidURLError
from trustscrape.pipeline import scrape_url
from trustscrape.scraper.fetcher import Fetcher

router = APIRouter()

# Upper bound on the body size a caller may ask the server to buffer.
MAX_REQUEST_BYTES = 10_000_000


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ScrapeRequest(BaseModel):
    url: str
    only_main_content: bool = True
    max_bytes: Optional[int] = Field(default=None, gt=0, le=MAX_REQUEST_BYTES)
    timeout_ms: Optional[int] = Field(default=None, gt=0, le=60_000)
    max_retries: Optional[int] = Field(default=None, ge=0, le=5)


class CredibilityRequest(BaseModel):
    url: str
    text: Optional[str] = None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/scrape")
async def scrape_endpoint(body: ScrapeRequest, request: Request) -> JSONResponse:
    """Fetch a URL, extract its main content and classify the source.

    Returns 400 when the URL fails validation and 502 when the fetch failed;
    the 502 body still carries ``error_kind``, ``message`` and timing.
    """
    fetcher = Fetcher(request.app.state.http)
    try:
        response = await scrape_url(
            body.url,
            only_main_content=body.only_main_content,
            max_bytes=body.max_bytes,
            timeout_ms=body.timeout_ms,
            max_retries=body.max_retries,
            fetcher=fetcher,
            classifier=request.app.state.classifier,
        )
    except InvalidURLError as exc:
        raise HTTPException(status_code=400, detail=exc.reason) from exc

    return JSONResponse(response.to_dict(), status_code=200 if response.succeeded else 502)


@router.post("/credibility")
def credibility_endpoint(body: CredibilityRequest, request: Request) -> dict[str, Any]:
    """Classify the source behind a URL; page text adds genericness signals."""
    classifier = request.app.state.classifier
    if body.text:
        return classifier.assess(body.url, body.text).to_dict()
    return classifier.validate_url(body.url).to_dict()
