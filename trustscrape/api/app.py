"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging, opens a single ``httpx.AsyncClient``
shared by all requests (``request.app.state.http``) and builds the
credibility classifier once (``request.app.state.classifier``).  On shutdown
it closes the client cleanly.

Routers
-------
    /scrape         fetch + extract + classify one URL
    /credibility    classify a URL, optionally with page text
    /health         liveness check
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trustscrape.api.routers import scrape as scrape_router
from trustscrape.credibility import CredibilityClassifier
from trustscrape.logging_setup import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the shared HTTP client on startup and close it on shutdown."""
    configure_logging()
    client = httpx.AsyncClient()
    app.state.http = client
    app.state.classifier = CredibilityClassifier()
    try:
        yield
    finally:
        await client.aclose()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="trustscrape API",
        description=(
            "Content extraction and source credibility engine. "
            "Fetches a page, isolates its main content as markdown and "
            "assigns the source a credibility tier."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Allow browser dashboards on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(scrape_router.router, tags=["scrape"])

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# Module-level instance used by uvicorn:
#   uvicorn trustscrape.api.app:app --reload
app = create_app()
