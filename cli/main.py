"""trustscrape CLI: entry-point for engine operations.

Usage:
    python cli/main.py --help

Commands:
    scrape       → fetch + extract + classify a URL
    validate     → credibility verdict for a URL (optionally with text)
    genericness  → boilerplate/AI-filler score for a piece of text
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from trustscrape.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json
from typing import Optional

import typer

from trustscrape.credibility import CredibilityClassifier
from trustscrape.errors import InvalidURLError
from trustscrape.logging_setup import configure_logging
from trustscrape.pipeline import scrape_url

app = typer.Typer(
    name="trustscrape",
    help="Content extraction & source credibility CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Log level (default: LOG_LEVEL or INFO)."),
) -> None:
    configure_logging(log_level)


# ---------------------------------------------------------------------------
# Scrape
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    url: str = typer.Option(..., help="URL to scrape."),
    raw: bool = typer.Option(False, "--raw", help="Keep the whole <body>, not just the main content."),
    as_json: bool = typer.Option(False, "--json", help="Print the full response as JSON."),
    max_retries: Optional[int] = typer.Option(None, help="Retries for transient failures."),
    timeout_ms: Optional[int] = typer.Option(None, help="Per-attempt timeout in milliseconds."),
) -> None:
    """Scrape a URL and print its markdown with a credibility summary."""
    typer.echo(f"[scrape] Fetching {url!r} …", err=True)
    try:
        response = asyncio.run(
            scrape_url(
                url,
                only_main_content=not raw,
                max_retries=max_retries,
                timeout_ms=timeout_ms,
            )
        )
    except InvalidURLError as exc:
        typer.echo(f"[scrape] Invalid URL: {exc.reason}", err=True)
        raise typer.Exit(2)

    if as_json:
        typer.echo(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))
        if not response.succeeded:
            raise typer.Exit(1)
        return

    if not response.succeeded:
        typer.echo(
            f"[scrape] Failed ({response.error_kind.value}) after "
            f"{response.fetch_timing_ms} ms: {response.message}",
            err=True,
        )
        raise typer.Exit(1)

    doc = response.document
    verdict = response.credibility
    typer.echo(f"[scrape] Title  : {doc.title or '(none)'}", err=True)
    typer.echo(f"[scrape] Words  : {doc.word_count}", err=True)
    typer.echo(f"[scrape] Links  : {len(doc.links)}", err=True)
    typer.echo(f"[scrape] Source : {verdict.badge} ({verdict.score:.2f})", err=True)
    for warning in verdict.warnings:
        typer.echo(f"[scrape] Warning: {warning}", err=True)
    if response.requires_rendering:
        typer.echo("[scrape] Page looks JS-rendered; content may be incomplete.", err=True)
    typer.echo(doc.markdown)


# ---------------------------------------------------------------------------
# Credibility
# ---------------------------------------------------------------------------
@app.command("validate")
def validate(
    url: str = typer.Option(..., help="Source URL to classify."),
    text: Optional[str] = typer.Option(None, help="Page text used for genericness signals."),
) -> None:
    """Print the credibility verdict for a URL as JSON."""
    classifier = CredibilityClassifier()
    verdict = classifier.assess(url, text) if text else classifier.validate_url(url)
    typer.echo(json.dumps(verdict.to_dict(), indent=2))
    if not verdict.is_valid:
        raise typer.Exit(1)


@app.command("genericness")
def genericness(
    text: str = typer.Option(..., help="Text to score."),
) -> None:
    """Print the boilerplate/AI-filler score of a text."""
    classifier = CredibilityClassifier()
    score = classifier.score_genericness(text)
    flag = " (generic)" if classifier.is_generic(text) else ""
    typer.echo(f"{score:.3f}{flag}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
