"""Scraper package: resilient fetch & main-content extraction."""

from trustscrape.scraper.extractor import extract
from trustscrape.scraper.fetcher import Fetcher
from trustscrape.scraper.models import ErrorKind, ExtractedDocument, FetchResult

__all__ = ["Fetcher", "extract", "ErrorKind", "FetchResult", "ExtractedDocument"]
