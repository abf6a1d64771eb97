"""Centralised settings for the trustscrape engine.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Fetcher
    # ------------------------------------------------------------------
    fetch_timeout_ms: int = field(
        default_factory=lambda: int(os.environ.get("FETCH_TIMEOUT_MS", "20000"))
    )
    fetch_max_bytes: int = field(
        default_factory=lambda: int(os.environ.get("FETCH_MAX_BYTES", "2000000"))
    )
    fetch_max_retries: int = field(
        default_factory=lambda: int(os.environ.get("FETCH_MAX_RETRIES", "2"))
    )
    fetch_retry_base_delay: float = field(
        default_factory=lambda: float(os.environ.get("FETCH_RETRY_BASE_DELAY", "1.0"))
    )
    max_concurrent_scrapes: int = field(
        default_factory=lambda: int(os.environ.get("MAX_CONCURRENT_SCRAPES", "4"))
    )

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------
    markdown_max_chars: int = field(
        default_factory=lambda: int(os.environ.get("MARKDOWN_MAX_CHARS", "12000"))
    )

    # ------------------------------------------------------------------
    # Credibility thresholds
    # ------------------------------------------------------------------
    min_valid_score: float = field(
        default_factory=lambda: float(os.environ.get("MIN_VALID_SCORE", "0.3"))
    )
    genericness_threshold: float = field(
        default_factory=lambda: float(os.environ.get("GENERICNESS_THRESHOLD", "0.5"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper()
    )
    environment: str = field(
        default_factory=lambda: os.environ.get("ENVIRONMENT", "local").lower()
    )

    @property
    def is_local(self) -> bool:
        """``True`` when running in a local/development environment."""
        return self.environment in ("", "local", "development", "dev")


# Module-level singleton, import this everywhere:
#   from trustscrape.config import settings
settings = Settings()
