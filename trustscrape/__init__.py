"""trustscrape: content extraction and source credibility engine."""

__version__ = "0.1.0"
