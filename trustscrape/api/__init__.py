"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from trustscrape.api import app

    uvicorn trustscrape.api:app --reload
"""

from trustscrape.api.app import app

__all__ = ["app"]
