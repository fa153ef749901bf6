"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from airtable_source.api import app

    uvicorn airtable_source.api:app --reload
"""

from airtable_source.api.app import app

__all__ = ["app"]
