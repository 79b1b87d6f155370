"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from checker.api import app

    uvicorn checker.api:app --reload
"""

from checker.api.app import app

__all__ = ["app"]
