"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from schemalift.api import app

    uvicorn schemalift.api:app --reload
"""

from schemalift.api.app import app

__all__ = ["app"]
