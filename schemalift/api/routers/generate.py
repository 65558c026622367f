"""Pipeline endpoint.

Routes
------
POST /generate    Body: {"url": "https://..."}    → run_pipeline
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, HttpUrl

from schemalift.pipeline.runner import run_pipeline
from schemalift.pipeline.visible_text import get_strategy

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class GenerateRequest(BaseModel):
    url: HttpUrl
    policy: Optional[str] = None


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

@router.post("")
def generate(body: GenerateRequest) -> dict[str, Any]:
    """Fetch the page, run every stage and return the accepted JSON-LD.

    Stage failures are turned into ``422 {success, stage, reason}`` by the
    app-level handler.
    """
    try:
        strategy = get_strategy(body.policy) if body.policy else None
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    result = run_pipeline(str(body.url), strategy=strategy)
    return result.to_dict()
