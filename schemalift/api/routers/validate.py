"""Validation endpoint.

Routes
------
POST /validate    Body: {"candidates": [...], "page_url": "https://..."}
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from schemalift.pipeline.validator import validate

router = APIRouter()


class ValidateRequest(BaseModel):
    # Items are left untyped: a non-object candidate is a rejection, not a 422.
    candidates: list[Any]
    page_url: Optional[str] = None


@router.post("")
def validate_endpoint(body: ValidateRequest) -> dict[str, Any]:
    """Validate candidate entities and return the report."""
    report = validate(body.candidates, page_url=body.page_url)
    return report.to_dict()
