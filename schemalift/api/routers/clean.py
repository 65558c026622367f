"""Cleaning endpoint.

Routes
------
POST /clean    Body: {"html": "<html>...", "policy": "exhaustive"}
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from schemalift.pipeline.cleaner import clean
from schemalift.pipeline.flatten import flatten
from schemalift.pipeline.visible_text import get_strategy

router = APIRouter()


class CleanRequest(BaseModel):
    html: str
    policy: Optional[str] = None
    include_flattened: bool = False


@router.post("")
def clean_endpoint(body: CleanRequest) -> dict[str, Any]:
    """Return the content bundle for *html*; optionally its flattened lines."""
    try:
        strategy = get_strategy(body.policy) if body.policy else None
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    bundle = clean(body.html, strategy=strategy)
    payload = bundle.to_dict()
    if body.include_flattened:
        payload["flattened"] = list(flatten(bundle.cleaned_markup).lines)
    return payload
