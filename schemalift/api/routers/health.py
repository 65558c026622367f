"""Liveness endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from schemalift.config import settings

router = APIRouter()


@router.get("")
def health() -> dict[str, str]:
    return {
        "status": "ok",
        "llm_provider": settings.llm_provider,
        "visible_text_policy": settings.visible_text_policy,
    }
