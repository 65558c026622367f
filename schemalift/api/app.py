"""FastAPI application factory.

Routers
-------
All endpoint groups are mounted under their respective path prefix:

    /generate  full pipeline for a URL
    /clean     deterministic cleaning of posted HTML
    /validate  validation and repair of posted candidate entities
    /health    liveness

Every :class:`PipelineError` becomes ``422 {"success": false, "stage",
"reason"}``; validation failures also carry ``rejectedEntities``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from schemalift.config import settings
from schemalift.errors import PipelineError
from schemalift.logging_config import setup_logging

from schemalift.api.routers import clean as clean_router
from schemalift.api.routers import generate as generate_router
from schemalift.api.routers import health as health_router
from schemalift.api.routers import validate as validate_router

_log = logging.getLogger(__name__)


async def _pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    _log.warning("%s %s failed at %s: %s", request.method, request.url.path, exc.stage, exc.reason)
    return JSONResponse(status_code=422, content=exc.to_dict())


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    setup_logging(settings.log_level)

    app = FastAPI(
        title="SchemaLift API",
        description=(
            "Turns web pages into validated Schema.org JSON-LD. Exposes the "
            "full pipeline plus the deterministic cleaning and validation "
            "stages on their own."
        ),
        version="0.1.0",
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PipelineError, _pipeline_error_handler)

    app.include_router(generate_router.router, prefix="/generate", tags=["generate"])
    app.include_router(clean_router.router, prefix="/clean", tags=["clean"])
    app.include_router(validate_router.router, prefix="/validate", tags=["validate"])
    app.include_router(health_router.router, prefix="/health", tags=["health"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn schemalift.api.app:app --reload
app = create_app()
