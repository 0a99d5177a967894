# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from skugraph.api.router import v1_router
from skugraph.config import get_settings
from skugraph.db.session import get_engine
from skugraph.errors import (
    DuplicateAssignmentError,
    DuplicateTypeError,
    EntityNotFoundError,
    ExhaustedRetriesError,
    NoTemplateFoundError,
    ProtectedTypeError,
    ProviderNotRegisteredError,
    RelationshipNotFoundError,
    SkuGraphError,
    StorageConflictError,
    UnknownTypeError,
    ValidationFailedError,
)
from skugraph.schemas.common import ErrorResponse
from skugraph.services.entity_data import EntityDataRegistry

logger = logging.getLogger(__name__)

# Most specific first; the first matching class wins.
_ERROR_STATUS: tuple[tuple[type[SkuGraphError], int], ...] = (
    (UnknownTypeError, 404),
    (RelationshipNotFoundError, 404),
    (EntityNotFoundError, 404),
    (NoTemplateFoundError, 404),
    (ProviderNotRegisteredError, 422),
    (ValidationFailedError, 422),
    (DuplicateTypeError, 409),
    (DuplicateAssignmentError, 409),
    (ProtectedTypeError, 409),
    (StorageConflictError, 409),
    (ExhaustedRetriesError, 503),
)


def status_for(exc: SkuGraphError) -> int:
    for error_type, status in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: startup and shutdown hooks."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    # Startup: auto-migrate in development mode
    if settings.environment == "development":
        import subprocess

        subprocess.run(["alembic", "upgrade", "head"], check=True)

    # The host application registers one provider per entity kind here.
    if not hasattr(app.state, "entity_providers"):
        app.state.entity_providers = EntityDataRegistry()

    yield

    await get_engine().dispose()


app = FastAPI(
    title="Skugraph",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(SkuGraphError)
async def domain_error_handler(request: Request, exc: SkuGraphError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    errors = exc.errors if isinstance(exc, ValidationFailedError) else []
    body = ErrorResponse(detail=str(exc), errors=errors)
    return JSONResponse(status_code=status, content=body.model_dump())


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Tenant-ID"],
)

app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe. Returns 200 if the process is running."""
    return {"status": "healthy"}


@app.get("/ready")
async def ready() -> dict[str, str]:
    """Readiness probe. Checks database connectivity."""
    engine = get_engine()
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return {"status": "ready"}
