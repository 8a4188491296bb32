# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application factory and domain error mapping.

Services raise DomainError subclasses grouped by category (not found,
unauthorized, validation failure, store unavailable). The handler
registered here turns the category into a status code and the error into
a `{"detail", "error"}` JSON body.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src import __version__
from src.api.middleware.auth import REQUEST_ID_HEADER, AuthMiddleware
from src.api.routes import health_router
from src.api.v1 import router as v1_router
from src.core.config import get_settings
from src.domains.common import (
    DomainError,
    NotFoundError,
    StoreUnavailableError,
    UnauthorizedError,
    ValidationFailureError,
)
from src.infrastructure.database.connection import close_database, init_database
from src.infrastructure.events import get_dispatcher
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)

# Checked in order; the first matching category wins.
ERROR_STATUS_CODES: tuple[tuple[type[DomainError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (ValidationFailureError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (StoreUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_code_for(error: DomainError) -> int:
    """Map a domain error to its HTTP status code.

    Args:
        error: Error raised by a domain service.

    Returns:
        HTTP status code; 400 for errors outside the known categories.
    """
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Translate domain errors into JSON error responses."""
    code = status_code_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, str(exc))
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, code, str(exc))
    return JSONResponse(
        status_code=code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the store on startup; drain pending effects and close it on shutdown.

    The schema is created here only for SQLite development databases.
    PostgreSQL deployments are migrated with alembic before start.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info("Starting SchoolOps API %s (%s)", __version__, settings.environment)

    await init_database(settings, create_schema=settings.database.is_sqlite)
    dispatcher = get_dispatcher()
    logger.info("Store ready; effect dispatch enabled=%s", dispatcher.enabled)

    yield

    # Effects scheduled by the last requests still hold sessions.
    await dispatcher.drain(timeout=settings.dispatch.drain_timeout)
    logger.info("Effects drained: %s", dispatcher.get_stats())
    await close_database()
    logger.info("SchoolOps API stopped")


def create_app() -> FastAPI:
    """Build the application with middleware, error mapping and routers."""
    settings = get_settings()
    docs_enabled = settings.debug

    app = FastAPI(
        title="SchoolOps API",
        description="Classes, enrollment, assignments, submissions and exam periods",
        version=__version__,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
        # A 307 to the slashed path drops the Authorization header.
        redirect_slashes=False,
    )

    app.add_exception_handler(DomainError, domain_error_handler)

    # Last added runs first: CORS answers preflights before auth sees them.
    app.add_middleware(AuthMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
        expose_headers=[REQUEST_ID_HEADER],
    )

    app.include_router(health_router)
    app.include_router(v1_router)
    return app
