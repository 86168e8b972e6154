# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the EduAnalytics API.

Example:
    uvicorn eduanalytics.api.app:create_app --factory --port 5000
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eduanalytics import __version__
from eduanalytics.api.middleware import RequestContextMiddleware
from eduanalytics.api.routes import health
from eduanalytics.api.v1 import router as v1_router
from eduanalytics.core.config import Settings, get_settings
from eduanalytics.domains.audit import AuditRetentionScheduler
from eduanalytics.infrastructure.database.connection import Database, DatabaseError
from eduanalytics.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Opens the database on startup unless one was provided to create_app,
    and closes the database it opened on shutdown. SQLite databases get
    their schema created from the ORM metadata; other databases are
    expected to be migrated with Alembic. While the app runs, expired
    audit entries are purged on an interval.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info(
        "Starting EduAnalytics API",
        extra={"environment": settings.environment, "debug": settings.debug},
    )

    # =========================================================================
    # Startup
    # =========================================================================

    owns_database = app.state.database is None
    if owns_database:
        app.state.database = Database.from_settings(settings.database)
        if settings.database.is_sqlite:
            await app.state.database.create_all()
        logger.info("Database connection initialized")

    app.state.audit_retention = None
    if settings.audit.purge_enabled:
        retention = AuditRetentionScheduler(
            app.state.database,
            retention_days=settings.audit.retention_days,
            interval_hours=settings.audit.purge_interval_hours,
        )
        try:
            await retention.start()
            app.state.audit_retention = retention
        except Exception as e:
            logger.warning("Failed to start audit retention scheduler: %s", str(e))

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    if app.state.audit_retention is not None:
        await app.state.audit_retention.stop()
        app.state.audit_retention = None

    if owns_database:
        await app.state.database.dispose()
        app.state.database = None
        logger.info("Database connection closed")

    logger.info("Shutting down EduAnalytics API")


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    """Log a database failure and answer with a generic error."""
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a new FastAPI instance with all
    middleware, routes, and configurations applied.

    Args:
        settings: Settings to use; the cached environment settings if None.
        database: Database to use; one is opened from settings at startup
            if None.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="EduAnalytics API",
        description="School performance analytics and data backup service",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    app.state.settings = settings
    app.state.database = database

    # =========================================================================
    # Exception handlers
    # =========================================================================
    app.add_exception_handler(DatabaseError, database_error_handler)

    # =========================================================================
    # Middleware
    # =========================================================================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )
    app.add_middleware(RequestContextMiddleware)

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app


def run() -> None:
    """Serve the API with uvicorn using the API settings."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "eduanalytics.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        workers=1 if settings.api.reload else settings.api.workers,
        reload=settings.api.reload,
        log_config=None,
    )
