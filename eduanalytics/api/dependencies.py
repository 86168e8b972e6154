# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get the settings and database built at startup
- Get database sessions
- Get the school (tenant) and acting user of a request
- Get service instances

Authentication happens upstream; the gateway forwards the resolved school
in the X-School-ID header and the staff user in X-User-ID.

Example:
    @router.get("/school-overview")
    async def school_overview(
        school_id: str = Depends(require_school),
        db: AsyncSession = Depends(get_db),
    ):
        ...
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from eduanalytics.core.config.settings import Settings
from eduanalytics.domains.backup import BackupService
from eduanalytics.infrastructure.database.connection import Database
from eduanalytics.utils.logging import bind_context

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_database(request: Request) -> Database:
    """Get the application database.

    Raises:
        HTTPException: If the database has not been initialized.
    """
    database: Database | None = getattr(request.app.state, "database", None)
    if database is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not initialized",
        )
    return database


async def get_db(
    database: Annotated[Database, Depends(get_database)],
) -> AsyncGenerator[AsyncSession, None]:
    """Get a database session.

    The session is committed when the request handler returns and rolled
    back if it raises.

    Yields:
        AsyncSession for the application database.
    """
    async with database.session() as session:
        yield session


def get_backup_service(
    database: Annotated[Database, Depends(get_database)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> BackupService:
    """Get a backup service for the configured archive store."""
    return BackupService.from_settings(database, settings.backup)


# =========================================================================
# Request context
# =========================================================================

# Must stay async: context bound in a sync dependency stays in its worker thread.


async def require_school(
    x_school_id: Annotated[str | None, Header()] = None,
) -> str:
    """Require the school (tenant) of the request.

    The school is bound to the logging context of the request.

    Returns:
        School ID from the X-School-ID header.

    Raises:
        HTTPException: If no school context is present.
    """
    if not x_school_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="School context required",
        )
    bind_context(school_id=x_school_id)
    return x_school_id


async def require_user(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """Require the authenticated staff user of the request.

    The user is bound to the logging context of the request.

    Returns:
        User ID from the X-User-ID header.

    Raises:
        HTTPException: If the request is not authenticated.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    bind_context(user_id=x_user_id)
    return x_user_id
