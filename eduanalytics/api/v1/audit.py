# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit trail API endpoints.

This module provides read access to a school's audit trail:
- GET / - Audit entries of the school, newest first
"""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from eduanalytics.api.dependencies import get_app_settings, get_db, require_school, require_user
from eduanalytics.core.config.settings import Settings
from eduanalytics.domains.audit import AuditService
from eduanalytics.infrastructure.database.models.audit import AuditAction
from eduanalytics.models.audit import AuditLogListResponse, AuditLogResponse
from eduanalytics.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=AuditLogListResponse,
    summary="List audit logs",
    description="Audited actions of the current school, newest first, filtered by action and time.",
)
async def list_audit_logs(
    action: Annotated[AuditAction | None, Query()] = None,
    since: Annotated[datetime | None, Query()] = None,
    until: Annotated[datetime | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
    school_id: str = Depends(require_school),
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> AuditLogListResponse:
    """List the school's audit entries.

    Raises:
        HTTPException: If since is later than until.
    """
    since, until = ensure_utc(since), ensure_utc(until)
    if since is not None and until is not None and since > until:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="since must not be later than until",
        )

    service = AuditService(db, settings.audit.retention_days)
    entries, total = await service.list_logs(
        school_id, action=action, since=since, until=until, limit=limit, offset=offset
    )
    logger.debug("Audit logs listed: user=%s, total=%d", user_id, total)

    return AuditLogListResponse(
        logs=[AuditLogResponse.model_validate(entry) for entry in entries],
        total=total,
        limit=limit,
        offset=offset,
    )
