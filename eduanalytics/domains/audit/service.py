# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit trail service module.

Records staff actions such as logins, marks entry and backups, and purges
entries once they are older than the retention period.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from eduanalytics.infrastructure.database.models.audit import AuditAction, AuditLog, AuditStatus
from eduanalytics.utils.datetime import days_ago, ensure_utc, utc_now

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 365


class AuditService:
    """Service for writing and reading audit logs.

    Attributes:
        retention_days: Age in days after which entries are purged.
    """

    def __init__(self, db: AsyncSession, retention_days: int = DEFAULT_RETENTION_DAYS) -> None:
        """Initialize the audit service.

        Args:
            db: Async database session.
            retention_days: Age in days after which entries are purged.
        """
        self._db = db
        self.retention_days = retention_days

    async def record(
        self,
        action: AuditAction,
        user_id: str,
        school_id: str,
        status: AuditStatus = AuditStatus.SUCCESS,
        details: dict[str, Any] | None = None,
        resource_id: str | None = None,
        resource_type: str | None = None,
        ip: str | None = None,
        user_agent: str | None = None,
        error_message: str | None = None,
    ) -> AuditLog:
        """Record an audited action.

        Args:
            action: What was done.
            user_id: Staff user who did it.
            school_id: School it was done in.
            status: Whether it succeeded.
            details: Extra context.
            resource_id: Affected resource, if any.
            resource_type: Kind of the affected resource.
            ip: Client address.
            user_agent: Client user agent.
            error_message: Failure description for FAILURE entries.

        Returns:
            The new AuditLog entry.
        """
        entry = AuditLog(
            school_id=school_id,
            user_id=user_id,
            action=AuditAction(action).value,
            status=AuditStatus(status).value,
            timestamp=utc_now(),
            details=details or {},
            resource_id=resource_id,
            resource_type=resource_type,
            ip=ip,
            user_agent=user_agent[:500] if user_agent else None,
            error_message=error_message,
        )
        self._db.add(entry)
        await self._db.flush()

        logger.debug("Audit entry recorded: action=%s, status=%s", entry.action, entry.status)
        return entry

    async def list_logs(
        self,
        school_id: str,
        action: AuditAction | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[AuditLog], int]:
        """List a school's audit entries, newest first.

        Args:
            school_id: School whose entries are listed.
            action: Only entries of this action.
            since: Only entries at or after this time.
            until: Only entries at or before this time.
            limit: Maximum number of entries returned.
            offset: Number of entries skipped.

        Returns:
            Tuple of (entries, total count matching the filters).
        """
        filters = [AuditLog.school_id == school_id]
        if action is not None:
            filters.append(AuditLog.action == AuditAction(action).value)
        if since is not None:
            filters.append(AuditLog.timestamp >= ensure_utc(since))
        if until is not None:
            filters.append(AuditLog.timestamp <= ensure_utc(until))

        total = await self._db.scalar(select(func.count(AuditLog.id)).where(*filters))
        result = await self._db.execute(
            select(AuditLog)
            .where(*filters)
            .order_by(AuditLog.timestamp.desc(), AuditLog.id)
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total or 0

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Delete entries older than the retention period.

        Args:
            now: Reference time; current UTC time if None.

        Returns:
            Number of entries deleted.
        """
        cutoff = days_ago(self.retention_days, reference=now)
        result = await self._db.execute(
            delete(AuditLog)
            .where(AuditLog.timestamp < cutoff)
            .execution_options(synchronize_session=False)
        )
        purged = result.rowcount or 0
        if purged:
            logger.info("Purged expired audit entries: count=%d, cutoff=%s", purged, cutoff.isoformat())
        return purged
