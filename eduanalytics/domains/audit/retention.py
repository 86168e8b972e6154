# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Periodic purge of expired audit entries.

Uses APScheduler to run AuditService.purge_expired() on an interval while
the API is running.

Example:
    scheduler = AuditRetentionScheduler(database, retention_days=365)
    await scheduler.start()
    ...
    await scheduler.stop()
"""

import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from eduanalytics.domains.audit.service import DEFAULT_RETENTION_DAYS, AuditService
from eduanalytics.infrastructure.database.connection import Database, DatabaseError
from eduanalytics.utils.datetime import utc_now

logger = logging.getLogger(__name__)

PURGE_JOB_ID = "audit-retention"


class AuditRetentionScheduler:
    """Purges expired audit entries on startup and then on an interval.

    Attributes:
        retention_days: Age in days after which entries are purged.
        interval_hours: Time between purges.
        last_run: When the last purge finished, if any.
        purged_total: Entries deleted since the scheduler was created.
    """

    def __init__(
        self,
        database: Database,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        interval_hours: float = 24.0,
    ) -> None:
        self._database = database
        self._scheduler: AsyncIOScheduler | None = None
        self.retention_days = retention_days
        self.interval_hours = interval_hours
        self.last_run: datetime | None = None
        self.purged_total = 0

    @property
    def is_running(self) -> bool:
        """Check if the scheduler is running."""
        return self._scheduler is not None

    async def start(self) -> None:
        """Purge once, then schedule the periodic purge."""
        if self._scheduler is not None:
            return

        await self.run_purge()

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.run_purge,
            trigger=IntervalTrigger(hours=self.interval_hours),
            id=PURGE_JOB_ID,
            name="Purge expired audit entries",
        )
        self._scheduler.start()

        logger.info(
            "Audit retention scheduler started (every %sh, retention %d days)",
            self.interval_hours,
            self.retention_days,
        )

    async def stop(self) -> None:
        """Stop the scheduler."""
        if self._scheduler is None:
            return

        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Audit retention scheduler stopped")

    async def run_purge(self) -> int:
        """Delete expired entries in a session of their own.

        Database failures are logged; the next run tries again.

        Returns:
            Number of entries deleted.
        """
        try:
            async with self._database.session() as session:
                purged = await AuditService(session, self.retention_days).purge_expired()
        except DatabaseError as e:
            logger.error("Audit retention purge failed: %s", e)
            return 0

        self.last_run = utc_now()
        self.purged_total += purged
        return purged
