# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the audit retention scheduler."""

import logging
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from eduanalytics.domains.audit import AuditRetentionScheduler, AuditService
from eduanalytics.infrastructure.database.connection import DatabaseError
from eduanalytics.infrastructure.database.models import AuditAction, AuditLog
from eduanalytics.utils.datetime import utc_now


@pytest_asyncio.fixture
async def school(persist, school_factory):
    """A persisted school to audit."""
    data = school_factory("oscar", student_count=0)
    await persist(data)
    return data


@pytest_asyncio.fixture
async def aged_entries(database, school):
    """Audit entries 10 and 400 days old."""
    async with database.session() as session:
        session.add_all(
            [
                AuditLog(
                    school_id=school.id,
                    user_id=school.teacher.id,
                    action=AuditAction.USER_LOGIN.value,
                    timestamp=utc_now() - timedelta(days=age),
                )
                for age in (10, 400)
            ]
        )


async def remaining_entries(database, school) -> int:
    async with database.session() as session:
        _, total = await AuditService(session).list_logs(school.id)
    return total


class TestAuditRetentionScheduler:
    """Tests for AuditRetentionScheduler."""

    @pytest.mark.asyncio
    async def test_start_purges_expired_entries(self, database, school, aged_entries) -> None:
        """Test starting purges right away and keeps the schedule running."""
        scheduler = AuditRetentionScheduler(database, retention_days=365, interval_hours=1)

        await scheduler.start()
        try:
            assert scheduler.is_running is True
            assert scheduler.purged_total == 1
            assert scheduler.last_run is not None
            assert await remaining_entries(database, school) == 1
        finally:
            await scheduler.stop()

        assert scheduler.is_running is False

    @pytest.mark.asyncio
    async def test_retention_period_applies(self, database, school, aged_entries) -> None:
        """Test a shorter retention purges more entries."""
        scheduler = AuditRetentionScheduler(database, retention_days=5)

        assert await scheduler.run_purge() == 2
        assert await remaining_entries(database, school) == 0

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_schedule(self, database) -> None:
        """Test a second start does not purge or schedule again."""
        scheduler = AuditRetentionScheduler(database)

        with patch.object(AuditService, "purge_expired", AsyncMock(return_value=0)) as purge:
            await scheduler.start()
            await scheduler.start()
            await scheduler.stop()

        purge.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stop_when_not_started(self, database) -> None:
        """Test stopping an idle scheduler does nothing."""
        scheduler = AuditRetentionScheduler(database)

        await scheduler.stop()

        assert scheduler.is_running is False

    @pytest.mark.asyncio
    async def test_database_failure_is_logged(self, database, caplog) -> None:
        """Test a failed purge is logged and does not raise."""
        scheduler = AuditRetentionScheduler(database)

        with patch.object(
            AuditService,
            "purge_expired",
            AsyncMock(side_effect=DatabaseError("Database operation failed")),
        ):
            with caplog.at_level(logging.ERROR, logger="eduanalytics.domains.audit.retention"):
                purged = await scheduler.run_purge()

        assert purged == 0
        assert scheduler.last_run is None
        assert "Audit retention purge failed" in caplog.text
