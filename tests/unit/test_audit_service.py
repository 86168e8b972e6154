# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the audit trail service."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from eduanalytics.domains.audit import DEFAULT_RETENTION_DAYS, AuditService
from eduanalytics.infrastructure.database.models import AuditAction, AuditLog, AuditStatus

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def school(persist, school_factory):
    """A persisted school to audit."""
    data = school_factory("november", student_count=0)
    await persist(data)
    return data


class TestRecord:
    """Tests for record."""

    @pytest.mark.asyncio
    async def test_records_entry(self, database, school) -> None:
        """Test an entry is stored with its action, status and details."""
        async with database.session() as session:
            entry = await AuditService(session).record(
                action=AuditAction.BACKUP_CREATE,
                user_id=school.teacher.id,
                school_id=school.id,
                details={"type": "school"},
                ip="10.0.0.1",
                user_agent="x" * 600,
            )

        assert entry.action == "BACKUP_CREATE"
        assert entry.status == "SUCCESS"
        assert entry.details == {"type": "school"}
        assert len(entry.user_agent) == 500

    @pytest.mark.asyncio
    async def test_records_failure(self, database, school) -> None:
        """Test failure entries keep their error message."""
        async with database.session() as session:
            entry = await AuditService(session).record(
                action=AuditAction.BACKUP_RESTORE,
                user_id=school.teacher.id,
                school_id=school.id,
                status=AuditStatus.FAILURE,
                error_message="Invalid payload for model Student",
            )

        assert entry.status == "FAILURE"
        assert entry.error_message == "Invalid payload for model Student"


class TestListLogs:
    """Tests for list_logs."""

    @pytest.mark.asyncio
    async def test_filters_and_paginates(self, database, school) -> None:
        """Test filtering by action and paging through entries."""
        async with database.session() as session:
            service = AuditService(session)
            for _ in range(3):
                await service.record(AuditAction.MARKS_ENTRY, school.teacher.id, school.id)
            await service.record(AuditAction.BACKUP_CREATE, school.teacher.id, school.id)

        async with database.session() as session:
            service = AuditService(session)
            entries, total = await service.list_logs(school.id, action=AuditAction.MARKS_ENTRY, limit=2)
            everything, all_total = await service.list_logs(school.id)

        assert total == 3
        assert len(entries) == 2
        assert all(e.action == "MARKS_ENTRY" for e in entries)
        assert all_total == 4
        assert len(everything) == 4

    @pytest.mark.asyncio
    async def test_filters_by_time_range(self, database, school) -> None:
        """Test since and until bound the entries inclusively."""
        async with database.session() as session:
            session.add_all(
                [
                    AuditLog(
                        school_id=school.id,
                        user_id=school.teacher.id,
                        action=AuditAction.USER_LOGIN.value,
                        timestamp=NOW - timedelta(days=age),
                    )
                    for age in (1, 5, 10, 20)
                ]
            )

        async with database.session() as session:
            service = AuditService(session)
            entries, total = await service.list_logs(
                school.id, since=NOW - timedelta(days=10), until=NOW - timedelta(days=5)
            )
            recent, recent_total = await service.list_logs(
                school.id, since=(NOW - timedelta(days=2)).replace(tzinfo=None)
            )

        assert total == 2
        assert [e.timestamp.date() for e in entries] == [
            (NOW - timedelta(days=5)).date(),
            (NOW - timedelta(days=10)).date(),
        ]
        assert recent_total == 1
        assert len(recent) == 1


class TestPurgeExpired:
    """Tests for purge_expired."""

    @pytest.mark.asyncio
    async def test_purges_only_expired_entries(self, database, school) -> None:
        """Test entries older than the retention period are deleted."""
        ages = [10, DEFAULT_RETENTION_DAYS - 1, DEFAULT_RETENTION_DAYS + 1, 900]
        async with database.session() as session:
            session.add_all(
                [
                    AuditLog(
                        school_id=school.id,
                        user_id=school.teacher.id,
                        action=AuditAction.USER_LOGIN.value,
                        timestamp=NOW - timedelta(days=age),
                    )
                    for age in ages
                ]
            )

        async with database.session() as session:
            purged = await AuditService(session).purge_expired(now=NOW)

        async with database.session() as session:
            _, remaining = await AuditService(session).list_logs(school.id)

        assert purged == 2
        assert remaining == 2

    @pytest.mark.asyncio
    async def test_custom_retention(self, database, school) -> None:
        """Test the retention period is configurable."""
        async with database.session() as session:
            session.add(
                AuditLog(
                    school_id=school.id,
                    user_id=school.teacher.id,
                    action=AuditAction.USER_LOGIN.value,
                    timestamp=NOW - timedelta(days=40),
                )
            )

        async with database.session() as session:
            assert await AuditService(session, retention_days=30).purge_expired(now=NOW) == 1
