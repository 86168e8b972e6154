# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit log model.

Records are kept for a retention period (one year by default) and then
purged by AuditService.purge_expired().
"""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from eduanalytics.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from eduanalytics.utils.datetime import utc_now


class AuditAction(str, Enum):
    """Auditable actions."""

    USER_LOGIN = "USER_LOGIN"
    USER_LOGOUT = "USER_LOGOUT"
    USER_CREATE = "USER_CREATE"
    USER_UPDATE = "USER_UPDATE"
    USER_DELETE = "USER_DELETE"
    STUDENT_CREATE = "STUDENT_CREATE"
    STUDENT_UPDATE = "STUDENT_UPDATE"
    STUDENT_DELETE = "STUDENT_DELETE"
    ASSESSMENT_CREATE = "ASSESSMENT_CREATE"
    ASSESSMENT_UPDATE = "ASSESSMENT_UPDATE"
    ASSESSMENT_DELETE = "ASSESSMENT_DELETE"
    MARKS_ENTRY = "MARKS_ENTRY"
    MARKS_UPDATE = "MARKS_UPDATE"
    REPORT_GENERATE = "REPORT_GENERATE"
    BACKUP_CREATE = "BACKUP_CREATE"
    BACKUP_RESTORE = "BACKUP_RESTORE"
    SYSTEM_SETTINGS_UPDATE = "SYSTEM_SETTINGS_UPDATE"
    PASSWORD_RESET = "PASSWORD_RESET"
    PARENT_ACCESS = "PARENT_ACCESS"


class AuditStatus(str, Enum):
    """Outcome of an audited action."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class AuditLog(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A single audited action performed by a staff user."""

    __tablename__ = "audit_logs"

    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action: Mapped[str] = mapped_column(String(40), nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False, default=AuditStatus.SUCCESS.value)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    resource_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    resource_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_audit_logs_school_timestamp", "school_id", "timestamp"),
        Index("ix_audit_logs_user_timestamp", "user_id", "timestamp"),
        Index("ix_audit_logs_action_timestamp", "action", "timestamp"),
    )
