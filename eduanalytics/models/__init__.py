# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic schemas for validation and API payloads."""

from eduanalytics.models.analytics import (
    AnalyticsFilters,
    AtRiskStudentResponse,
    ClassPerformanceResponse,
    SchoolOverviewResponse,
    TermProgressResponse,
)
from eduanalytics.models.audit import AuditLogListResponse, AuditLogResponse
from eduanalytics.models.backup import (
    BACKUP_FORMAT_VERSION,
    BackupCreateRequest,
    BackupCreateResponse,
    BackupInfoResponse,
    BackupListResponse,
    BackupMetadata,
    BackupRestoreResponse,
    BackupType,
)
from eduanalytics.models.entities import (
    AssessmentCreate,
    AssessmentResultRecord,
    ClassCreate,
    RecordValidationError,
    SchoolCreate,
    StudentCreate,
    validate_record,
)
from eduanalytics.models.marks import (
    AssessmentMarksResponse,
    BulkMarksRequest,
    BulkMarksResponse,
    MarkEntry,
)

__all__ = [
    # Entities
    "AssessmentCreate",
    "AssessmentResultRecord",
    "ClassCreate",
    "RecordValidationError",
    "SchoolCreate",
    "StudentCreate",
    "validate_record",
    # Analytics
    "AnalyticsFilters",
    "AtRiskStudentResponse",
    "ClassPerformanceResponse",
    "SchoolOverviewResponse",
    "TermProgressResponse",
    # Audit
    "AuditLogListResponse",
    "AuditLogResponse",
    # Backup
    "BACKUP_FORMAT_VERSION",
    "BackupCreateRequest",
    "BackupCreateResponse",
    "BackupInfoResponse",
    "BackupListResponse",
    "BackupMetadata",
    "BackupRestoreResponse",
    "BackupType",
    # Marks
    "AssessmentMarksResponse",
    "BulkMarksRequest",
    "BulkMarksResponse",
    "MarkEntry",
]
