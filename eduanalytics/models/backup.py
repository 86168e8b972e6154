# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Backup archive metadata and backup API schemas.

BackupMetadata is the persisted ``metadata.json`` document. Its field
names on disk are camelCase and must stay stable across versions:

    {
        "timestamp": "2025-03-01T08:15:30.120Z",
        "schoolId": "9d2c...",          # null for a full backup
        "version": "1.0",
        "models": ["School", "User", ...],
        "recordCounts": {"School": 1, "User": 12, ...}
    }
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

BACKUP_FORMAT_VERSION = "1.0"


class BackupType(str, Enum):
    """Backup scope requested through the API."""

    FULL = "full"
    SCHOOL = "school"


class BackupMetadata(BaseModel):
    """Contents of an archive's metadata.json."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    timestamp: str = Field(description="ISO-8601 creation time")
    school_id: str | None = Field(default=None, alias="schoolId", description="Scope; null for full")
    version: str = Field(default=BACKUP_FORMAT_VERSION, description="Archive format version")
    models: list[str] = Field(description="Models included, in dependency order")
    record_counts: dict[str, int] = Field(alias="recordCounts", description="Records per model")

    @model_validator(mode="after")
    def _check_counts(self) -> "BackupMetadata":
        missing = [name for name in self.models if name not in self.record_counts]
        if missing:
            raise ValueError(f"recordCounts missing for: {', '.join(missing)}")
        if any(count < 0 for count in self.record_counts.values()):
            raise ValueError("recordCounts must not be negative")
        return self

    @property
    def is_full(self) -> bool:
        """Whether this backup covers every school."""
        return self.school_id is None

    def to_archive_dict(self) -> dict:
        """Serialize with the on-disk camelCase field names."""
        return self.model_dump(by_alias=True)


class BackupCreateRequest(BaseModel):
    """Request body for creating a backup."""

    type: BackupType = Field(description="full (all schools) or school (current school)")
    description: str | None = Field(default=None, max_length=500)


class BackupCreateResponse(BaseModel):
    """Response after creating a backup."""

    message: str
    filename: str
    timestamp: str
    record_counts: dict[str, int]
    uploaded: bool
    upload_error: str | None = None


class BackupRestoreResponse(BaseModel):
    """Response after restoring a backup."""

    message: str
    metadata: BackupMetadata
    restored_counts: dict[str, int]
    deleted_counts: dict[str, int]


class BackupInfoResponse(BaseModel):
    """One archive in the backup store."""

    filename: str
    size: int
    created: datetime
    school_id: str | None
    is_valid: bool


class BackupListResponse(BaseModel):
    """Backups available to the caller."""

    backups: list[BackupInfoResponse]
