# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Backup API endpoints.

This module provides endpoints for backing up and restoring school data:
- POST /create - Create a full or school backup
- POST /restore - Restore an uploaded backup archive
- GET /list - List archives in the backup store
- GET /download/{filename} - Download an archive

Create and restore are recorded in the audit trail.
"""

import asyncio
import logging
import tempfile
from pathlib import Path
from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import FileResponse

from eduanalytics.api.dependencies import (
    get_app_settings,
    get_backup_service,
    get_database,
    require_school,
    require_user,
)
from eduanalytics.core.config.settings import Settings
from eduanalytics.domains.audit import AuditService
from eduanalytics.domains.backup import BackupError, BackupNotFoundError, BackupService
from eduanalytics.infrastructure.database.connection import Database, DatabaseError
from eduanalytics.infrastructure.database.models.audit import AuditAction, AuditStatus
from eduanalytics.models.backup import (
    BackupCreateRequest,
    BackupCreateResponse,
    BackupInfoResponse,
    BackupListResponse,
    BackupRestoreResponse,
    BackupType,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _record_audit(
    request: Request,
    database: Database,
    settings: Settings,
    action: AuditAction,
    user_id: str,
    school_id: str,
    audit_status: AuditStatus,
    details: dict[str, Any],
    error_message: str | None = None,
) -> None:
    """Write an audit entry in its own transaction.

    Audit failures are logged and never fail the request.
    """
    try:
        async with database.session() as session:
            await AuditService(session, settings.audit.retention_days).record(
                action=action,
                user_id=user_id,
                school_id=school_id,
                status=audit_status,
                details=details,
                ip=request.client.host if request.client else None,
                user_agent=request.headers.get("user-agent"),
                error_message=error_message,
            )
    except DatabaseError as e:
        logger.warning("Failed to record audit entry: action=%s, error=%s", action.value, e)


@router.post(
    "/create",
    response_model=BackupCreateResponse,
    summary="Create backup",
    description="Back up every school (full) or the current school only.",
)
async def create_backup(
    body: BackupCreateRequest,
    request: Request,
    school_id: str = Depends(require_school),
    user_id: str = Depends(require_user),
    service: BackupService = Depends(get_backup_service),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
) -> BackupCreateResponse:
    """Create a backup archive.

    Raises:
        HTTPException: If the backup could not be written.
    """
    scope = school_id if body.type == BackupType.SCHOOL else None
    try:
        backup = await service.create_backup(school_id=scope)
    except (BackupError, DatabaseError, OSError) as e:
        logger.exception("Backup creation failed: school=%s, type=%s", school_id, body.type.value)
        await _record_audit(
            request, database, settings, AuditAction.BACKUP_CREATE, user_id, school_id,
            AuditStatus.FAILURE, {"type": body.type.value}, error_message=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error creating backup",
        ) from e

    await _record_audit(
        request, database, settings, AuditAction.BACKUP_CREATE, user_id, school_id,
        AuditStatus.SUCCESS,
        {"type": body.type.value, "description": body.description, "filename": backup.filename},
    )

    return BackupCreateResponse(message="Backup created successfully", **backup.to_dict())


def _save_upload(content: bytes, temp_dir: Path | None) -> Path:
    with tempfile.NamedTemporaryFile(suffix=".zip", dir=temp_dir, delete=False) as tmp:
        tmp.write(content)
    return Path(tmp.name)


@router.post(
    "/restore",
    response_model=BackupRestoreResponse,
    summary="Restore backup",
    description="Replace the data of every school (full) or the current school with an archive.",
)
async def restore_backup(
    request: Request,
    backup_file: Annotated[UploadFile, File(alias="backupFile")],
    type: Annotated[BackupType, Form()],
    school_id: str = Depends(require_school),
    user_id: str = Depends(require_user),
    service: BackupService = Depends(get_backup_service),
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
) -> BackupRestoreResponse:
    """Restore an uploaded backup archive.

    Raises:
        HTTPException: 400 if the archive is invalid or belongs to another
            school, 500 if the restore failed.
    """
    scope = school_id if type == BackupType.SCHOOL else None
    details = {"type": type.value, "filename": backup_file.filename}

    upload_path = await asyncio.to_thread(
        _save_upload, await backup_file.read(), settings.backup.temp_dir
    )
    try:
        result = await service.restore_backup(upload_path, school_id=scope)
    except BackupError as e:
        logger.warning("Backup restore rejected: school=%s, error=%s", school_id, e)
        await _record_audit(
            request, database, settings, AuditAction.BACKUP_RESTORE, user_id, school_id,
            AuditStatus.FAILURE, details, error_message=e.message,
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except (DatabaseError, OSError) as e:
        logger.exception("Backup restore failed: school=%s", school_id)
        await _record_audit(
            request, database, settings, AuditAction.BACKUP_RESTORE, user_id, school_id,
            AuditStatus.FAILURE, details, error_message=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error restoring backup",
        ) from e
    finally:
        await asyncio.to_thread(upload_path.unlink, missing_ok=True)

    await _record_audit(
        request, database, settings, AuditAction.BACKUP_RESTORE, user_id, school_id,
        AuditStatus.SUCCESS, {**details, "metadata": result.metadata.to_archive_dict()},
    )

    return BackupRestoreResponse(
        message="Backup restored successfully",
        metadata=result.metadata,
        restored_counts=result.restored_counts,
        deleted_counts=result.deleted_counts,
    )


@router.get(
    "/list",
    response_model=BackupListResponse,
    summary="List backups",
    description="List archives, newest first; type=school lists only the current school's.",
)
async def list_backups(
    type: Annotated[BackupType | None, Query()] = None,
    school_id: str = Depends(require_school),
    service: BackupService = Depends(get_backup_service),
) -> BackupListResponse:
    """List backup archives."""
    scope = school_id if type == BackupType.SCHOOL else None
    backups = await service.list_backups(school_id=scope)
    return BackupListResponse(backups=[BackupInfoResponse(**b.to_dict()) for b in backups])


@router.get(
    "/download/{filename}",
    response_class=FileResponse,
    summary="Download backup",
)
async def download_backup(
    filename: str,
    school_id: str = Depends(require_school),
    service: BackupService = Depends(get_backup_service),
) -> FileResponse:
    """Download a backup archive.

    Raises:
        HTTPException: If the archive does not exist.
    """
    try:
        path = await service.get_backup_path(filename)
    except BackupNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Backup file not found",
        ) from e

    logger.info("Downloading backup: filename=%s, school=%s", filename, school_id)
    return FileResponse(path, media_type="application/zip", filename=filename)
