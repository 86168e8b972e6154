# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Backup service module.

This module provides the BackupService, which exports the data of one
school (or of every school) to a versioned zip archive and restores such
archives back into the database.

Archives are produced from MODEL_REGISTRY, so every registered model is
exported in dependency order. A restore is a destructive replace of the
restored scope: the scope's current rows are deleted and the archived
rows inserted, all within one transaction.

Usage:
    from eduanalytics.domains.backup import BackupService

    service = BackupService(database=database, storage_dir=Path("backups"))

    # Back up one school
    result = await service.create_backup(school_id=school_id)

    # Restore it later
    restored = await service.restore_backup(result.path, school_id=school_id)

    # List archives of that school, newest first
    backups = await service.list_backups(school_id=school_id)
"""

import asyncio
import logging
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select

from eduanalytics.domains.backup.archive import (
    ARCHIVE_SUFFIX,
    extract_archive,
    read_archive_metadata,
    read_metadata,
    read_payload,
    write_archive,
)
from eduanalytics.domains.backup.exceptions import (
    BackupError,
    BackupNotFoundError,
    BackupPayloadError,
    BackupScopeError,
    UnknownModelError,
)
from eduanalytics.infrastructure.database.connection import Database
from eduanalytics.infrastructure.database.models.registry import (
    MODEL_REGISTRY,
    RegisteredModel,
    ScopeContext,
    get_registered_model,
)
from eduanalytics.infrastructure.database.serialization import (
    RecordDecodeError,
    record_to_row,
    row_to_record,
)
from eduanalytics.infrastructure.storage.uploader import ArchiveUploader, BackupUploadError
from eduanalytics.models.backup import BACKUP_FORMAT_VERSION, BackupMetadata
from eduanalytics.utils.datetime import filename_timestamp, format_iso_millis, utc_now

if TYPE_CHECKING:
    from eduanalytics.core.config.settings import BackupSettings

logger = logging.getLogger(__name__)

REMOTE_KEY_PREFIX = "backups"


@dataclass
class BackupResult:
    """Outcome of creating a backup."""

    filename: str
    path: Path
    metadata: BackupMetadata
    uploaded: bool = False
    upload_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "filename": self.filename,
            "timestamp": self.metadata.timestamp,
            "record_counts": dict(self.metadata.record_counts),
            "uploaded": self.uploaded,
            "upload_error": self.upload_error,
        }


@dataclass
class RestoreResult:
    """Outcome of restoring a backup."""

    metadata: BackupMetadata
    school_id: str | None
    restored_counts: dict[str, int] = field(default_factory=dict)
    deleted_counts: dict[str, int] = field(default_factory=dict)


@dataclass
class BackupInfo:
    """An archive found in the backup store.

    Attributes:
        filename: Archive file name.
        path: Archive path.
        size: Size in bytes.
        created: File modification time (UTC).
        school_id: Scope read from the archive's metadata; None for full
            backups and unreadable archives.
        is_valid: False when the archive or its metadata cannot be read.
    """

    filename: str
    path: Path
    size: int
    created: datetime
    school_id: str | None = None
    is_valid: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "filename": self.filename,
            "size": self.size,
            "created": self.created,
            "school_id": self.school_id,
            "is_valid": self.is_valid,
        }


@dataclass
class _PreparedModel:
    entry: RegisteredModel
    rows: list[dict[str, Any]]


class BackupService:
    """Service for exporting and restoring school data.

    Attributes:
        database: Database the backups are taken from and restored into.
        storage_dir: Directory holding finished archives.
        uploader: Optional remote copy target for finished archives.
        temp_dir: Parent directory for restore extraction.
    """

    def __init__(
        self,
        database: Database,
        storage_dir: Path,
        uploader: ArchiveUploader | None = None,
        temp_dir: Path | None = None,
    ) -> None:
        """Initialize the backup service.

        Args:
            database: Database to back up and restore.
            storage_dir: Directory holding finished archives.
            uploader: Optional remote storage for archive copies.
            temp_dir: Parent directory for extraction; system default if None.
        """
        self.database = database
        self.storage_dir = Path(storage_dir)
        self.uploader = uploader
        self.temp_dir = temp_dir

    @classmethod
    def from_settings(
        cls,
        database: Database,
        settings: "BackupSettings",
    ) -> "BackupService":
        """Create a service from backup settings.

        An HTTPArchiveUploader is attached when an upload URL is configured.
        """
        uploader = None
        if settings.upload_enabled:
            from eduanalytics.infrastructure.storage.uploader import HTTPArchiveUploader

            uploader = HTTPArchiveUploader(
                base_url=settings.upload_url or "",
                token=settings.upload_token.get_secret_value(),
                timeout=settings.upload_timeout,
            )
        return cls(
            database=database,
            storage_dir=settings.storage_dir,
            uploader=uploader,
            temp_dir=settings.temp_dir,
        )

    # =========================================================================
    # Create
    # =========================================================================

    async def create_backup(self, school_id: str | None = None) -> BackupResult:
        """Export every registered model to a new archive.

        Args:
            school_id: School to back up; None backs up every school.

        Returns:
            BackupResult describing the archive.

        Raises:
            DatabaseError: If reading the data fails.
            OSError: If the archive cannot be written.
        """
        scope = school_id or "full"
        logger.info("Creating backup: scope=%s", scope)

        payloads: dict[str, list[dict[str, Any]]] = {}
        async with self.database.session() as session:
            for entry in MODEL_REGISTRY:
                table = entry.model.__table__
                stmt = select(table).order_by(*table.primary_key.columns)
                if school_id is not None:
                    stmt = stmt.where(entry.scope(school_id))
                result = await session.execute(stmt)
                payloads[entry.name] = [row_to_record(table, row) for row in result.mappings()]

        path, metadata = await asyncio.to_thread(self._write_new_archive, school_id, payloads)

        logger.info(
            "Backup created: filename=%s, scope=%s, records=%d",
            path.name,
            scope,
            sum(metadata.record_counts.values()),
        )

        backup = BackupResult(filename=path.name, path=path, metadata=metadata)
        if self.uploader is not None:
            await self._upload(backup)
        return backup

    def _write_new_archive(
        self,
        school_id: str | None,
        payloads: dict[str, list[dict[str, Any]]],
    ) -> tuple[Path, BackupMetadata]:
        """Write payloads under a name no other archive holds.

        A name taken by a finished or in-progress archive moves the
        timestamp on by one millisecond.
        """
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        created_at = utc_now()
        while True:
            path = self.storage_dir / f"{filename_timestamp(created_at)}{ARCHIVE_SUFFIX}"
            metadata = BackupMetadata(
                timestamp=format_iso_millis(created_at),
                school_id=school_id,
                version=BACKUP_FORMAT_VERSION,
                models=list(payloads),
                record_counts={name: len(records) for name, records in payloads.items()},
            )
            try:
                write_archive(path, metadata, payloads)
            except FileExistsError:
                created_at += timedelta(milliseconds=1)
                continue
            return path, metadata

    async def _upload(self, backup: BackupResult) -> None:
        key = f"{REMOTE_KEY_PREFIX}/{backup.filename}"
        try:
            await self.uploader.upload(backup.path, key)
            backup.uploaded = True
        except BackupUploadError as e:
            backup.upload_error = str(e)
            logger.warning(
                "Backup archive kept locally, remote upload failed: filename=%s, error=%s",
                backup.filename,
                e,
            )

    # =========================================================================
    # Restore
    # =========================================================================

    async def restore_backup(
        self,
        archive_path: Path,
        school_id: str | None = None,
    ) -> RestoreResult:
        """Replace the data of a scope with the contents of an archive.

        Every payload is read and decoded before the database is touched.
        The rows of the restored scope are then deleted in reverse
        dependency order and the archived rows inserted in dependency order,
        in a single transaction.

        Args:
            archive_path: Archive to restore.
            school_id: School to restore; only its rows are replaced. None
                restores the archive's own scope (everything for a full
                archive).

        Returns:
            RestoreResult with deleted and restored counts per model.

        Raises:
            BackupNotFoundError: If the archive does not exist.
            BackupArchiveError: If the file is not a zip archive.
            BackupMetadataError: If metadata.json is missing or malformed.
            BackupPayloadError: If a listed model's payload is unusable.
            UnknownModelError: If the archive lists an unregistered model.
            BackupScopeError: If a school archive is restored into another school.
            DatabaseError: If the database write fails; nothing is changed.
        """
        archive_path = Path(archive_path)
        if not await asyncio.to_thread(archive_path.is_file):
            raise BackupNotFoundError(archive_path.name)

        with tempfile.TemporaryDirectory(prefix="restore-", dir=self.temp_dir) as extract_dir:
            metadata, prepared = await asyncio.to_thread(
                self._load_archive, archive_path, Path(extract_dir)
            )

        target_school_id = school_id
        if metadata.school_id is not None:
            if school_id is not None and school_id != metadata.school_id:
                raise BackupScopeError(metadata.school_id, school_id)
            target_school_id = metadata.school_id

        if target_school_id is not None:
            prepared = self._filter_to_school(prepared, target_school_id)

        logger.info(
            "Restoring backup: filename=%s, scope=%s, models=%d",
            archive_path.name,
            target_school_id or "full",
            len(prepared),
        )

        restore = RestoreResult(metadata=metadata, school_id=target_school_id)
        async with self.database.session() as session:
            for item in reversed(prepared):
                stmt = delete(item.entry.model)
                if target_school_id is not None:
                    stmt = stmt.where(item.entry.scope(target_school_id))
                result = await session.execute(stmt.execution_options(synchronize_session=False))
                restore.deleted_counts[item.entry.name] = result.rowcount or 0

            for item in prepared:
                if item.rows:
                    await session.execute(insert(item.entry.model), item.rows)
                restore.restored_counts[item.entry.name] = len(item.rows)

        logger.info(
            "Backup restored: filename=%s, scope=%s, records=%d",
            archive_path.name,
            target_school_id or "full",
            sum(restore.restored_counts.values()),
        )
        return restore

    def _load_archive(
        self,
        archive_path: Path,
        extract_dir: Path,
    ) -> tuple[BackupMetadata, list[_PreparedModel]]:
        extract_archive(archive_path, extract_dir)
        metadata = read_metadata(extract_dir)

        listed: dict[str, RegisteredModel] = {}
        for name in metadata.models:
            entry = get_registered_model(name)
            if entry is None:
                raise UnknownModelError(name)
            listed[name] = entry

        prepared: list[_PreparedModel] = []
        for entry in MODEL_REGISTRY:
            if entry.name not in listed:
                continue
            records = read_payload(extract_dir, entry.name, metadata.record_counts[entry.name])
            table = entry.model.__table__
            try:
                rows = [record_to_row(table, record) for record in records]
            except RecordDecodeError as e:
                raise BackupPayloadError(entry.name, str(e)) from e
            prepared.append(_PreparedModel(entry=entry, rows=rows))

        return metadata, prepared

    @staticmethod
    def _filter_to_school(
        prepared: list[_PreparedModel],
        school_id: str,
    ) -> list[_PreparedModel]:
        users = next((item for item in prepared if item.entry.name == "User"), None)
        context = ScopeContext(
            user_ids={
                row["id"]
                for row in (users.rows if users else [])
                if row.get("school_id") == school_id
            }
        )

        def owned(item: _PreparedModel, row: Mapping[str, Any]) -> bool:
            return item.entry.owner_of(row, school_id, context)

        return [
            _PreparedModel(entry=item.entry, rows=[row for row in item.rows if owned(item, row)])
            for item in prepared
        ]

    # =========================================================================
    # Listing and download
    # =========================================================================

    async def list_backups(self, school_id: str | None = None) -> list[BackupInfo]:
        """List archives in the backup store, newest first.

        The scope of each archive is read from its metadata.json.

        Args:
            school_id: When given, only archives of this school are listed
                and unreadable archives are left out.

        Returns:
            List of BackupInfo.
        """
        backups = await asyncio.to_thread(self._scan, school_id)
        backups.sort(key=lambda b: (b.created, b.filename), reverse=True)
        return backups

    def _scan(self, school_id: str | None) -> list[BackupInfo]:
        if not self.storage_dir.is_dir():
            return []

        backups: list[BackupInfo] = []
        for path in self.storage_dir.glob(f"*{ARCHIVE_SUFFIX}"):
            if not path.is_file():
                continue
            stat = path.stat()
            info = BackupInfo(
                filename=path.name,
                path=path,
                size=stat.st_size,
                created=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            )
            try:
                info.school_id = read_archive_metadata(path).school_id
            except BackupError as e:
                logger.warning("Unreadable backup archive: filename=%s, error=%s", path.name, e)
                info.is_valid = False

            if school_id is not None and (not info.is_valid or info.school_id != school_id):
                continue
            backups.append(info)
        return backups

    async def get_backup_path(self, filename: str) -> Path:
        """Resolve an archive file name inside the backup store.

        Args:
            filename: Bare archive file name.

        Returns:
            Path of the archive.

        Raises:
            BackupNotFoundError: If the name is not a plain archive name or
                no such archive exists.
        """
        if (
            not filename
            or Path(filename).name != filename
            or filename in (".", "..")
            or not filename.endswith(ARCHIVE_SUFFIX)
        ):
            raise BackupNotFoundError(filename)

        path = self.storage_dir / filename
        if not await asyncio.to_thread(path.is_file):
            raise BackupNotFoundError(filename)
        return path
