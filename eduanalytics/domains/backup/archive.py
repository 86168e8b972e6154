# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reading and writing backup archive files.

An archive is a zip (DEFLATE) holding ``metadata.json`` and one
``<Model>.json`` per model, each a JSON array of records. All functions
here are blocking and are run through asyncio.to_thread by the service.
"""

import json
import logging
import os
import zipfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from eduanalytics.domains.backup.exceptions import (
    BackupArchiveError,
    BackupMetadataError,
    BackupPayloadError,
)
from eduanalytics.models.backup import BACKUP_FORMAT_VERSION, BackupMetadata

logger = logging.getLogger(__name__)

METADATA_FILENAME = "metadata.json"
ARCHIVE_SUFFIX = ".zip"


def payload_filename(model_name: str) -> str:
    """Name of the member holding a model's records."""
    return f"{model_name}.json"


def write_archive(
    path: Path,
    metadata: BackupMetadata,
    payloads: dict[str, list[dict[str, Any]]],
) -> None:
    """Write an archive atomically without replacing an existing one.

    The zip is built next to its destination under a ``.partial`` name
    created exclusively, then hard-linked to its final name, which fails
    if that name is taken. The partial file is always removed.

    Args:
        path: Final archive path.
        metadata: Archive metadata.
        payloads: Records per model name.

    Raises:
        FileExistsError: If the archive, or a partial write of it by
            another writer, already exists. Nothing is changed.
    """
    partial = path.with_name(path.name + ".partial")
    handle = open(partial, "xb")
    try:
        with handle, zipfile.ZipFile(
            handle, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9
        ) as zf:
            for model_name in metadata.models:
                zf.writestr(
                    payload_filename(model_name),
                    json.dumps(payloads[model_name], indent=2, ensure_ascii=False),
                )
            zf.writestr(METADATA_FILENAME, json.dumps(metadata.to_archive_dict(), indent=2))
        os.link(partial, path)
    finally:
        partial.unlink(missing_ok=True)


def extract_archive(path: Path, destination: Path) -> None:
    """Extract an archive into destination.

    Raises:
        BackupArchiveError: If the file is not a zip archive.
    """
    try:
        with zipfile.ZipFile(path) as zf:
            zf.extractall(destination)
    except zipfile.BadZipFile as e:
        raise BackupArchiveError(f"Not a backup archive: {path.name}") from e


def parse_metadata(raw: bytes | str) -> BackupMetadata:
    """Parse and validate metadata.json content.

    Raises:
        BackupMetadataError: If the content is not valid metadata or has an
            unsupported format version.
    """
    try:
        metadata = BackupMetadata.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as e:
        raise BackupMetadataError(f"Malformed {METADATA_FILENAME}: {e}") from e

    if metadata.version.split(".")[0] != BACKUP_FORMAT_VERSION.split(".")[0]:
        raise BackupMetadataError(
            f"Unsupported backup format version {metadata.version}",
            {"version": metadata.version},
        )
    return metadata


def read_metadata(directory: Path) -> BackupMetadata:
    """Read metadata.json from an extracted archive.

    Raises:
        BackupMetadataError: If the file is missing or malformed.
    """
    metadata_path = directory / METADATA_FILENAME
    if not metadata_path.is_file():
        raise BackupMetadataError(f"Backup has no {METADATA_FILENAME}")
    return parse_metadata(metadata_path.read_bytes())


def read_archive_metadata(path: Path) -> BackupMetadata:
    """Read metadata.json straight from a zip without extracting it.

    Raises:
        BackupArchiveError: If the file is not a zip archive.
        BackupMetadataError: If metadata is missing or malformed.
    """
    try:
        with zipfile.ZipFile(path) as zf:
            try:
                raw = zf.read(METADATA_FILENAME)
            except KeyError as e:
                raise BackupMetadataError(f"Backup has no {METADATA_FILENAME}") from e
    except zipfile.BadZipFile as e:
        raise BackupArchiveError(f"Not a backup archive: {path.name}") from e
    return parse_metadata(raw)


def read_payload(directory: Path, model_name: str, expected_count: int) -> list[dict[str, Any]]:
    """Read and check one model's records from an extracted archive.

    Raises:
        BackupPayloadError: If the file is missing, is not a JSON array of
            objects, or its length differs from the metadata count.
    """
    payload_path = directory / payload_filename(model_name)
    if not payload_path.is_file():
        raise BackupPayloadError(model_name, "payload file is missing")

    try:
        records = json.loads(payload_path.read_bytes())
    except ValueError as e:
        raise BackupPayloadError(model_name, f"payload is not valid JSON ({e})") from e

    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        raise BackupPayloadError(model_name, "payload is not an array of records")

    if len(records) != expected_count:
        raise BackupPayloadError(
            model_name,
            f"payload holds {len(records)} records, metadata says {expected_count}",
        )
    return records
