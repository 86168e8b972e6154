# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Backup domain.

Exports school data to versioned zip archives and restores them.
"""

from eduanalytics.domains.backup.exceptions import (
    BackupArchiveError,
    BackupError,
    BackupMetadataError,
    BackupNotFoundError,
    BackupPayloadError,
    BackupScopeError,
    UnknownModelError,
)
from eduanalytics.domains.backup.service import (
    BackupInfo,
    BackupResult,
    BackupService,
    RestoreResult,
)

__all__ = [
    "BackupArchiveError",
    "BackupError",
    "BackupInfo",
    "BackupMetadataError",
    "BackupNotFoundError",
    "BackupPayloadError",
    "BackupResult",
    "BackupScopeError",
    "BackupService",
    "RestoreResult",
    "UnknownModelError",
]
