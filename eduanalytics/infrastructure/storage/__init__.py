# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Remote storage for backup archives."""

from eduanalytics.infrastructure.storage.uploader import (
    ArchiveUploader,
    BackupUploadError,
    HTTPArchiveUploader,
)

__all__ = [
    "ArchiveUploader",
    "BackupUploadError",
    "HTTPArchiveUploader",
]
