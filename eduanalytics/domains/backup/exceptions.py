# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions for backup and restore.

- BackupError: Base exception for all backup errors
- BackupNotFoundError: Archive file does not exist
- BackupArchiveError: File is not a readable archive
- BackupMetadataError: metadata.json missing or malformed
- BackupPayloadError: A model's payload missing, corrupt or miscounted
- UnknownModelError: Archive lists a model this system does not know
- BackupScopeError: School archive restored into another school
"""


class BackupError(Exception):
    """Base exception for backup and restore errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with details if available."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class BackupNotFoundError(BackupError):
    """Raised when a backup archive does not exist."""

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(f"Backup not found: {filename}", {"filename": filename})


class BackupArchiveError(BackupError):
    """Raised when a file cannot be opened as a backup archive."""

    pass


class BackupMetadataError(BackupError):
    """Raised when metadata.json is missing or malformed."""

    pass


class BackupPayloadError(BackupError):
    """Raised when a model's payload file is missing or unusable.

    Attributes:
        model: Archive name of the affected model.
    """

    def __init__(self, model: str, reason: str) -> None:
        self.model = model
        self.reason = reason
        super().__init__(f"Invalid payload for model {model}: {reason}", {"model": model})


class UnknownModelError(BackupError):
    """Raised when an archive references a model that is not registered."""

    def __init__(self, model: str) -> None:
        self.model = model
        super().__init__(f"Unknown model in backup: {model}", {"model": model})


class BackupScopeError(BackupError):
    """Raised when a school-scoped archive is restored into another school."""

    def __init__(self, archive_school_id: str, target_school_id: str) -> None:
        self.archive_school_id = archive_school_id
        self.target_school_id = target_school_id
        super().__init__(
            "Backup belongs to a different school",
            {"archive_school_id": archive_school_id, "target_school_id": target_school_id},
        )
