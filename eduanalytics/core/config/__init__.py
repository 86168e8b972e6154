# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for EduAnalytics.

Example:
    >>> from eduanalytics.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.backup.storage_dir)
    backups
"""

from eduanalytics.core.config.settings import (
    APISettings,
    AuditSettings,
    BackupSettings,
    CORSSettings,
    DatabaseSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "BackupSettings",
    "AuditSettings",
    "CORSSettings",
    "APISettings",
]
