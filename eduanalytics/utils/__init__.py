# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for EduAnalytics.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from eduanalytics.utils.datetime import (
    days_ago,
    ensure_utc,
    filename_timestamp,
    format_iso,
    format_iso_millis,
    now,
    parse_iso,
    utc_now,
)
from eduanalytics.utils.logging import bind_context, clear_context, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "now",
    "ensure_utc",
    "days_ago",
    "format_iso",
    "format_iso_millis",
    "filename_timestamp",
    "parse_iso",
]
