# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for EduAnalytics.

All timestamps are stored in UTC and all Python datetimes are
timezone-aware, so naive/aware comparisons never happen.

Backup archives use the millisecond ISO-8601 form with a trailing "Z"
(``2025-03-01T08:15:30.120Z``), both in ``metadata.json`` and, with
``:`` and ``.`` replaced by ``-``, in archive filenames.

Usage:
    from eduanalytics.utils.datetime import utc_now

    created_at = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Naive datetimes are assumed to already be UTC (SQLite returns naive
    values for timezone-aware columns).

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def days_ago(days: int, reference: datetime | None = None) -> datetime:
    """Get a datetime N days before reference (now by default).

    Args:
        days: Number of days to go back.
        reference: Point in time to count back from.

    Returns:
        Timezone-aware UTC datetime.
    """
    return (ensure_utc(reference) or utc_now()) - timedelta(days=days)


def format_iso(dt: datetime | None) -> str | None:
    """Format a datetime as ISO 8601 string in UTC.

    Args:
        dt: Datetime to format.

    Returns:
        ISO 8601 formatted string or None.
    """
    if dt is None:
        return None

    return ensure_utc(dt).isoformat()


def format_iso_millis(dt: datetime) -> str:
    """Format a datetime as millisecond-precision ISO 8601 with "Z" suffix.

    Example:
        >>> format_iso_millis(datetime(2025, 3, 1, 8, 15, 30, 120000, tzinfo=timezone.utc))
        '2025-03-01T08:15:30.120Z'
    """
    dt_utc = ensure_utc(dt)
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt_utc.microsecond // 1000:03d}Z"


def filename_timestamp(dt: datetime) -> str:
    """Timestamp usable in a filename: ISO form with ':' and '.' replaced by '-'.

    Example:
        >>> filename_timestamp(datetime(2025, 3, 1, 8, 15, 30, 120000, tzinfo=timezone.utc))
        '2025-03-01T08-15-30-120Z'
    """
    return format_iso_millis(dt).replace(":", "-").replace(".", "-")


def parse_iso(iso_string: str | None) -> datetime | None:
    """Parse an ISO 8601 datetime string.

    Args:
        iso_string: ISO 8601 formatted string.

    Returns:
        Timezone-aware UTC datetime or None.
    """
    if iso_string is None:
        return None

    dt = datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
    return ensure_utc(dt)


# Aliases for convenience
now = utc_now
