# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Conversion between table rows and JSON-safe records.

Records carry every column of the row, keyed by column name, including
the primary key. Datetimes are written as UTC ISO-8601 strings and dates
as ``YYYY-MM-DD``; JSON columns are written as-is.
"""

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from sqlalchemy import Date, DateTime, Table

from eduanalytics.utils.datetime import format_iso, parse_iso


class RecordDecodeError(ValueError):
    """Raised when an archived record cannot be mapped back onto a table.

    Attributes:
        table: Table name.
        column: Offending column, if any.
    """

    def __init__(self, message: str, table: str, column: str | None = None) -> None:
        super().__init__(message)
        self.table = table
        self.column = column


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_iso(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def row_to_record(table: Table, row: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a result row mapping into a JSON-safe record.

    Args:
        table: Table the row was selected from.
        row: Row mapping keyed by column name.

    Returns:
        Record with one key per table column.
    """
    return {column.name: _encode(row[column.name]) for column in table.columns}


def record_to_row(table: Table, record: Mapping[str, Any]) -> dict[str, Any]:
    """Convert an archived record into insertable column values.

    Columns absent from the record are left to their defaults.

    Args:
        table: Destination table.
        record: Archived record.

    Returns:
        Column values keyed by column name.

    Raises:
        RecordDecodeError: If the record has unknown keys, lacks the
            primary key, or holds an undecodable date/datetime.
    """
    if not isinstance(record, Mapping):
        raise RecordDecodeError(f"Record in {table.name} is not an object", table.name)

    unknown = set(record) - set(table.columns.keys())
    if unknown:
        raise RecordDecodeError(
            f"Unknown columns for {table.name}: {', '.join(sorted(unknown))}",
            table.name,
        )

    row: dict[str, Any] = {}
    for column in table.columns:
        if column.name not in record:
            if column.primary_key:
                raise RecordDecodeError(
                    f"Record in {table.name} has no {column.name}", table.name, column.name
                )
            continue

        value = record[column.name]
        try:
            if value is not None and isinstance(column.type, DateTime):
                value = parse_iso(value)
            elif value is not None and isinstance(column.type, Date):
                value = date.fromisoformat(value)
        except (TypeError, ValueError) as e:
            raise RecordDecodeError(
                f"Invalid value for {table.name}.{column.name}: {value!r}",
                table.name,
                column.name,
            ) from e
        row[column.name] = value

    return row
