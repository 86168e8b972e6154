# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for row/record conversion."""

from datetime import date, datetime, timezone

import pytest

from eduanalytics.infrastructure.database.models import AuditLog, Student
from eduanalytics.infrastructure.database.serialization import (
    RecordDecodeError,
    record_to_row,
    row_to_record,
)

STUDENTS = Student.__table__
AUDIT_LOGS = AuditLog.__table__


@pytest.fixture
def student_row() -> dict:
    """A student row as returned by a Core select."""
    return {
        "id": "s-1",
        "school_id": "school-1",
        "class_id": "class-1",
        "student_number": "GP-001",
        "first_name": "Sipho",
        "last_name": "Ndlovu",
        "date_of_birth": date(2009, 4, 12),
        "gender": "Male",
        "grade": 10,
        "contact": {"parent_name": "Zanele"},
        "enrollment_date": date(2024, 1, 15),
        "is_active": True,
        "created_at": datetime(2025, 3, 1, 8, 15, 30, 120000),
        "updated_at": datetime(2025, 3, 1, 8, 15, 30, 120000, tzinfo=timezone.utc),
    }


class TestRowToRecord:
    """Tests for row_to_record."""

    def test_encodes_dates_and_datetimes(self, student_row) -> None:
        """Test dates become YYYY-MM-DD and datetimes UTC ISO strings."""
        record = row_to_record(STUDENTS, student_row)

        assert record["date_of_birth"] == "2009-04-12"
        assert record["created_at"] == "2025-03-01T08:15:30.120000+00:00"
        assert record["updated_at"] == "2025-03-01T08:15:30.120000+00:00"
        assert record["contact"] == {"parent_name": "Zanele"}

    def test_has_one_key_per_column(self, student_row) -> None:
        """Test every column is present, including the primary key."""
        record = row_to_record(STUDENTS, student_row)

        assert set(record) == set(STUDENTS.columns.keys())


class TestRecordToRow:
    """Tests for record_to_row."""

    def test_decodes_what_row_to_record_encodes(self, student_row) -> None:
        """Test an archived record maps back onto the original values."""
        row = record_to_row(STUDENTS, row_to_record(STUDENTS, student_row))

        assert row["date_of_birth"] == date(2009, 4, 12)
        assert row["created_at"] == datetime(2025, 3, 1, 8, 15, 30, 120000, tzinfo=timezone.utc)
        assert row["id"] == "s-1"

    def test_accepts_z_suffix(self) -> None:
        """Test datetimes with a trailing Z are accepted."""
        row = record_to_row(
            AUDIT_LOGS,
            {"id": "a-1", "timestamp": "2025-03-01T08:15:30.120Z", "resource_id": None},
        )

        assert row["timestamp"] == datetime(2025, 3, 1, 8, 15, 30, 120000, tzinfo=timezone.utc)
        assert row["resource_id"] is None

    def test_missing_columns_left_to_defaults(self) -> None:
        """Test absent non-key columns are omitted from the row."""
        row = record_to_row(AUDIT_LOGS, {"id": "a-1", "action": "BACKUP_CREATE"})

        assert row == {"id": "a-1", "action": "BACKUP_CREATE"}

    def test_missing_primary_key_rejected(self) -> None:
        """Test a record without id is rejected."""
        with pytest.raises(RecordDecodeError) as exc_info:
            record_to_row(STUDENTS, {"first_name": "Sipho"})

        assert exc_info.value.column == "id"

    def test_unknown_column_rejected(self) -> None:
        """Test keys that are not columns are rejected."""
        with pytest.raises(RecordDecodeError, match="favourite_colour"):
            record_to_row(STUDENTS, {"id": "s-1", "favourite_colour": "blue"})

    def test_bad_date_rejected(self) -> None:
        """Test an undecodable date names the column."""
        with pytest.raises(RecordDecodeError) as exc_info:
            record_to_row(STUDENTS, {"id": "s-1", "date_of_birth": "12/04/2009"})

        assert exc_info.value.table == "students"
        assert exc_info.value.column == "date_of_birth"

    def test_non_object_rejected(self) -> None:
        """Test a record that is not a mapping is rejected."""
        with pytest.raises(RecordDecodeError):
            record_to_row(STUDENTS, ["s-1"])  # type: ignore[arg-type]
