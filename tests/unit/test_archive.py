# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for backup archive files."""

import json
import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest

from eduanalytics.domains.backup.archive import (
    METADATA_FILENAME,
    extract_archive,
    parse_metadata,
    read_archive_metadata,
    read_metadata,
    read_payload,
    write_archive,
)
from eduanalytics.domains.backup.exceptions import (
    BackupArchiveError,
    BackupMetadataError,
    BackupPayloadError,
)
from eduanalytics.models.backup import BackupMetadata


@pytest.fixture
def metadata() -> BackupMetadata:
    """Metadata of a two-model school backup."""
    return BackupMetadata(
        timestamp="2025-03-01T08:15:30.120Z",
        school_id="school-1",
        models=["School", "Student"],
        record_counts={"School": 1, "Student": 2},
    )


@pytest.fixture
def payloads() -> dict:
    """Records matching the metadata fixture."""
    return {
        "School": [{"id": "school-1", "name": "Gauteng High"}],
        "Student": [{"id": "s-1"}, {"id": "s-2"}],
    }


class TestWriteArchive:
    """Tests for write_archive."""

    def test_writes_metadata_and_one_member_per_model(self, tmp_path, metadata, payloads) -> None:
        """Test the archive holds metadata.json and <Model>.json files."""
        path = tmp_path / "backup.zip"

        write_archive(path, metadata, payloads)

        with zipfile.ZipFile(path) as zf:
            assert sorted(zf.namelist()) == ["School.json", "Student.json", METADATA_FILENAME]
            on_disk = json.loads(zf.read(METADATA_FILENAME))
            students = json.loads(zf.read("Student.json"))

        assert on_disk["schoolId"] == "school-1"
        assert on_disk["recordCounts"] == {"School": 1, "Student": 2}
        assert on_disk["version"] == "1.0"
        assert len(students) == on_disk["recordCounts"]["Student"]

    def test_uses_deflate(self, tmp_path, metadata, payloads) -> None:
        """Test members are DEFLATE compressed."""
        path = tmp_path / "backup.zip"

        write_archive(path, metadata, payloads)

        with zipfile.ZipFile(path) as zf:
            assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in zf.infolist())

    def test_failure_leaves_no_file(self, tmp_path, metadata, payloads) -> None:
        """Test a failed write removes the partial archive."""
        path = tmp_path / "backup.zip"

        with patch(
            "eduanalytics.domains.backup.archive.json.dumps",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(OSError, match="disk full"):
                write_archive(path, metadata, payloads)

        assert list(tmp_path.iterdir()) == []

    def test_existing_archive_not_replaced(self, tmp_path, metadata, payloads) -> None:
        """Test writing over a finished archive fails and keeps it intact."""
        path = tmp_path / "backup.zip"
        path.write_bytes(b"earlier archive")

        with pytest.raises(FileExistsError):
            write_archive(path, metadata, payloads)

        assert path.read_bytes() == b"earlier archive"
        assert [p.name for p in tmp_path.iterdir()] == ["backup.zip"]

    def test_partial_of_other_writer_untouched(self, tmp_path, metadata, payloads) -> None:
        """Test an archive being written by someone else is left alone."""
        path = tmp_path / "backup.zip"
        partial = tmp_path / "backup.zip.partial"
        partial.write_bytes(b"in progress")

        with pytest.raises(FileExistsError):
            write_archive(path, metadata, payloads)

        assert partial.read_bytes() == b"in progress"
        assert not path.exists()


class TestParseMetadata:
    """Tests for parse_metadata."""

    def test_parses_camel_case_document(self) -> None:
        """Test the on-disk field names map to the model."""
        metadata = parse_metadata(
            json.dumps(
                {
                    "timestamp": "2025-03-01T08:15:30.120Z",
                    "schoolId": None,
                    "version": "1.0",
                    "models": ["School"],
                    "recordCounts": {"School": 3},
                }
            )
        )

        assert metadata.is_full is True
        assert metadata.record_counts == {"School": 3}

    def test_accepts_minor_version_change(self) -> None:
        """Test archives of the same major version are readable."""
        metadata = parse_metadata(
            '{"timestamp": "t", "version": "1.3", "models": [], "recordCounts": {}}'
        )

        assert metadata.version == "1.3"

    def test_rejects_other_major_version(self) -> None:
        """Test archives of another major version are rejected."""
        with pytest.raises(BackupMetadataError, match="Unsupported backup format version"):
            parse_metadata('{"timestamp": "t", "version": "2.0", "models": [], "recordCounts": {}}')

    def test_rejects_invalid_json(self) -> None:
        """Test malformed JSON is a metadata error."""
        with pytest.raises(BackupMetadataError):
            parse_metadata("{not json")

    def test_rejects_missing_counts(self) -> None:
        """Test every listed model needs a record count."""
        with pytest.raises(BackupMetadataError):
            parse_metadata(
                '{"timestamp": "t", "models": ["School", "User"], "recordCounts": {"School": 1}}'
            )


class TestReadArchive:
    """Tests for reading archives."""

    def test_read_archive_metadata_without_extracting(self, tmp_path, metadata, payloads) -> None:
        """Test metadata can be read straight from the zip."""
        path = tmp_path / "backup.zip"
        write_archive(path, metadata, payloads)

        assert read_archive_metadata(path) == metadata

    def test_not_a_zip(self, tmp_path) -> None:
        """Test non-zip files raise BackupArchiveError."""
        path = tmp_path / "backup.zip"
        path.write_text("plain text")

        with pytest.raises(BackupArchiveError):
            read_archive_metadata(path)
        with pytest.raises(BackupArchiveError):
            extract_archive(path, tmp_path / "out")

    def test_zip_without_metadata(self, tmp_path) -> None:
        """Test a zip lacking metadata.json raises BackupMetadataError."""
        path = tmp_path / "backup.zip"
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr("School.json", "[]")

        with pytest.raises(BackupMetadataError):
            read_archive_metadata(path)

        extract_archive(path, tmp_path / "out")
        with pytest.raises(BackupMetadataError):
            read_metadata(tmp_path / "out")


class TestReadPayload:
    """Tests for read_payload."""

    def _write(self, directory: Path, name: str, content: str) -> None:
        (directory / f"{name}.json").write_text(content)

    def test_reads_records(self, tmp_path) -> None:
        """Test a well-formed payload is returned as records."""
        self._write(tmp_path, "Student", '[{"id": "s-1"}, {"id": "s-2"}]')

        assert read_payload(tmp_path, "Student", 2) == [{"id": "s-1"}, {"id": "s-2"}]

    def test_missing_file_names_model(self, tmp_path) -> None:
        """Test a missing payload identifies the model."""
        with pytest.raises(BackupPayloadError) as exc_info:
            read_payload(tmp_path, "Student", 2)

        assert exc_info.value.model == "Student"
        assert "missing" in exc_info.value.message

    def test_count_mismatch(self, tmp_path) -> None:
        """Test a payload shorter than its metadata count is rejected."""
        self._write(tmp_path, "Student", '[{"id": "s-1"}]')

        with pytest.raises(BackupPayloadError, match="metadata says 2"):
            read_payload(tmp_path, "Student", 2)

    @pytest.mark.parametrize("content", ['{"id": "s-1"}', '["s-1"]', "not json"])
    def test_malformed_payload(self, tmp_path, content) -> None:
        """Test payloads that are not arrays of objects are rejected."""
        self._write(tmp_path, "Student", content)

        with pytest.raises(BackupPayloadError):
            read_payload(tmp_path, "Student", 1)
