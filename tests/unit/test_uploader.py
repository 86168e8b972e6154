# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the HTTP archive uploader against a local object store."""

import asyncio

import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from eduanalytics.domains.backup import BackupService
from eduanalytics.infrastructure.storage.uploader import BackupUploadError, HTTPArchiveUploader


class ObjectStore:
    """Minimal PUT-only object store.

    Attributes:
        received: (key, authorization header, body) of every upload.
        status: Status code answered to uploads.
        stall: When set, uploads hang until the store is closed.
    """

    def __init__(self) -> None:
        self.received: list[tuple[str, str | None, bytes]] = []
        self.status = 200
        self.stall = False
        self.released = asyncio.Event()
        self.base_url = ""
        self.app = web.Application()
        self.app.router.add_put("/store/{key:.+}", self.put)

    async def put(self, request: web.Request) -> web.Response:
        body = await request.read()
        self.received.append(
            (request.match_info["key"], request.headers.get("Authorization"), body)
        )
        if self.stall:
            await self.released.wait()
        return web.Response(status=self.status, text="storage unavailable")


@pytest_asyncio.fixture
async def store():
    """A running local object store."""
    object_store = ObjectStore()
    server = test_utils.TestServer(object_store.app)
    await server.start_server()
    object_store.base_url = str(server.make_url("/store"))
    yield object_store
    object_store.released.set()
    await server.close()


@pytest.fixture
def archive(tmp_path):
    path = tmp_path / "2025-03-01T08-15-30-120Z.zip"
    path.write_bytes(b"PK\x05\x06" + b"\x00" * 18)
    return path


class TestHTTPArchiveUploader:
    """Tests for HTTPArchiveUploader.upload."""

    @pytest.mark.asyncio
    async def test_puts_archive_under_key(self, store, archive) -> None:
        """Test the archive bytes are stored under the key with the token."""
        uploader = HTTPArchiveUploader(store.base_url, token="secret")

        await uploader.upload(archive, f"backups/{archive.name}")

        assert store.received == [
            (f"backups/{archive.name}", "Bearer secret", archive.read_bytes())
        ]

    @pytest.mark.asyncio
    async def test_rejected_upload(self, store, archive) -> None:
        """Test a non-2xx answer raises with the status code."""
        store.status = 503
        uploader = HTTPArchiveUploader(store.base_url)

        with pytest.raises(BackupUploadError) as exc_info:
            await uploader.upload(archive, "backups/a.zip")

        assert exc_info.value.status_code == 503
        assert str(exc_info.value).startswith("[503] Storage rejected upload")

    @pytest.mark.asyncio
    async def test_timeout_raises_upload_error(self, store, archive) -> None:
        """Test a store that never answers raises BackupUploadError."""
        store.stall = True
        uploader = HTTPArchiveUploader(store.base_url, timeout=0.3)

        with pytest.raises(BackupUploadError, match="timed out"):
            await uploader.upload(archive, "backups/a.zip")

    @pytest.mark.asyncio
    async def test_unreadable_archive(self, store, tmp_path) -> None:
        """Test a missing local file raises BackupUploadError."""
        uploader = HTTPArchiveUploader(store.base_url)

        with pytest.raises(BackupUploadError, match="Cannot read archive"):
            await uploader.upload(tmp_path / "gone.zip", "backups/gone.zip")

        assert store.received == []


class TestCreateBackupWithRemoteStore:
    """Tests for create_backup uploading to a real HTTP store."""

    @pytest.mark.asyncio
    async def test_uploaded(self, database, store, tmp_path) -> None:
        """Test a finished archive is copied to the store."""
        service = BackupService(
            database=database,
            storage_dir=tmp_path / "backups",
            uploader=HTTPArchiveUploader(store.base_url),
        )

        backup = await service.create_backup()

        assert backup.uploaded is True
        assert [key for key, _, _ in store.received] == [f"backups/{backup.filename}"]

    @pytest.mark.asyncio
    async def test_upload_timeout_keeps_backup(self, database, store, tmp_path) -> None:
        """Test a stalled store does not fail a backup already on disk."""
        store.stall = True
        service = BackupService(
            database=database,
            storage_dir=tmp_path / "backups",
            uploader=HTTPArchiveUploader(store.base_url, timeout=0.3),
        )

        backup = await service.create_backup()

        assert backup.uploaded is False
        assert "timed out" in backup.upload_error
        assert backup.path.is_file()
        assert [b.filename for b in await service.list_backups()] == [backup.filename]
