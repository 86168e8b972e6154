# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Remote object storage upload for finished backup archives.

The uploader PUTs the archive bytes to ``<base_url>/<key>`` with a bearer
token, which works against S3-compatible gateways and presigned-prefix
endpoints.

Example:
    uploader = HTTPArchiveUploader(
        base_url="https://storage.example.com/school-backups",
        token="secret",
    )
    await uploader.upload(Path("backups/2025-03-01T08-15-30-120Z.zip"),
                          "backups/2025-03-01T08-15-30-120Z.zip")
"""

import asyncio
import logging
from pathlib import Path
from typing import Protocol

import aiohttp

logger = logging.getLogger(__name__)


class BackupUploadError(Exception):
    """Raised when an archive could not be copied to remote storage.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code from the storage endpoint, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        if self.status_code:
            return f"[{self.status_code}] {self.message}"
        return self.message


class ArchiveUploader(Protocol):
    """Anything able to copy a local archive to remote storage."""

    async def upload(self, path: Path, key: str) -> None:
        """Upload the file at path under the given object key."""
        ...


class HTTPArchiveUploader:
    """Uploads archives to an HTTP object store.

    Attributes:
        base_url: Base URL objects are stored under.
        token: Bearer token for the store.
        timeout: Request timeout.
    """

    def __init__(self, base_url: str, token: str = "", timeout: float = 120.0) -> None:
        """Initialize the uploader.

        Args:
            base_url: Base URL objects are stored under.
            token: Bearer token; omitted from requests when empty.
            timeout: Request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    def _get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/zip"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def upload(self, path: Path, key: str) -> None:
        """Upload an archive.

        Args:
            path: Local archive path.
            key: Object key, e.g. ``backups/<filename>``.

        Raises:
            BackupUploadError: If the archive cannot be read, the request times
                out or fails to connect, or the store answers non-2xx.
        """
        try:
            body = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise BackupUploadError(f"Cannot read archive {path.name}: {e}") from e
        url = f"{self.base_url}/{key.lstrip('/')}"

        logger.debug("Uploading backup archive: key=%s, bytes=%d", key, len(body))

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.put(url, data=body, headers=self._get_headers()) as response:
                    if response.status >= 300:
                        text = await response.text()
                        raise BackupUploadError(
                            f"Storage rejected upload of {key}: {text[:200]}",
                            status_code=response.status,
                        )
        except TimeoutError as e:
            raise BackupUploadError(f"Upload of {key} timed out") from e
        except aiohttp.ClientError as e:
            raise BackupUploadError(f"Failed to connect to backup storage: {e}") from e

        logger.info("Uploaded backup archive: key=%s", key)
