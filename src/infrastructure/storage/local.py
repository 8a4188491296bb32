# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""File storage for uploaded submission files.

The returned URI is opaque to the rest of the platform: it is stored as
the submission content and handed back to clients unchanged.

Files are written under a per-school prefix so one school's uploads
never share a directory with another's.
"""

import asyncio
import logging
import re
from pathlib import Path, PurePosixPath
from typing import Protocol

from src.core.config.settings import StorageSettings
from src.infrastructure.database.models.base import new_id

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class StorageError(Exception):
    """Raised when a file cannot be stored."""

    pass


class UploadTooLargeError(StorageError):
    """Raised when an upload exceeds the configured size limit."""

    pass


class FileStorage(Protocol):
    """Storage backend interface."""

    async def upload(self, data: bytes, path: str) -> str:
        """Store data at a relative path and return its URI."""
        ...


def safe_file_name(name: str) -> str:
    """Reduce a client-supplied file name to a safe single path segment."""
    base = PurePosixPath(name.replace("\\", "/")).name
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned or "file"


def submission_upload_path(school_id: str, assignment_id: str, student_id: str, file_name: str) -> str:
    """Build the relative storage path for a submission upload.

    A random segment keeps earlier uploads of the same file name intact.
    """
    return "/".join(
        [school_id, "submissions", assignment_id, student_id, new_id(), safe_file_name(file_name)]
    )


class LocalFileStorage:
    """Stores files on the local filesystem.

    Attributes:
        root: Directory files are written under.
        public_base_url: Prefix of the returned URIs.
        max_bytes: Largest accepted upload.
    """

    def __init__(self, settings: StorageSettings) -> None:
        """Initialize local storage.

        Args:
            settings: Storage configuration.
        """
        self.root = Path(settings.root_path).resolve()
        self.public_base_url = settings.public_base_url.rstrip("/")
        self.max_bytes = settings.max_upload_bytes

    async def upload(self, data: bytes, path: str) -> str:
        """Write data to root/path.

        Args:
            data: File contents.
            path: Relative path using forward slashes.

        Returns:
            URI of the stored file.

        Raises:
            UploadTooLargeError: If data exceeds max_bytes.
            StorageError: If the path escapes the root or the write fails.
        """
        if len(data) > self.max_bytes:
            raise UploadTooLargeError(
                f"Upload of {len(data)} bytes exceeds limit of {self.max_bytes}"
            )

        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root):
            raise StorageError(f"Invalid storage path: {path}")

        try:
            await asyncio.to_thread(self._write, target, data)
        except OSError as e:
            logger.error("Failed to store %s: %s", path, str(e))
            raise StorageError(f"Failed to store file: {path}") from e

        relative = target.relative_to(self.root).as_posix()
        logger.info("Stored upload: %s (%d bytes)", relative, len(data))
        return f"{self.public_base_url}/{relative}"

    @staticmethod
    def _write(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
