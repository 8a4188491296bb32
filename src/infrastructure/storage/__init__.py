# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""File storage for submission uploads."""

from src.infrastructure.storage.local import (
    FileStorage,
    LocalFileStorage,
    StorageError,
    UploadTooLargeError,
    safe_file_name,
    submission_upload_path,
)

__all__ = [
    "FileStorage",
    "LocalFileStorage",
    "StorageError",
    "UploadTooLargeError",
    "safe_file_name",
    "submission_upload_path",
]
