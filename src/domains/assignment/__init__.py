# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment domain package.

This package provides the assignment registry including:
- Assignment CRUD for the owning teacher or an admin
- Cascading submission deletion
- Per-student assignment status views
"""

from src.domains.assignment.service import (
    AssignmentNotFoundError,
    AssignmentService,
    AssignmentServiceError,
    ClassNotFoundError,
    InvalidFormatsError,
    NotAssignmentOwnerError,
)

__all__ = [
    "AssignmentService",
    "AssignmentServiceError",
    "AssignmentNotFoundError",
    "ClassNotFoundError",
    "InvalidFormatsError",
    "NotAssignmentOwnerError",
]
