# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain package.

This package provides class roster management including:
- Student enrollment by staff or by invite code
- Student removal
- Subject inheritance from main and subject-based classes
"""

from src.domains.enrollment.service import (
    ClassNotFoundError,
    EnrollmentService,
    EnrollmentServiceError,
    InvalidStudentTypeError,
    InviteCodeNotFoundError,
    StudentNotFoundError,
    merge_ids,
)

__all__ = [
    "EnrollmentService",
    "EnrollmentServiceError",
    "ClassNotFoundError",
    "StudentNotFoundError",
    "InviteCodeNotFoundError",
    "InvalidStudentTypeError",
    "merge_ids",
]
