# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Submission domain package.

This package provides the submission lifecycle including:
- Submit and resubmit with late detection
- Grading
- Submission listings per assignment and per student
"""

from src.domains.submission.service import (
    AssignmentNotFoundError,
    FormatNotAllowedError,
    NotGraderError,
    NotStudentError,
    SubmissionNotFoundError,
    SubmissionService,
    SubmissionServiceError,
    next_status,
)

__all__ = [
    "SubmissionService",
    "SubmissionServiceError",
    "AssignmentNotFoundError",
    "SubmissionNotFoundError",
    "FormatNotAllowedError",
    "NotStudentError",
    "NotGraderError",
    "next_status",
]
