# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class domain package.

This package provides class registry functionality including:
- Class CRUD with the main/subject-based field rules
- Invite codes
- Cascading deletion
"""

from src.domains.class_.service import (
    ClassNotFoundError,
    ClassService,
    ClassServiceError,
    InvalidClassTypeError,
    InvalidTeacherError,
    apply_type_invariant,
    generate_invite_code,
)

__all__ = [
    "ClassService",
    "ClassServiceError",
    "ClassNotFoundError",
    "InvalidClassTypeError",
    "InvalidTeacherError",
    "apply_type_invariant",
    "generate_invite_code",
]
