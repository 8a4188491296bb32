# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam domain package.

This package provides exam period management including:
- Scope resolution into a frozen class set
- Status lifecycle with a transition guard
- Exam results, locked once the period is completed
"""

from src.domains.exam.scope import ScopeResolutionError, resolve_scope
from src.domains.exam.service import (
    ALLOWED_TRANSITIONS,
    ClassNotInScopeError,
    ExamPeriodLockedError,
    ExamPeriodNotFoundError,
    ExamService,
    ExamServiceError,
    InvalidExamWindowError,
    InvalidStatusTransitionError,
    can_transition,
)

__all__ = [
    "ExamService",
    "ExamServiceError",
    "ExamPeriodNotFoundError",
    "ExamPeriodLockedError",
    "InvalidExamWindowError",
    "InvalidStatusTransitionError",
    "ClassNotInScopeError",
    "ScopeResolutionError",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "resolve_scope",
]
