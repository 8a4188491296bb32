# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School-scoped models.

Every table here carries school_id; importing this package registers
all of them on Base.metadata.
"""

from src.infrastructure.database.models.tenant.assignment import (
    Assignment,
    Submission,
    SubmissionFormat,
    SubmissionStatus,
)
from src.infrastructure.database.models.tenant.exam import (
    ExamPeriod,
    ExamPeriodStatus,
    ExamResult,
    ExamScope,
)
from src.infrastructure.database.models.tenant.material import LearningMaterial
from src.infrastructure.database.models.tenant.notification import Activity, Notification
from src.infrastructure.database.models.tenant.school import Class, ClassType, School, Subject
from src.infrastructure.database.models.tenant.user import User, UserRole, UserStatus

__all__ = [
    # Organization
    "School",
    "Subject",
    "Class",
    "ClassType",
    # Users
    "User",
    "UserRole",
    "UserStatus",
    # Coursework
    "Assignment",
    "Submission",
    "SubmissionFormat",
    "SubmissionStatus",
    "LearningMaterial",
    # Exams
    "ExamPeriod",
    "ExamPeriodStatus",
    "ExamResult",
    "ExamScope",
    # Derived records
    "Activity",
    "Notification",
]
