# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    classes: Class registry and roster endpoints.
    assignments: Assignment registry endpoints.
    submissions: Submission, upload and grading endpoints.
    exams: Exam period and exam result endpoints.
    notifications: Notification inbox and activity feed endpoints.
"""

from fastapi import APIRouter

from src.api.v1 import assignments, classes, exams, notifications, submissions

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(classes.router, prefix="/classes", tags=["Classes"])
router.include_router(assignments.router, prefix="/assignments", tags=["Assignments"])
router.include_router(submissions.router, tags=["Submissions"])
router.include_router(exams.router, prefix="/exam-periods", tags=["Exam Periods"])
router.include_router(notifications.router, tags=["Notifications"])

__all__ = ["router"]
