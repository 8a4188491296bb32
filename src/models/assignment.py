# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment request and response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.infrastructure.database.models.tenant.assignment import (
    SubmissionFormat,
    SubmissionStatus,
)


class AssignmentCreateRequest(BaseModel):
    """Request to create an assignment."""

    class_id: str
    title: str = Field(..., min_length=1, max_length=300)
    description: str = ""
    deadline: datetime
    allowed_formats: list[SubmissionFormat]
    subject_id: str | None = None


class AssignmentUpdateRequest(BaseModel):
    """Partial assignment update.

    Ownership, class and the submission counter are not updatable.
    """

    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    deadline: datetime | None = None
    allowed_formats: list[SubmissionFormat] | None = None
    subject_id: str | None = None


class AssignmentResponse(BaseModel):
    """Assignment details."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    class_id: str
    teacher_id: str
    subject_id: str | None = None
    title: str
    description: str
    deadline: datetime
    allowed_formats: list[SubmissionFormat]
    total_submissions: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AssignmentListResponse(BaseModel):
    """List of assignments."""

    items: list[AssignmentResponse]
    total: int


class StudentAssignmentView(BaseModel):
    """An assignment as one student sees it, with their own status."""

    assignment: AssignmentResponse
    status: SubmissionStatus
    submission_id: str | None = None
    submitted_at: datetime | None = None
    grade: str | None = None
    feedback: str | None = None


class StudentAssignmentListResponse(BaseModel):
    """A student's assignments in a class, soonest deadline first."""

    class_id: str
    student_id: str
    items: list[StudentAssignmentView]


class AssignmentDeleteResponse(BaseModel):
    """Summary of a cascading assignment delete."""

    assignment_id: str
    deleted_submissions: int
