# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Submission request and response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.infrastructure.database.models.tenant.assignment import (
    SubmissionFormat,
    SubmissionStatus,
)


class SubmitRequest(BaseModel):
    """A student's hand-in.

    content is the text itself for text_entry, or a URI for file_link and
    file_upload (the storage URI returned by the upload endpoint).
    """

    content: str = Field(..., min_length=1)
    submission_format: SubmissionFormat
    original_file_name: str | None = Field(default=None, max_length=255)


class SubmitResult(BaseModel):
    """Outcome of submit().

    existing_grade is the grade already on the submission, so the caller
    can tell the student their resubmission did not reset it.
    """

    submission_id: str
    status: SubmissionStatus
    existing_grade: str | None = None
    is_new: bool


class GradeRequest(BaseModel):
    """A grade for a submission. Grades are free-form (e.g. "85%", "B+")."""

    grade: str = Field(..., min_length=1, max_length=50)
    feedback: str | None = None


class SubmissionResponse(BaseModel):
    """Submission details."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    assignment_id: str
    class_id: str
    student_id: str
    student_name: str | None = None
    submitted_at: datetime
    content: str
    submission_format: SubmissionFormat
    original_file_name: str | None = None
    grade: str | None = None
    feedback: str | None = None
    status: SubmissionStatus


class SubmissionListResponse(BaseModel):
    """Submissions for one assignment."""

    assignment_id: str
    items: list[SubmissionResponse]
    total: int


class UploadResponse(BaseModel):
    """Location of an uploaded file, to be used as submission content."""

    uri: str
    original_file_name: str
    size: int
