# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam period and exam result models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.infrastructure.database.models.tenant.exam import ExamPeriodStatus, ExamScope


class ExamPeriodCreateRequest(BaseModel):
    """Request to create an exam period.

    grade_label is used with form_grade scope, class_ids with
    specific_classes scope.
    """

    name: str = Field(..., min_length=1, max_length=200)
    start_date: datetime
    end_date: datetime
    scope: ExamScope
    grade_label: str | None = Field(default=None, max_length=100)
    class_ids: list[str] = Field(default_factory=list)


class ExamPeriodUpdateRequest(BaseModel):
    """Partial update, accepted only while the period is upcoming."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    start_date: datetime | None = None
    end_date: datetime | None = None
    scope: ExamScope | None = None
    grade_label: str | None = Field(default=None, max_length=100)
    class_ids: list[str] | None = None


class ExamStatusChangeRequest(BaseModel):
    """Move an exam period to another status."""

    status: ExamPeriodStatus


class ExamPeriodResponse(BaseModel):
    """Exam period details."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    name: str
    start_date: datetime
    end_date: datetime
    status: ExamPeriodStatus
    scope: ExamScope
    grade_label: str | None = None
    requested_class_ids: list[str]
    assigned_class_ids: list[str]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ExamPeriodListResponse(BaseModel):
    """List of exam periods."""

    items: list[ExamPeriodResponse]
    total: int


class ExamResultRequest(BaseModel):
    """Marks for one student in one subject of one class."""

    class_id: str
    subject_id: str
    student_id: str
    marks: str = Field(..., min_length=1, max_length=50)
    remarks: str | None = None


class ExamResultResponse(BaseModel):
    """A recorded exam result."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    exam_period_id: str
    class_id: str
    subject_id: str
    student_id: str
    teacher_id: str
    marks: str
    remarks: str | None = None
    updated_at: datetime | None = None


class ExamResultListResponse(BaseModel):
    """Results for an exam period."""

    exam_period_id: str
    items: list[ExamResultResponse]
    total: int
