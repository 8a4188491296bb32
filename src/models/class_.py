# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class request and response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.infrastructure.database.models.tenant.school import ClassType


class ClassCreateRequest(BaseModel):
    """Request to create a class."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    class_type: ClassType = ClassType.MAIN
    teacher_id: str | None = None
    compulsory_subject_ids: list[str] = Field(default_factory=list)
    subject_id: str | None = None


class ClassUpdateRequest(BaseModel):
    """Partial class update. Unset fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    class_type: ClassType | None = None
    teacher_id: str | None = None
    compulsory_subject_ids: list[str] | None = None
    subject_id: str | None = None


class ClassResponse(BaseModel):
    """Class details."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    name: str
    description: str | None = None
    class_type: ClassType
    teacher_id: str | None = None
    invite_code: str
    student_ids: list[str]
    compulsory_subject_ids: list[str]
    subject_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ClassListResponse(BaseModel):
    """List of classes."""

    items: list[ClassResponse]
    total: int


class InviteCodeResponse(BaseModel):
    """A class invite code."""

    class_id: str
    invite_code: str


class ClassDeleteResponse(BaseModel):
    """Summary of a cascading class delete."""

    class_id: str
    removed_student_ids: list[str]
    deleted_assignments: int
    deleted_submissions: int
    deleted_materials: int
