# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment and submission models."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    IdList,
    SchoolScopedMixin,
    TimestampMixin,
    new_id,
)
from src.utils.datetime import utc_now


class SubmissionFormat(str, Enum):
    """How a student hands in work."""

    TEXT_ENTRY = "text_entry"
    FILE_LINK = "file_link"
    FILE_UPLOAD = "file_upload"


class SubmissionStatus(str, Enum):
    """Stored submission status.

    MISSING is never stored; it is reported for students with no row.
    """

    SUBMITTED = "submitted"
    LATE = "late"
    GRADED = "graded"
    MISSING = "missing"


class Assignment(SchoolScopedMixin, TimestampMixin, Base):
    """A piece of work set for a class.

    total_submissions counts distinct students who have submitted. It is
    incremented in SQL alongside the first submission insert and never
    decremented; treat it as a display value.
    """

    __tablename__ = "assignments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    class_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    subject_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    allowed_formats: Mapped[list[str]] = mapped_column(IdList, nullable=False, default=list)
    total_submissions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Submission(SchoolScopedMixin, Base):
    """A student's hand-in for an assignment. One row per (assignment, student)."""

    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submissions_assignment_student"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    assignment_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    class_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    submission_format: Mapped[str] = mapped_column(String(20), nullable=False)
    original_file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    grade: Mapped[str | None] = mapped_column(String(50), nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )
