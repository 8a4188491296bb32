# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam period and exam result models."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    IdList,
    SchoolScopedMixin,
    TimestampMixin,
    new_id,
)


class ExamPeriodStatus(str, Enum):
    """Exam period lifecycle."""

    UPCOMING = "upcoming"
    ACTIVE = "active"
    GRADING = "grading"
    COMPLETED = "completed"


class ExamScope(str, Enum):
    """How the classes sitting an exam period are chosen."""

    SPECIFIC_CLASSES = "specific_classes"
    FORM_GRADE = "form_grade"
    ENTIRE_SCHOOL = "entire_school"


class ExamPeriod(SchoolScopedMixin, TimestampMixin, Base):
    """An exam period.

    assigned_class_ids is the scope resolved at creation (or at the last
    update while upcoming). It is never re-resolved when classes change.
    """

    __tablename__ = "exam_periods"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ExamPeriodStatus.UPCOMING.value
    )
    scope: Mapped[str] = mapped_column(String(30), nullable=False)
    grade_label: Mapped[str | None] = mapped_column(String(100), nullable=True)
    requested_class_ids: Mapped[list[str]] = mapped_column(
        IdList, nullable=False, default=list
    )
    assigned_class_ids: Mapped[list[str]] = mapped_column(
        IdList, nullable=False, default=list
    )

    @property
    def is_completed(self) -> bool:
        """Check whether the period is finalized."""
        return self.status == ExamPeriodStatus.COMPLETED.value


class ExamResult(SchoolScopedMixin, TimestampMixin, Base):
    """Marks for one student in one subject of one class during an exam period."""

    __tablename__ = "exam_results"
    __table_args__ = (
        UniqueConstraint(
            "exam_period_id",
            "class_id",
            "subject_id",
            "student_id",
            name="uq_exam_results_period_class_subject_student",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    exam_period_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    class_id: Mapped[str] = mapped_column(String(36), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(36), nullable=False)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False)
    marks: Mapped[str] = mapped_column(String(50), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
