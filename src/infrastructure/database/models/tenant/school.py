# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School, subject and class models."""

from enum import Enum

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    IdList,
    SchoolScopedMixin,
    TimestampMixin,
    new_id,
)


class ClassType(str, Enum):
    """Kind of class.

    A main class is a homeroom/form class carrying a set of compulsory
    subjects. A subject-based class teaches exactly one subject.
    """

    MAIN = "main"
    SUBJECT_BASED = "subject_based"


class School(TimestampMixin, Base):
    """A tenant."""

    __tablename__ = "schools"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    invite_code: Mapped[str | None] = mapped_column(String(20), nullable=True, unique=True)


class Subject(SchoolScopedMixin, TimestampMixin, Base):
    """A subject taught in a school."""

    __tablename__ = "subjects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)


class Class(SchoolScopedMixin, TimestampMixin, Base):
    """A class and its roster.

    student_ids is the roster; its mirror is User.class_ids. The two are
    written in the same transaction by the enrollment service.

    compulsory_subject_ids is only populated for main classes and
    subject_id only for subject-based classes.
    """

    __tablename__ = "classes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    teacher_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    class_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ClassType.MAIN.value
    )
    invite_code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    student_ids: Mapped[list[str]] = mapped_column(IdList, nullable=False, default=list)
    compulsory_subject_ids: Mapped[list[str]] = mapped_column(
        IdList, nullable=False, default=list
    )
    subject_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    @property
    def is_main(self) -> bool:
        """Check if this is a main (form) class."""
        return self.class_type == ClassType.MAIN.value

    def inherited_subject_ids(self) -> list[str]:
        """Subjects a student picks up by joining this class."""
        if self.is_main:
            return list(self.compulsory_subject_ids or [])
        return [self.subject_id] if self.subject_id else []
