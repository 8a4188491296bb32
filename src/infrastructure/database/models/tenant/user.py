# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User model.

Students, teachers, admins and parents share one table, distinguished
by role. Students carry their class membership and the derived subject
set; parents carry the id of the student they are linked to.
"""

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


class UserRole(str, Enum):
    """Platform roles."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


class UserStatus(str, Enum):
    """Account status."""

    PENDING_VERIFICATION = "pending_verification"
    ACTIVE = "active"
    REJECTED = "rejected"
    DISABLED = "disabled"


class User(SchoolScopedMixin, TimestampMixin, Base):
    """A platform user."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=UserStatus.PENDING_VERIFICATION.value
    )
    class_ids: Mapped[list[str]] = mapped_column(IdList, nullable=False, default=list)
    subject_ids: Mapped[list[str]] = mapped_column(IdList, nullable=False, default=list)
    child_student_id: Mapped[str | None] = mapped_column(
        String(36), nullable=True, index=True
    )

    @property
    def is_student(self) -> bool:
        """Check if user is a student."""
        return self.role == UserRole.STUDENT.value
