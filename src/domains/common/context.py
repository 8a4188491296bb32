# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request-scoped actor context.

A RequestContext is built once per request from the verified token and
passed explicitly into every domain operation. Services never look up
"the current user" on their own.
"""

from dataclasses import dataclass

from src.domains.common.errors import UnauthorizedError
from src.infrastructure.database.models.tenant.user import UserRole


@dataclass(frozen=True)
class RequestContext:
    """Who is acting, and for which school.

    Attributes:
        user_id: Acting user's id.
        role: Acting user's role.
        school_id: School the actor belongs to.
        display_name: Name shown in notifications and the activity feed.
        email: Actor's email address, if known.
    """

    user_id: str
    role: str
    school_id: str
    display_name: str = ""
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        """Check if actor is a school admin."""
        return self.role == UserRole.ADMIN.value

    @property
    def is_teacher(self) -> bool:
        """Check if actor is a teacher."""
        return self.role == UserRole.TEACHER.value

    @property
    def is_student(self) -> bool:
        """Check if actor is a student."""
        return self.role == UserRole.STUDENT.value

    @property
    def is_parent(self) -> bool:
        """Check if actor is a parent."""
        return self.role == UserRole.PARENT.value

    @property
    def is_staff(self) -> bool:
        """Check if actor is a teacher or an admin."""
        return self.is_admin or self.is_teacher

    def require_admin(self) -> None:
        """Raise UnauthorizedError unless the actor is an admin."""
        if not self.is_admin:
            raise UnauthorizedError("Admin access required")

    def require_staff(self) -> None:
        """Raise UnauthorizedError unless the actor is a teacher or admin."""
        if not self.is_staff:
            raise UnauthorizedError("Teacher or admin access required")

    def require_school(self, school_id: str) -> None:
        """Raise UnauthorizedError if the entity belongs to another school.

        Args:
            school_id: School of the entity being accessed.
        """
        if school_id != self.school_id:
            raise UnauthorizedError("Entity belongs to a different school")
