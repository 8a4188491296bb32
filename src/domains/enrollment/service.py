# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service for managing class rosters.

This module provides the EnrollmentService class for:
- Enrolling students (by staff, or by the student with an invite code)
- Removing students from a class
- Roster and eligible-student listings

Membership is stored twice: Class.student_ids and User.class_ids. Both
sides are written in the same commit. Enrolling also unions the class's
subjects into User.subject_ids; removal never takes them away.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.common import (
    NotFoundError,
    RequestContext,
    ValidationFailureError,
    commit_unit,
)
from src.infrastructure.database.models.tenant.school import Class
from src.infrastructure.database.models.tenant.user import User, UserRole, UserStatus
from src.infrastructure.events import (
    EffectDispatcher,
    StudentEnrolled,
    StudentRemoved,
    get_dispatcher,
)
from src.models.enrollment import EnrollmentResponse, RosterResponse, RosterStudent

logger = logging.getLogger(__name__)


class EnrollmentServiceError(Exception):
    """Base exception for enrollment service errors."""

    pass


class ClassNotFoundError(EnrollmentServiceError, NotFoundError):
    """Raised when class is not found."""

    pass


class StudentNotFoundError(EnrollmentServiceError, NotFoundError):
    """Raised when student is not found."""

    pass


class InviteCodeNotFoundError(EnrollmentServiceError, NotFoundError):
    """Raised when no class has the given invite code."""

    pass


class InvalidStudentTypeError(EnrollmentServiceError, ValidationFailureError):
    """Raised when user is not a student."""

    pass


def merge_ids(current: list[str] | None, extra: list[str]) -> list[str]:
    """Union two id lists, keeping the order of first appearance."""
    return list(dict.fromkeys([*(current or []), *extra]))


class EnrollmentService:
    """Service for managing student enrollments.

    Attributes:
        db: Async database session.
    """

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: EffectDispatcher | None = None,
    ) -> None:
        """Initialize enrollment service.

        Args:
            db: Async database session.
            dispatcher: Effect dispatcher; defaults to the process-wide one.
        """
        self.db = db
        self._dispatcher = dispatcher or get_dispatcher()

    async def enroll(
        self,
        ctx: RequestContext,
        class_id: str,
        student_id: str,
    ) -> EnrollmentResponse:
        """Enroll a student in a class.

        Idempotent: enrolling a member again succeeds without writing and
        without emitting an event.

        Args:
            ctx: Request context of the acting teacher or admin.
            class_id: Class identifier.
            student_id: Student identifier.

        Returns:
            Enrollment result; changed is False if already enrolled.

        Raises:
            UnauthorizedError: If the actor is not staff.
            ClassNotFoundError: If class not found.
            StudentNotFoundError: If student not found.
            InvalidStudentTypeError: If the user is not a student.
        """
        ctx.require_staff()
        class_ = await self._get_class(ctx.school_id, class_id)
        student = await self._get_student(ctx.school_id, student_id)
        return await self._enroll(ctx, class_, student, via_invite_code=False)

    async def join_by_invite_code(
        self,
        ctx: RequestContext,
        invite_code: str,
    ) -> EnrollmentResponse:
        """Enroll the acting student in the class holding an invite code.

        Args:
            ctx: Request context of the joining student.
            invite_code: Class invite code, case-insensitive.

        Returns:
            Enrollment result; changed is False if already enrolled.

        Raises:
            InviteCodeNotFoundError: If no class in the student's school has the code.
            InvalidStudentTypeError: If the actor is not a student.
        """
        code = invite_code.strip().upper()
        result = await self.db.execute(select(Class).where(Class.invite_code == code))
        class_ = result.scalar_one_or_none()
        if class_ is None or class_.school_id != ctx.school_id:
            raise InviteCodeNotFoundError(f"Invalid invite code: {invite_code}")

        student = await self._get_student(ctx.school_id, ctx.user_id)
        return await self._enroll(ctx, class_, student, via_invite_code=True)

    async def remove(
        self,
        ctx: RequestContext,
        class_id: str,
        student_id: str,
    ) -> EnrollmentResponse:
        """Remove a student from a class.

        Subjects inherited from the class are kept. Removing a non-member
        succeeds without writing.

        Args:
            ctx: Request context of the acting teacher or admin.
            class_id: Class identifier.
            student_id: Student identifier.

        Returns:
            Enrollment result; changed is False if the student was not a member.

        Raises:
            ClassNotFoundError: If class not found.
            StudentNotFoundError: If student not found.
        """
        ctx.require_staff()
        class_ = await self._get_class(ctx.school_id, class_id)
        student = await self._get_student(ctx.school_id, student_id)

        on_roster = student_id in (class_.student_ids or [])
        has_class = class_id in (student.class_ids or [])
        if not on_roster and not has_class:
            return self._to_response(class_, student, changed=False)

        if on_roster:
            class_.student_ids = [s for s in class_.student_ids if s != student_id]
        if has_class:
            student.class_ids = [c for c in student.class_ids if c != class_id]
        await commit_unit(self.db, "remove_student")

        logger.info(
            "Removed student %s from class %s by %s", student_id, class_id, ctx.user_id
        )
        self._dispatcher.dispatch(
            StudentRemoved(
                school_id=class_.school_id,
                actor_id=ctx.user_id,
                actor_name=ctx.display_name,
                class_id=class_.id,
                class_name=class_.name,
                student_id=student.id,
                student_name=student.display_name,
            )
        )
        return self._to_response(class_, student, changed=True)

    async def list_roster(self, ctx: RequestContext, class_id: str) -> RosterResponse:
        """List the students on a class roster, by name.

        Raises:
            ClassNotFoundError: If class not found.
        """
        class_ = await self._get_class(ctx.school_id, class_id)
        students: list[User] = []
        if class_.student_ids:
            result = await self.db.execute(
                select(User)
                .where(User.id.in_(list(class_.student_ids)))
                .order_by(User.display_name)
            )
            students = list(result.scalars())
        return self._to_roster(class_, students)

    async def list_eligible_non_members(
        self,
        ctx: RequestContext,
        class_id: str,
    ) -> RosterResponse:
        """List active students of the school who are not on the roster.

        Raises:
            ClassNotFoundError: If class not found.
        """
        class_ = await self._get_class(ctx.school_id, class_id)
        query = (
            select(User)
            .where(
                User.school_id == class_.school_id,
                User.role == UserRole.STUDENT.value,
                User.status == UserStatus.ACTIVE.value,
            )
            .order_by(User.display_name)
        )
        if class_.student_ids:
            query = query.where(User.id.not_in(list(class_.student_ids)))
        result = await self.db.execute(query)
        return self._to_roster(class_, list(result.scalars()))

    async def _enroll(
        self,
        ctx: RequestContext,
        class_: Class,
        student: User,
        via_invite_code: bool,
    ) -> EnrollmentResponse:
        """Apply the enroll effect to both rows and commit once."""
        on_roster = student.id in (class_.student_ids or [])
        has_class = class_.id in (student.class_ids or [])
        if on_roster and has_class:
            return self._to_response(class_, student, changed=False)

        if not on_roster:
            class_.student_ids = [*(class_.student_ids or []), student.id]
        if not has_class:
            student.class_ids = [*(student.class_ids or []), class_.id]
        student.subject_ids = merge_ids(student.subject_ids, class_.inherited_subject_ids())
        await commit_unit(self.db, "enroll_student")

        logger.info(
            "Enrolled student %s in class %s by %s (invite_code=%s)",
            student.id,
            class_.id,
            ctx.user_id,
            via_invite_code,
        )
        self._dispatcher.dispatch(
            StudentEnrolled(
                school_id=class_.school_id,
                actor_id=ctx.user_id,
                actor_name=ctx.display_name,
                class_id=class_.id,
                class_name=class_.name,
                student_id=student.id,
                student_name=student.display_name,
                teacher_id=class_.teacher_id,
                via_invite_code=via_invite_code,
            )
        )
        return self._to_response(class_, student, changed=True)

    async def _get_class(self, school_id: str, class_id: str) -> Class:
        """Get class in the school or raise."""
        class_ = await self.db.get(Class, class_id)
        if class_ is None or class_.school_id != school_id:
            raise ClassNotFoundError(f"Class {class_id} not found")
        return class_

    async def _get_student(self, school_id: str, student_id: str) -> User:
        """Get a student user in the school or raise."""
        user = await self.db.get(User, student_id)
        if user is None or user.school_id != school_id:
            raise StudentNotFoundError(f"Student {student_id} not found")
        if not user.is_student:
            raise InvalidStudentTypeError(f"User {student_id} is not a student")
        return user

    def _to_response(self, class_: Class, student: User, changed: bool) -> EnrollmentResponse:
        """Build enrollment result."""
        return EnrollmentResponse(
            class_id=class_.id,
            student_id=student.id,
            changed=changed,
            subject_ids=list(student.subject_ids or []),
            class_ids=list(student.class_ids or []),
        )

    def _to_roster(self, class_: Class, students: list[User]) -> RosterResponse:
        """Build roster response."""
        items = [
            RosterStudent(
                id=s.id,
                display_name=s.display_name,
                email=s.email,
                status=s.status,
            )
            for s in students
        ]
        return RosterResponse(
            class_id=class_.id,
            class_name=class_.name,
            items=items,
            total=len(items),
        )
