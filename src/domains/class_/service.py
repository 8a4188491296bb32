# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class service for managing the class registry.

This module provides the ClassService class for:
- Class CRUD operations with the class-type invariant enforced
- Invite code generation and regeneration
- Cascading class deletion
"""

from __future__ import annotations

import logging
import secrets
import string

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.common import (
    NotFoundError,
    RequestContext,
    ValidationFailureError,
    commit_unit,
)
from src.infrastructure.database.models.tenant.assignment import Assignment, Submission
from src.infrastructure.database.models.tenant.material import LearningMaterial
from src.infrastructure.database.models.tenant.school import Class, ClassType
from src.infrastructure.database.models.tenant.user import User, UserRole
from src.infrastructure.events import (
    ClassCreated,
    ClassDeleted,
    ClassUpdated,
    EffectDispatcher,
    InviteCodeRegenerated,
    get_dispatcher,
)
from src.models.class_ import (
    ClassCreateRequest,
    ClassDeleteResponse,
    ClassResponse,
    ClassUpdateRequest,
    InviteCodeResponse,
)

logger = logging.getLogger(__name__)

INVITE_CODE_PREFIX = "C-"
INVITE_CODE_LENGTH = 6
INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits
_MAX_CODE_ATTEMPTS = 10


class ClassServiceError(Exception):
    """Base exception for class service errors."""

    pass


class ClassNotFoundError(ClassServiceError, NotFoundError):
    """Raised when class is not found."""

    pass


class InvalidClassTypeError(ClassServiceError, ValidationFailureError):
    """Raised when a class violates the main/subject-based field rules."""

    pass


class InvalidTeacherError(ClassServiceError, ValidationFailureError):
    """Raised when the owning teacher is unknown or not staff."""

    pass


def generate_invite_code() -> str:
    """Generate a class invite code such as ``C-7KQ2ZD``."""
    suffix = "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))
    return f"{INVITE_CODE_PREFIX}{suffix}"


def apply_type_invariant(class_: Class) -> None:
    """Clear the field that does not apply to the class type.

    Args:
        class_: Class with the merged field values.

    Raises:
        InvalidClassTypeError: If a subject-based class has no subject.
    """
    if class_.class_type == ClassType.SUBJECT_BASED.value:
        if not class_.subject_id:
            raise InvalidClassTypeError("A subject-based class requires subject_id")
        class_.compulsory_subject_ids = []
    else:
        class_.subject_id = None
        class_.compulsory_subject_ids = list(dict.fromkeys(class_.compulsory_subject_ids or []))


class ClassService:
    """Service for managing classes.

    All mutations are admin-only and scoped to the actor's school.

    Attributes:
        db: Async database session.
    """

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: EffectDispatcher | None = None,
    ) -> None:
        """Initialize class service.

        Args:
            db: Async database session.
            dispatcher: Effect dispatcher; defaults to the process-wide one.
        """
        self.db = db
        self._dispatcher = dispatcher or get_dispatcher()

    async def create_class(
        self,
        ctx: RequestContext,
        request: ClassCreateRequest,
    ) -> ClassResponse:
        """Create a new class.

        Args:
            ctx: Request context of the acting admin.
            request: Class creation data.

        Returns:
            Created class response.

        Raises:
            UnauthorizedError: If the actor is not an admin.
            InvalidClassTypeError: If the type invariant is violated.
            InvalidTeacherError: If teacher_id is not staff of the school.
        """
        ctx.require_admin()

        class_ = Class(
            school_id=ctx.school_id,
            name=request.name.strip(),
            description=request.description,
            teacher_id=request.teacher_id,
            class_type=request.class_type.value,
            compulsory_subject_ids=list(request.compulsory_subject_ids),
            subject_id=request.subject_id,
            student_ids=[],
        )
        apply_type_invariant(class_)
        if class_.teacher_id:
            await self._check_teacher(ctx.school_id, class_.teacher_id)

        class_.invite_code = await self._unique_invite_code()
        self.db.add(class_)
        await commit_unit(self.db, "create_class")
        await self.db.refresh(class_)

        logger.info("Created class: %s (%s) by %s", class_.name, class_.id, ctx.user_id)
        self._dispatcher.dispatch(
            ClassCreated(
                school_id=ctx.school_id,
                actor_id=ctx.user_id,
                actor_name=ctx.display_name,
                class_id=class_.id,
                class_name=class_.name,
            )
        )
        return self._to_response(class_)

    async def update_class(
        self,
        ctx: RequestContext,
        class_id: str,
        request: ClassUpdateRequest,
    ) -> ClassResponse:
        """Update a class.

        Unset fields keep their value. The type invariant is re-applied to
        the merged result, so switching type clears the field that no longer
        applies.

        Args:
            ctx: Request context of the acting admin.
            class_id: Class identifier.
            request: Fields to update.

        Returns:
            Updated class response.

        Raises:
            ClassNotFoundError: If class not found.
            InvalidClassTypeError: If the merged class violates the type invariant.
        """
        ctx.require_admin()
        class_ = await self._get_class(ctx, class_id)

        update_data = request.model_dump(exclude_unset=True)
        if "name" in update_data and update_data["name"] is not None:
            class_.name = update_data["name"].strip()
        if "description" in update_data:
            class_.description = update_data["description"]
        if "teacher_id" in update_data:
            if update_data["teacher_id"]:
                await self._check_teacher(ctx.school_id, update_data["teacher_id"])
            class_.teacher_id = update_data["teacher_id"]
        if update_data.get("class_type") is not None:
            class_.class_type = ClassType(update_data["class_type"]).value
        if "compulsory_subject_ids" in update_data:
            class_.compulsory_subject_ids = list(update_data["compulsory_subject_ids"] or [])
        if "subject_id" in update_data:
            class_.subject_id = update_data["subject_id"]

        try:
            apply_type_invariant(class_)
        except InvalidClassTypeError:
            self.db.expire(class_)
            raise

        await commit_unit(self.db, "update_class")
        await self.db.refresh(class_)

        logger.info("Updated class: %s by %s", class_id, ctx.user_id)
        self._dispatcher.dispatch(
            ClassUpdated(
                school_id=ctx.school_id,
                actor_id=ctx.user_id,
                actor_name=ctx.display_name,
                class_id=class_.id,
                class_name=class_.name,
            )
        )
        return self._to_response(class_)

    async def delete_class(self, ctx: RequestContext, class_id: str) -> ClassDeleteResponse:
        """Delete a class and everything that hangs off it.

        In one transaction: the class's assignments and their submissions,
        its learning materials, and the class id on every enrolled student.
        Subjects a student inherited from the class are kept.

        Args:
            ctx: Request context of the acting admin.
            class_id: Class identifier.

        Returns:
            Counts of what was removed.

        Raises:
            ClassNotFoundError: If class not found.
        """
        ctx.require_admin()
        class_ = await self._get_class(ctx, class_id)
        class_name = class_.name

        assignment_ids = list(
            (
                await self.db.execute(
                    select(Assignment.id).where(Assignment.class_id == class_id)
                )
            ).scalars()
        )

        deleted_submissions = 0
        if assignment_ids:
            result = await self.db.execute(
                delete(Submission).where(Submission.assignment_id.in_(assignment_ids))
            )
            deleted_submissions = result.rowcount or 0
            await self.db.execute(delete(Assignment).where(Assignment.id.in_(assignment_ids)))

        result = await self.db.execute(
            delete(LearningMaterial).where(LearningMaterial.class_id == class_id)
        )
        deleted_materials = result.rowcount or 0

        removed_student_ids: list[str] = []
        if class_.student_ids:
            students = await self.db.execute(
                select(User).where(User.id.in_(list(class_.student_ids)))
            )
            for student in students.scalars():
                if class_id in (student.class_ids or []):
                    student.class_ids = [c for c in student.class_ids if c != class_id]
                    removed_student_ids.append(student.id)

        await self.db.delete(class_)
        await commit_unit(self.db, "delete_class")

        logger.info(
            "Deleted class: %s by %s (assignments=%d, submissions=%d, materials=%d, students=%d)",
            class_id,
            ctx.user_id,
            len(assignment_ids),
            deleted_submissions,
            deleted_materials,
            len(removed_student_ids),
        )
        self._dispatcher.dispatch(
            ClassDeleted(
                school_id=ctx.school_id,
                actor_id=ctx.user_id,
                actor_name=ctx.display_name,
                class_id=class_id,
                class_name=class_name,
                removed_student_ids=tuple(removed_student_ids),
            )
        )
        return ClassDeleteResponse(
            class_id=class_id,
            removed_student_ids=removed_student_ids,
            deleted_assignments=len(assignment_ids),
            deleted_submissions=deleted_submissions,
            deleted_materials=deleted_materials,
        )

    async def regenerate_invite_code(
        self, ctx: RequestContext, class_id: str
    ) -> InviteCodeResponse:
        """Replace a class's invite code. The old code stops working.

        Args:
            ctx: Request context of the acting admin.
            class_id: Class identifier.

        Returns:
            The new invite code.

        Raises:
            ClassNotFoundError: If class not found.
        """
        ctx.require_admin()
        class_ = await self._get_class(ctx, class_id)

        class_.invite_code = await self._unique_invite_code()
        await commit_unit(self.db, "regenerate_invite_code")

        logger.info("Regenerated invite code for class %s", class_id)
        self._dispatcher.dispatch(
            InviteCodeRegenerated(
                school_id=ctx.school_id,
                actor_id=ctx.user_id,
                actor_name=ctx.display_name,
                class_id=class_.id,
                class_name=class_.name,
                invite_code=class_.invite_code,
            )
        )
        return InviteCodeResponse(class_id=class_.id, invite_code=class_.invite_code)

    async def get_class(self, ctx: RequestContext, class_id: str) -> ClassResponse:
        """Get a class by ID.

        Raises:
            ClassNotFoundError: If class not found in the actor's school.
        """
        return self._to_response(await self._get_class(ctx, class_id))

    async def list_by_school(self, school_id: str) -> list[ClassResponse]:
        """List all classes of a school ordered by name."""
        result = await self.db.execute(
            select(Class).where(Class.school_id == school_id).order_by(Class.name)
        )
        return [self._to_response(c) for c in result.scalars()]

    async def list_by_teacher(self, school_id: str, teacher_id: str) -> list[ClassResponse]:
        """List the classes owned by a teacher."""
        result = await self.db.execute(
            select(Class)
            .where(Class.school_id == school_id, Class.teacher_id == teacher_id)
            .order_by(Class.name)
        )
        return [self._to_response(c) for c in result.scalars()]

    async def _get_class(self, ctx: RequestContext, class_id: str) -> Class:
        """Get class in the actor's school or raise."""
        class_ = await self.db.get(Class, class_id)
        if class_ is None or class_.school_id != ctx.school_id:
            raise ClassNotFoundError(f"Class {class_id} not found")
        return class_

    async def _check_teacher(self, school_id: str, teacher_id: str) -> None:
        """Verify teacher_id names staff of the school."""
        teacher = await self.db.get(User, teacher_id)
        if (
            teacher is None
            or teacher.school_id != school_id
            or teacher.role not in (UserRole.TEACHER.value, UserRole.ADMIN.value)
        ):
            raise InvalidTeacherError(f"User {teacher_id} is not a teacher of this school")

    async def _unique_invite_code(self) -> str:
        """Generate an invite code not used by any class."""
        for _ in range(_MAX_CODE_ATTEMPTS):
            code = generate_invite_code()
            taken = await self.db.scalar(
                select(func.count()).select_from(Class).where(Class.invite_code == code)
            )
            if not taken:
                return code
        raise ClassServiceError("Could not generate a unique invite code")

    def _to_response(self, class_: Class) -> ClassResponse:
        """Convert class model to response."""
        return ClassResponse.model_validate(class_)
