# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment service for managing the assignment registry.

This module provides the AssignmentService class for:
- Assignment CRUD restricted to the owning teacher or an admin
- Cascading deletion of submissions
- Per-student assignment views with a live submission status
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.common import (
    NotFoundError,
    RequestContext,
    UnauthorizedError,
    ValidationFailureError,
    commit_unit,
)
from src.infrastructure.database.models.tenant.assignment import (
    Assignment,
    Submission,
    SubmissionStatus,
)
from src.infrastructure.database.models.tenant.school import Class
from src.infrastructure.events import (
    AssignmentCreated,
    AssignmentDeleted,
    AssignmentUpdated,
    EffectDispatcher,
    get_dispatcher,
)
from src.models.assignment import (
    AssignmentCreateRequest,
    AssignmentDeleteResponse,
    AssignmentResponse,
    AssignmentUpdateRequest,
    StudentAssignmentListResponse,
    StudentAssignmentView,
)
from src.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)


class AssignmentServiceError(Exception):
    """Base exception for assignment service errors."""

    pass


class AssignmentNotFoundError(AssignmentServiceError, NotFoundError):
    """Raised when assignment is not found."""

    pass


class ClassNotFoundError(AssignmentServiceError, NotFoundError):
    """Raised when class is not found."""

    pass


class NotAssignmentOwnerError(AssignmentServiceError, UnauthorizedError):
    """Raised when a teacher modifies another teacher's assignment."""

    pass


class InvalidFormatsError(AssignmentServiceError, ValidationFailureError):
    """Raised when the allowed submission format set is empty."""

    pass


class AssignmentService:
    """Service for managing assignments.

    Attributes:
        db: Async database session.
    """

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: EffectDispatcher | None = None,
    ) -> None:
        """Initialize assignment service.

        Args:
            db: Async database session.
            dispatcher: Effect dispatcher; defaults to the process-wide one.
        """
        self.db = db
        self._dispatcher = dispatcher or get_dispatcher()

    async def create(
        self,
        ctx: RequestContext,
        request: AssignmentCreateRequest,
    ) -> AssignmentResponse:
        """Create an assignment owned by the acting teacher.

        Args:
            ctx: Request context of the acting teacher or admin.
            request: Assignment data.

        Returns:
            Created assignment with a zero submission count.

        Raises:
            UnauthorizedError: If the actor is not staff.
            InvalidFormatsError: If no submission format is allowed.
            ClassNotFoundError: If the class is not in the actor's school.
        """
        ctx.require_staff()
        formats = self._normalize_formats(request.allowed_formats)
        class_ = await self._get_class(ctx.school_id, request.class_id)

        assignment = Assignment(
            school_id=ctx.school_id,
            class_id=class_.id,
            teacher_id=ctx.user_id,
            subject_id=request.subject_id or class_.subject_id,
            title=request.title.strip(),
            description=request.description,
            deadline=ensure_utc(request.deadline),
            allowed_formats=formats,
            total_submissions=0,
        )
        self.db.add(assignment)
        await commit_unit(self.db, "create_assignment")
        await self.db.refresh(assignment)

        logger.info(
            "Created assignment: %s (%s) for class %s by %s",
            assignment.title,
            assignment.id,
            class_.id,
            ctx.user_id,
        )
        self._dispatcher.dispatch(
            AssignmentCreated(
                school_id=ctx.school_id,
                actor_id=ctx.user_id,
                actor_name=ctx.display_name,
                assignment_id=assignment.id,
                class_id=class_.id,
                class_name=class_.name,
                title=assignment.title,
                deadline=ensure_utc(assignment.deadline),
            )
        )
        return self._to_response(assignment)

    async def update(
        self,
        ctx: RequestContext,
        assignment_id: str,
        request: AssignmentUpdateRequest,
    ) -> AssignmentResponse:
        """Update an assignment.

        Args:
            ctx: Request context of the owning teacher or an admin.
            assignment_id: Assignment identifier.
            request: Fields to update.

        Returns:
            Updated assignment.

        Raises:
            AssignmentNotFoundError: If assignment not found.
            NotAssignmentOwnerError: If the actor may not modify it.
            InvalidFormatsError: If allowed_formats is set to an empty list.
        """
        assignment = await self._get_assignment(ctx.school_id, assignment_id)
        self._check_can_modify(ctx, assignment)

        update_data = request.model_dump(exclude_unset=True)
        if "allowed_formats" in update_data:
            formats = self._normalize_formats(request.allowed_formats or [])
        else:
            formats = None

        if update_data.get("title") is not None:
            assignment.title = update_data["title"].strip()
        if update_data.get("description") is not None:
            assignment.description = update_data["description"]
        if update_data.get("deadline") is not None:
            assignment.deadline = ensure_utc(update_data["deadline"])
        if formats is not None:
            assignment.allowed_formats = formats
        if "subject_id" in update_data:
            assignment.subject_id = update_data["subject_id"]

        await commit_unit(self.db, "update_assignment")
        await self.db.refresh(assignment)

        class_ = await self.db.get(Class, assignment.class_id)
        logger.info("Updated assignment: %s by %s", assignment_id, ctx.user_id)
        self._dispatcher.dispatch(
            AssignmentUpdated(
                school_id=ctx.school_id,
                actor_id=ctx.user_id,
                actor_name=ctx.display_name,
                assignment_id=assignment.id,
                class_id=assignment.class_id,
                class_name=class_.name if class_ else "",
                title=assignment.title,
            )
        )
        return self._to_response(assignment)

    async def delete(
        self,
        ctx: RequestContext,
        assignment_id: str,
    ) -> AssignmentDeleteResponse:
        """Delete an assignment and all of its submissions.

        Args:
            ctx: Request context of the owning teacher or an admin.
            assignment_id: Assignment identifier.

        Returns:
            Number of submissions removed with it.

        Raises:
            AssignmentNotFoundError: If assignment not found.
            NotAssignmentOwnerError: If the actor may not delete it.
        """
        assignment = await self._get_assignment(ctx.school_id, assignment_id)
        self._check_can_modify(ctx, assignment)
        class_id = assignment.class_id
        title = assignment.title

        result = await self.db.execute(
            delete(Submission).where(Submission.assignment_id == assignment_id)
        )
        deleted_submissions = result.rowcount or 0
        await self.db.delete(assignment)
        await commit_unit(self.db, "delete_assignment")

        logger.info(
            "Deleted assignment: %s by %s (submissions=%d)",
            assignment_id,
            ctx.user_id,
            deleted_submissions,
        )
        self._dispatcher.dispatch(
            AssignmentDeleted(
                school_id=ctx.school_id,
                actor_id=ctx.user_id,
                actor_name=ctx.display_name,
                assignment_id=assignment_id,
                class_id=class_id,
                title=title,
                deleted_submissions=deleted_submissions,
            )
        )
        return AssignmentDeleteResponse(
            assignment_id=assignment_id,
            deleted_submissions=deleted_submissions,
        )

    async def get_by_id(self, ctx: RequestContext, assignment_id: str) -> AssignmentResponse:
        """Get an assignment by ID.

        Raises:
            AssignmentNotFoundError: If assignment not found.
        """
        return self._to_response(await self._get_assignment(ctx.school_id, assignment_id))

    async def list_by_teacher(
        self,
        ctx: RequestContext,
        teacher_id: str,
        class_id: str | None = None,
    ) -> list[AssignmentResponse]:
        """List a teacher's assignments, newest first, optionally for one class."""
        query = select(Assignment).where(
            Assignment.school_id == ctx.school_id,
            Assignment.teacher_id == teacher_id,
        )
        if class_id:
            query = query.where(Assignment.class_id == class_id)
        result = await self.db.execute(query.order_by(Assignment.created_at.desc()))
        return [self._to_response(a) for a in result.scalars()]

    async def list_by_class(self, ctx: RequestContext, class_id: str) -> list[AssignmentResponse]:
        """List a class's assignments by deadline."""
        result = await self.db.execute(
            select(Assignment)
            .where(Assignment.school_id == ctx.school_id, Assignment.class_id == class_id)
            .order_by(Assignment.deadline)
        )
        return [self._to_response(a) for a in result.scalars()]

    async def list_for_student(
        self,
        ctx: RequestContext,
        class_id: str,
        student_id: str,
    ) -> StudentAssignmentListResponse:
        """List a class's assignments with one student's submission status.

        The status is read from the student's submission row, or reported
        as missing when there is none.

        Args:
            ctx: Request context; a student may only view their own list.
            class_id: Class identifier.
            student_id: Student identifier.

        Returns:
            Assignments sorted by deadline, each with the student's status.

        Raises:
            UnauthorizedError: If a non-staff actor asks for another student.
        """
        if not ctx.is_staff and ctx.user_id != student_id:
            raise NotAssignmentOwnerError("Students can only view their own assignments")

        result = await self.db.execute(
            select(Assignment, Submission)
            .outerjoin(
                Submission,
                (Submission.assignment_id == Assignment.id)
                & (Submission.student_id == student_id),
            )
            .where(Assignment.school_id == ctx.school_id, Assignment.class_id == class_id)
            .order_by(Assignment.deadline)
        )

        items = []
        for assignment, submission in result.all():
            if submission is None:
                items.append(
                    StudentAssignmentView(
                        assignment=self._to_response(assignment),
                        status=SubmissionStatus.MISSING,
                    )
                )
                continue
            items.append(
                StudentAssignmentView(
                    assignment=self._to_response(assignment),
                    status=SubmissionStatus(submission.status),
                    submission_id=submission.id,
                    submitted_at=ensure_utc(submission.submitted_at),
                    grade=submission.grade,
                    feedback=submission.feedback,
                )
            )
        return StudentAssignmentListResponse(
            class_id=class_id,
            student_id=student_id,
            items=items,
        )

    def _check_can_modify(self, ctx: RequestContext, assignment: Assignment) -> None:
        """Only the owning teacher or an admin may modify an assignment."""
        if ctx.is_admin:
            return
        if not ctx.is_teacher or assignment.teacher_id != ctx.user_id:
            raise NotAssignmentOwnerError(
                f"User {ctx.user_id} cannot modify assignment {assignment.id}"
            )

    @staticmethod
    def _normalize_formats(formats: list) -> list[str]:
        """Deduplicate formats and store their values.

        Raises:
            InvalidFormatsError: If the list is empty.
        """
        values = list(dict.fromkeys(getattr(f, "value", f) for f in formats))
        if not values:
            raise InvalidFormatsError("At least one submission format must be allowed")
        return values

    async def _get_class(self, school_id: str, class_id: str) -> Class:
        """Get class in the school or raise."""
        class_ = await self.db.get(Class, class_id)
        if class_ is None or class_.school_id != school_id:
            raise ClassNotFoundError(f"Class {class_id} not found")
        return class_

    async def _get_assignment(self, school_id: str, assignment_id: str) -> Assignment:
        """Get assignment in the school or raise."""
        assignment = await self.db.get(Assignment, assignment_id)
        if assignment is None or assignment.school_id != school_id:
            raise AssignmentNotFoundError(f"Assignment {assignment_id} not found")
        return assignment

    def _to_response(self, assignment: Assignment) -> AssignmentResponse:
        """Convert assignment model to response."""
        response = AssignmentResponse.model_validate(assignment)
        return response.model_copy(update={"deadline": ensure_utc(assignment.deadline)})
