# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam period service.

This module provides the ExamService class for:
- Exam period creation with the class scope resolved and frozen
- Updates while the period is upcoming
- Guarded status transitions
- Recording exam results until the period is completed
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
from src.domains.exam.scope import resolve_scope
from src.infrastructure.database.models.tenant.exam import (
    ExamPeriod,
    ExamPeriodStatus,
    ExamResult,
    ExamScope,
)
from src.infrastructure.database.models.tenant.school import Class
from src.infrastructure.database.models.tenant.user import User
from src.infrastructure.events import (
    EffectDispatcher,
    ExamPeriodCreated,
    ExamPeriodFinalized,
    ExamPeriodUpdated,
    get_dispatcher,
)
from src.models.exam import (
    ExamPeriodCreateRequest,
    ExamPeriodResponse,
    ExamPeriodUpdateRequest,
    ExamResultRequest,
    ExamResultResponse,
)
from src.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[ExamPeriodStatus, frozenset[ExamPeriodStatus]] = {
    ExamPeriodStatus.UPCOMING: frozenset({ExamPeriodStatus.ACTIVE}),
    ExamPeriodStatus.ACTIVE: frozenset({ExamPeriodStatus.GRADING}),
    ExamPeriodStatus.GRADING: frozenset({ExamPeriodStatus.ACTIVE, ExamPeriodStatus.COMPLETED}),
    ExamPeriodStatus.COMPLETED: frozenset(),
}


class ExamServiceError(Exception):
    """Base exception for exam service errors."""

    pass


class ExamPeriodNotFoundError(ExamServiceError, NotFoundError):
    """Raised when exam period is not found."""

    pass


class InvalidExamWindowError(ExamServiceError, ValidationFailureError):
    """Raised when the end date is before the start date."""

    pass


class InvalidStatusTransitionError(ExamServiceError, ValidationFailureError):
    """Raised when a status change is not allowed."""

    pass


class ExamPeriodLockedError(ExamServiceError, ValidationFailureError):
    """Raised when modifying a period that no longer accepts the change."""

    pass


class ClassNotInScopeError(ExamServiceError, ValidationFailureError):
    """Raised when recording results for a class outside the period's scope."""

    pass


def can_transition(current: ExamPeriodStatus | str, target: ExamPeriodStatus | str) -> bool:
    """Check whether an exam period may move from current to target."""
    return ExamPeriodStatus(target) in ALLOWED_TRANSITIONS[ExamPeriodStatus(current)]


class ExamService:
    """Service for managing exam periods and their results.

    Attributes:
        db: Async database session.
    """

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: EffectDispatcher | None = None,
    ) -> None:
        """Initialize exam service.

        Args:
            db: Async database session.
            dispatcher: Effect dispatcher; defaults to the process-wide one.
        """
        self.db = db
        self._dispatcher = dispatcher or get_dispatcher()

    async def create(
        self,
        ctx: RequestContext,
        request: ExamPeriodCreateRequest,
    ) -> ExamPeriodResponse:
        """Create an exam period.

        The scope is resolved against the school's current classes and the
        result is stored; later class changes do not affect it.

        Args:
            ctx: Request context of the acting admin.
            request: Exam period data.

        Returns:
            Created exam period with status upcoming.

        Raises:
            UnauthorizedError: If the actor is not an admin.
            InvalidExamWindowError: If end is before start.
            ScopeResolutionError: If the scope does not resolve.
        """
        ctx.require_admin()
        start = ensure_utc(request.start_date)
        end = ensure_utc(request.end_date)
        self._check_window(start, end)

        classes = await self._school_classes(ctx.school_id)
        assigned = resolve_scope(request.scope, classes, request.grade_label, request.class_ids)

        period = ExamPeriod(
            school_id=ctx.school_id,
            name=request.name.strip(),
            start_date=start,
            end_date=end,
            status=ExamPeriodStatus.UPCOMING.value,
            scope=request.scope.value,
            grade_label=self._scope_label(request.scope, request.grade_label),
            requested_class_ids=self._scope_ids(request.scope, request.class_ids),
            assigned_class_ids=assigned,
        )
        self.db.add(period)
        await commit_unit(self.db, "create_exam_period")
        await self.db.refresh(period)

        logger.info(
            "Created exam period: %s (%s) scope=%s classes=%d",
            period.name,
            period.id,
            period.scope,
            len(assigned),
        )
        self._dispatcher.dispatch(
            ExamPeriodCreated(
                school_id=ctx.school_id,
                actor_id=ctx.user_id,
                actor_name=ctx.display_name,
                exam_period_id=period.id,
                name=period.name,
                assigned_class_ids=tuple(assigned),
            )
        )
        return self._to_response(period)

    async def update(
        self,
        ctx: RequestContext,
        period_id: str,
        request: ExamPeriodUpdateRequest,
    ) -> ExamPeriodResponse:
        """Update an upcoming exam period.

        The scope is resolved again only if scope, grade label or class ids
        were part of the update.

        Raises:
            ExamPeriodNotFoundError: If the period is not found.
            ExamPeriodLockedError: If the period is no longer upcoming.
            InvalidExamWindowError: If the merged window is inverted.
            ScopeResolutionError: If the new scope does not resolve.
        """
        ctx.require_admin()
        period = await self._get_period(ctx.school_id, period_id)
        if period.status != ExamPeriodStatus.UPCOMING.value:
            raise ExamPeriodLockedError(
                f"Exam period {period_id} is {period.status} and can no longer be edited"
            )

        update_data = request.model_dump(exclude_unset=True)
        start = ensure_utc(update_data.get("start_date") or period.start_date)
        end = ensure_utc(update_data.get("end_date") or period.end_date)
        self._check_window(start, end)

        scope_fields = {"scope", "grade_label", "class_ids"}
        assigned = None
        if scope_fields & update_data.keys():
            scope = ExamScope(update_data.get("scope") or period.scope)
            grade_label = update_data.get("grade_label", period.grade_label)
            class_ids = update_data.get("class_ids", period.requested_class_ids)
            classes = await self._school_classes(ctx.school_id)
            assigned = resolve_scope(scope, classes, grade_label, class_ids)

        if update_data.get("name"):
            period.name = update_data["name"].strip()
        period.start_date = start
        period.end_date = end
        if assigned is not None:
            period.scope = scope.value
            period.grade_label = self._scope_label(scope, grade_label)
            period.requested_class_ids = self._scope_ids(scope, class_ids)
            period.assigned_class_ids = assigned

        await commit_unit(self.db, "update_exam_period")
        await self.db.refresh(period)

        logger.info("Updated exam period: %s by %s", period_id, ctx.user_id)
        self._dispatch_updated(ctx, period)
        return self._to_response(period)

    async def change_status(
        self,
        ctx: RequestContext,
        period_id: str,
        new_status: ExamPeriodStatus | str,
    ) -> ExamPeriodResponse:
        """Move an exam period to a new status.

        Allowed: upcoming to active, active to grading, grading to active,
        grading to completed. Completed is final.

        Raises:
            ExamPeriodNotFoundError: If the period is not found.
            InvalidStatusTransitionError: If the move is not allowed.
        """
        ctx.require_admin()
        period = await self._get_period(ctx.school_id, period_id)
        try:
            target = ExamPeriodStatus(new_status)
        except ValueError as e:
            raise InvalidStatusTransitionError(f"Unknown status: {new_status}") from e

        if not can_transition(period.status, target):
            raise InvalidStatusTransitionError(
                f"Cannot move exam period from {period.status} to {target.value}"
            )

        previous = period.status
        period.status = target.value
        await commit_unit(self.db, "change_exam_status")
        await self.db.refresh(period)

        logger.info(
            "Exam period %s status %s -> %s by %s",
            period_id,
            previous,
            target.value,
            ctx.user_id,
        )
        if target is ExamPeriodStatus.COMPLETED:
            self._dispatcher.dispatch(
                ExamPeriodFinalized(
                    school_id=ctx.school_id,
                    actor_id=ctx.user_id,
                    actor_name=ctx.display_name,
                    exam_period_id=period.id,
                    name=period.name,
                    assigned_class_ids=tuple(period.assigned_class_ids or []),
                )
            )
        else:
            self._dispatch_updated(ctx, period)
        return self._to_response(period)

    async def record_result(
        self,
        ctx: RequestContext,
        period_id: str,
        request: ExamResultRequest,
    ) -> ExamResultResponse:
        """Record or overwrite one student's marks.

        Args:
            ctx: Request context of the acting teacher or admin.
            period_id: Exam period identifier.
            request: The result to store.

        Returns:
            The stored result.

        Raises:
            ExamPeriodNotFoundError: If the period is not found.
            ExamPeriodLockedError: If the period is completed.
            ClassNotInScopeError: If the class is not sitting this period,
                or the student is not on its roster.
        """
        ctx.require_staff()
        period = await self._get_period(ctx.school_id, period_id)
        if period.is_completed:
            raise ExamPeriodLockedError(f"Exam period {period_id} is completed")
        if request.class_id not in (period.assigned_class_ids or []):
            raise ClassNotInScopeError(
                f"Class {request.class_id} is not part of exam period {period_id}"
            )
        class_ = await self.db.get(Class, request.class_id)
        if class_ is None or request.student_id not in (class_.student_ids or []):
            raise ClassNotInScopeError(
                f"Student {request.student_id} is not on the roster of class {request.class_id}"
            )

        result = await self.db.execute(
            select(ExamResult).where(
                ExamResult.exam_period_id == period_id,
                ExamResult.class_id == request.class_id,
                ExamResult.subject_id == request.subject_id,
                ExamResult.student_id == request.student_id,
            )
        )
        exam_result = result.scalar_one_or_none()
        if exam_result is None:
            exam_result = ExamResult(
                school_id=ctx.school_id,
                exam_period_id=period_id,
                class_id=request.class_id,
                subject_id=request.subject_id,
                student_id=request.student_id,
                teacher_id=ctx.user_id,
                marks=request.marks,
                remarks=request.remarks,
            )
            self.db.add(exam_result)
        else:
            exam_result.marks = request.marks
            exam_result.remarks = request.remarks
            exam_result.teacher_id = ctx.user_id

        await commit_unit(self.db, "record_exam_result")
        await self.db.refresh(exam_result)

        logger.debug(
            "Recorded exam result: period=%s class=%s subject=%s student=%s",
            period_id,
            request.class_id,
            request.subject_id,
            request.student_id,
        )
        return ExamResultResponse.model_validate(exam_result)

    async def get(self, ctx: RequestContext, period_id: str) -> ExamPeriodResponse:
        """Get an exam period by ID.

        Raises:
            ExamPeriodNotFoundError: If the period is not found.
        """
        return self._to_response(await self._get_period(ctx.school_id, period_id))

    async def list_by_school(self, school_id: str) -> list[ExamPeriodResponse]:
        """List a school's exam periods, latest start first."""
        result = await self.db.execute(
            select(ExamPeriod)
            .where(ExamPeriod.school_id == school_id)
            .order_by(ExamPeriod.start_date.desc())
        )
        return [self._to_response(p) for p in result.scalars()]

    async def list_results(
        self,
        ctx: RequestContext,
        period_id: str,
        class_id: str | None = None,
        subject_id: str | None = None,
    ) -> list[ExamResultResponse]:
        """List results of an exam period, optionally for one class and subject.

        Raises:
            ExamPeriodNotFoundError: If the period is not found.
        """
        await self._get_period(ctx.school_id, period_id)
        query = select(ExamResult).where(ExamResult.exam_period_id == period_id)
        if class_id:
            query = query.where(ExamResult.class_id == class_id)
        if subject_id:
            query = query.where(ExamResult.subject_id == subject_id)
        if not ctx.is_staff:
            student_id = await self._visible_student(ctx)
            if student_id is None:
                return []
            query = query.where(ExamResult.student_id == student_id)
        result = await self.db.execute(query.order_by(ExamResult.student_id))
        return [ExamResultResponse.model_validate(r) for r in result.scalars()]

    async def _visible_student(self, ctx: RequestContext) -> str | None:
        """Student whose results a non-staff caller may read.

        Students read their own; parents read their linked child's.
        """
        if ctx.is_student:
            return ctx.user_id
        if not ctx.is_parent:
            return None
        result = await self.db.execute(
            select(User.child_student_id).where(
                User.id == ctx.user_id,
                User.school_id == ctx.school_id,
            )
        )
        return result.scalar_one_or_none()

    def _dispatch_updated(self, ctx: RequestContext, period: ExamPeriod) -> None:
        self._dispatcher.dispatch(
            ExamPeriodUpdated(
                school_id=ctx.school_id,
                actor_id=ctx.user_id,
                actor_name=ctx.display_name,
                exam_period_id=period.id,
                name=period.name,
                status=period.status,
            )
        )

    @staticmethod
    def _check_window(start, end) -> None:
        if end < start:
            raise InvalidExamWindowError("Exam period end date is before its start date")

    @staticmethod
    def _scope_label(scope: ExamScope, grade_label: str | None) -> str | None:
        if scope is ExamScope.FORM_GRADE and grade_label:
            return grade_label.strip()
        return None

    @staticmethod
    def _scope_ids(scope: ExamScope, class_ids: list[str] | None) -> list[str]:
        if scope is ExamScope.SPECIFIC_CLASSES:
            return list(dict.fromkeys(class_ids or []))
        return []

    async def _school_classes(self, school_id: str) -> list[Class]:
        """Load the school's classes ordered by name."""
        result = await self.db.execute(
            select(Class).where(Class.school_id == school_id).order_by(Class.name)
        )
        return list(result.scalars())

    async def _get_period(self, school_id: str, period_id: str) -> ExamPeriod:
        """Get exam period in the school or raise."""
        period = await self.db.get(ExamPeriod, period_id)
        if period is None or period.school_id != school_id:
            raise ExamPeriodNotFoundError(f"Exam period {period_id} not found")
        return period

    def _to_response(self, period: ExamPeriod) -> ExamPeriodResponse:
        """Convert exam period model to response."""
        response = ExamPeriodResponse.model_validate(period)
        return response.model_copy(
            update={
                "start_date": ensure_utc(period.start_date),
                "end_date": ensure_utc(period.end_date),
            }
        )
