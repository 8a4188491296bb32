# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Submission service implementing the submission lifecycle.

One submission row exists per (assignment, student). Status moves:

    [none]     --submit on time-->   submitted
    [none]     --submit late-->      late
    submitted  --resubmit on time--> submitted
    submitted  --resubmit late-->    late
    late       --resubmit-->         late
    submitted|late --grade-->        graded
    graded     --resubmit-->         graded (grade and feedback kept)

The assignment's total_submissions counter is incremented in SQL in the
same commit as the first insert for a student, and never otherwise.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select, update
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
    SubmissionFormat,
    SubmissionStatus,
)
from src.infrastructure.database.models.tenant.user import User
from src.infrastructure.events import (
    EffectDispatcher,
    SubmissionGraded,
    SubmissionReceived,
    get_dispatcher,
)
from src.models.submission import SubmissionResponse, SubmitResult
from src.utils.datetime import Clock, ensure_utc, is_past, utc_now

logger = logging.getLogger(__name__)


class SubmissionServiceError(Exception):
    """Base exception for submission service errors."""

    pass


class AssignmentNotFoundError(SubmissionServiceError, NotFoundError):
    """Raised when the assignment being submitted to does not exist."""

    pass


class SubmissionNotFoundError(SubmissionServiceError, NotFoundError):
    """Raised when submission is not found."""

    pass


class FormatNotAllowedError(SubmissionServiceError, ValidationFailureError):
    """Raised when the submission format is not allowed by the assignment."""

    pass


class NotStudentError(SubmissionServiceError, UnauthorizedError):
    """Raised when a non-student tries to submit."""

    pass


class NotGraderError(SubmissionServiceError, UnauthorizedError):
    """Raised when a non-staff user tries to grade."""

    pass


def next_status(current: str | None, is_late: bool) -> SubmissionStatus:
    """Status after a submit, given the stored status (None if no row).

    Args:
        current: Stored status value, or None for a first submission.
        is_late: Whether the submit happens after the deadline.

    Returns:
        The status to store.
    """
    if current == SubmissionStatus.GRADED.value:
        return SubmissionStatus.GRADED
    if is_late or current == SubmissionStatus.LATE.value:
        return SubmissionStatus.LATE
    return SubmissionStatus.SUBMITTED


class SubmissionService:
    """Service for student submissions and grading.

    Attributes:
        db: Async database session.
    """

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: EffectDispatcher | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize submission service.

        Args:
            db: Async database session.
            dispatcher: Effect dispatcher; defaults to the process-wide one.
            clock: Source of the current time used for lateness.
        """
        self.db = db
        self._dispatcher = dispatcher or get_dispatcher()
        self._clock = clock

    async def submit(
        self,
        ctx: RequestContext,
        assignment_id: str,
        content: str,
        submission_format: SubmissionFormat | str,
        original_file_name: str | None = None,
    ) -> SubmitResult:
        """Submit or resubmit work for an assignment as the acting student.

        Args:
            ctx: Request context of the submitting student.
            assignment_id: Assignment identifier.
            content: Text, or a link / storage URI for file formats.
            submission_format: How the work is handed in.
            original_file_name: Uploaded file's original name.

        Returns:
            SubmitResult with the stored status. existing_grade is set when
            the submission had already been graded.

        Raises:
            NotStudentError: If the actor is not a student.
            AssignmentNotFoundError: If the assignment does not exist.
            FormatNotAllowedError: If the format is not allowed.
        """
        if not ctx.is_student:
            raise NotStudentError("Only students can submit work")

        assignment = await self.db.get(Assignment, assignment_id)
        if assignment is None or assignment.school_id != ctx.school_id:
            raise AssignmentNotFoundError(f"Assignment {assignment_id} not found")

        try:
            fmt = SubmissionFormat(submission_format).value
        except ValueError as e:
            raise FormatNotAllowedError(f"Unknown submission format: {submission_format}") from e
        if fmt not in (assignment.allowed_formats or []):
            raise FormatNotAllowedError(
                f"Format {fmt} is not allowed for assignment {assignment_id}"
            )

        existing = await self._find(assignment_id, ctx.user_id)
        now = self._clock()
        is_late = is_past(assignment.deadline, now)
        status = next_status(existing.status if existing else None, is_late)

        if existing is None:
            submission = Submission(
                school_id=assignment.school_id,
                assignment_id=assignment.id,
                class_id=assignment.class_id,
                student_id=ctx.user_id,
                submitted_at=now,
                content=content,
                submission_format=fmt,
                original_file_name=original_file_name,
                status=status.value,
            )
            self.db.add(submission)
            await self.db.execute(
                update(Assignment)
                .where(Assignment.id == assignment.id)
                .values(total_submissions=Assignment.total_submissions + 1)
            )
            existing_grade = None
        else:
            submission = existing
            existing_grade = existing.grade
            submission.content = content
            submission.submission_format = fmt
            submission.original_file_name = original_file_name
            submission.submitted_at = now
            submission.status = status.value

        await commit_unit(self.db, "submit_assignment")

        logger.info(
            "Submission %s for assignment %s by %s: %s (new=%s)",
            submission.id,
            assignment_id,
            ctx.user_id,
            status.value,
            existing is None,
        )
        self._dispatcher.dispatch(
            SubmissionReceived(
                school_id=assignment.school_id,
                actor_id=ctx.user_id,
                actor_name=ctx.display_name,
                submission_id=submission.id,
                assignment_id=assignment.id,
                assignment_title=assignment.title,
                class_id=assignment.class_id,
                teacher_id=assignment.teacher_id,
                student_id=ctx.user_id,
                student_name=ctx.display_name,
                status=status.value,
                is_resubmission=existing is not None,
            )
        )
        return SubmitResult(
            submission_id=submission.id,
            status=status,
            existing_grade=existing_grade,
            is_new=existing is None,
        )

    async def grade(
        self,
        ctx: RequestContext,
        submission_id: str,
        grade: str,
        feedback: str | None = None,
    ) -> SubmissionResponse:
        """Grade a submission. The status becomes graded unconditionally.

        Args:
            ctx: Request context of the grading teacher or admin.
            submission_id: Submission identifier.
            grade: Free-form grade.
            feedback: Optional feedback for the student.

        Returns:
            The graded submission.

        Raises:
            NotGraderError: If the actor is not staff.
            SubmissionNotFoundError: If submission not found.
        """
        if not ctx.is_staff:
            raise NotGraderError("Only teachers and admins can grade submissions")

        submission = await self.db.get(Submission, submission_id)
        if submission is None or submission.school_id != ctx.school_id:
            raise SubmissionNotFoundError(f"Submission {submission_id} not found")

        submission.grade = grade
        submission.feedback = feedback
        submission.status = SubmissionStatus.GRADED.value
        await commit_unit(self.db, "grade_submission")
        await self.db.refresh(submission)

        assignment = await self.db.get(Assignment, submission.assignment_id)
        logger.info("Graded submission %s by %s", submission_id, ctx.user_id)
        self._dispatcher.dispatch(
            SubmissionGraded(
                school_id=submission.school_id,
                actor_id=ctx.user_id,
                actor_name=ctx.display_name,
                submission_id=submission.id,
                assignment_id=submission.assignment_id,
                assignment_title=assignment.title if assignment else "",
                class_id=submission.class_id,
                student_id=submission.student_id,
                grade=grade,
            )
        )
        return self._to_response(submission)

    async def get_for_student(
        self,
        ctx: RequestContext,
        assignment_id: str,
        student_id: str,
    ) -> SubmissionResponse | None:
        """Get a student's submission for an assignment, if any.

        Raises:
            UnauthorizedError: If a non-staff actor asks for another student.
        """
        if not ctx.is_staff and ctx.user_id != student_id:
            raise UnauthorizedError("Students can only view their own submissions")
        submission = await self._find(assignment_id, student_id)
        if submission is None or submission.school_id != ctx.school_id:
            return None
        return self._to_response(submission)

    async def list_for_assignment(
        self,
        ctx: RequestContext,
        assignment_id: str,
    ) -> list[SubmissionResponse]:
        """List all submissions of an assignment with student names.

        Raises:
            UnauthorizedError: If the actor is not staff.
        """
        ctx.require_staff()
        result = await self.db.execute(
            select(Submission, User.display_name)
            .outerjoin(User, User.id == Submission.student_id)
            .where(
                Submission.assignment_id == assignment_id,
                Submission.school_id == ctx.school_id,
            )
            .order_by(Submission.submitted_at.desc())
        )
        return [self._to_response(s, student_name=name) for s, name in result.all()]

    async def count_submissions(self, assignment_id: str) -> int:
        """Count distinct submitting students by query."""
        count = await self.db.scalar(
            select(func.count(func.distinct(Submission.student_id))).where(
                Submission.assignment_id == assignment_id
            )
        )
        return count or 0

    async def _find(self, assignment_id: str, student_id: str) -> Submission | None:
        """Find the submission for an (assignment, student) pair."""
        result = await self.db.execute(
            select(Submission).where(
                Submission.assignment_id == assignment_id,
                Submission.student_id == student_id,
            )
        )
        return result.scalar_one_or_none()

    def _to_response(
        self,
        submission: Submission,
        student_name: str | None = None,
    ) -> SubmissionResponse:
        """Convert submission model to response."""
        response = SubmissionResponse.model_validate(submission)
        return response.model_copy(
            update={
                "submitted_at": ensure_utc(submission.submitted_at),
                "student_name": student_name,
            }
        )
