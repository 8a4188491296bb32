# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the submission lifecycle."""

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from src.domains.common import UnauthorizedError
from src.domains.submission.service import (
    AssignmentNotFoundError,
    FormatNotAllowedError,
    NotGraderError,
    NotStudentError,
    SubmissionNotFoundError,
    SubmissionService,
    next_status,
)
from src.infrastructure.database.models.tenant import Assignment, SubmissionStatus
from src.infrastructure.events import SubmissionGraded, SubmissionReceived

DEADLINE = datetime(2024, 3, 1, 23, 59, tzinfo=timezone.utc)


@pytest.fixture
def submission_service(db, dispatcher, clock):
    """Create submission service with a pinned clock."""
    return SubmissionService(db=db, dispatcher=dispatcher, clock=clock)


@pytest_asyncio.fixture
async def assignment(db, seeded_school) -> Assignment:
    """An essay for Form 1A due 2024-03-01 23:59 UTC."""
    school = seeded_school
    assignment = Assignment(
        id="essay-1",
        school_id=school.school_id,
        class_id=school.form_1a.id,
        teacher_id=school.teacher.id,
        title="Essay on rivers",
        deadline=DEADLINE,
        allowed_formats=["text_entry", "file_link"],
        total_submissions=0,
    )
    db.add(assignment)
    await db.commit()
    return assignment


class TestNextStatus:
    """Tests for the status transition function."""

    @pytest.mark.parametrize(
        ("current", "is_late", "expected"),
        [
            (None, False, SubmissionStatus.SUBMITTED),
            (None, True, SubmissionStatus.LATE),
            ("submitted", False, SubmissionStatus.SUBMITTED),
            ("submitted", True, SubmissionStatus.LATE),
            ("late", False, SubmissionStatus.LATE),
            ("late", True, SubmissionStatus.LATE),
            ("graded", False, SubmissionStatus.GRADED),
            ("graded", True, SubmissionStatus.GRADED),
        ],
    )
    def test_transitions(self, current, is_late, expected):
        assert next_status(current, is_late) == expected


class TestSubmissionLifecycle:
    """Tests for submit, late resubmit, grade and resubmit after grading."""

    @pytest.mark.asyncio
    async def test_full_lifecycle(
        self, submission_service, seeded_school, assignment, clock, db, dispatcher
    ):
        """Test that graded stays graded and the counter counts students once."""
        school = seeded_school
        student_ctx = school.ctx(school.students[0])

        clock.now = datetime(2024, 3, 1, 20, 0, tzinfo=timezone.utc)
        first = await submission_service.submit(
            student_ctx, assignment.id, "Rivers shape valleys.", "text_entry"
        )
        assert first.status == SubmissionStatus.SUBMITTED
        assert first.is_new is True

        clock.now = datetime(2024, 3, 2, 9, 0, tzinfo=timezone.utc)
        second = await submission_service.submit(
            student_ctx, assignment.id, "Rivers shape valleys and deltas.", "text_entry"
        )
        assert second.status == SubmissionStatus.LATE
        assert second.submission_id == first.submission_id
        assert second.is_new is False

        graded = await submission_service.grade(
            school.ctx(school.teacher), first.submission_id, "85%", "Good structure"
        )
        assert graded.status == SubmissionStatus.GRADED
        assert graded.grade == "85%"

        third = await submission_service.submit(
            student_ctx, assignment.id, "https://example.com/final.pdf", "file_link"
        )
        assert third.status == SubmissionStatus.GRADED
        assert third.existing_grade == "85%"

        stored = await submission_service.get_for_student(
            student_ctx, assignment.id, school.students[0].id
        )
        assert stored.grade == "85%"
        assert stored.feedback == "Good structure"
        assert stored.content == "https://example.com/final.pdf"
        assert stored.submitted_at == datetime(2024, 3, 2, 9, 0, tzinfo=timezone.utc)

        await db.refresh(assignment)
        assert assignment.total_submissions == 1
        assert await submission_service.count_submissions(assignment.id) == 1

        received = dispatcher.of_type(SubmissionReceived)
        assert [e.is_resubmission for e in received] == [False, True, True]
        assert received[0].teacher_id == school.teacher.id
        graded_events = dispatcher.of_type(SubmissionGraded)
        assert graded_events[0].student_id == school.students[0].id

    @pytest.mark.asyncio
    async def test_regrade_overwrites_grade_and_feedback(
        self, submission_service, seeded_school, assignment, dispatcher
    ):
        """Test that grading again replaces the earlier grade and feedback."""
        school = seeded_school
        student_ctx = school.ctx(school.students[0])
        teacher_ctx = school.ctx(school.teacher)
        submitted = await submission_service.submit(
            student_ctx, assignment.id, "Rivers shape valleys.", "text_entry"
        )

        await submission_service.grade(teacher_ctx, submitted.submission_id, "85%", "A")
        regraded = await submission_service.grade(teacher_ctx, submitted.submission_id, "90%")

        assert regraded.status == SubmissionStatus.GRADED
        assert regraded.grade == "90%"
        assert regraded.feedback is None
        stored = await submission_service.get_for_student(
            student_ctx, assignment.id, school.students[0].id
        )
        assert stored.grade == "90%"
        assert stored.feedback is None
        assert stored.status == SubmissionStatus.GRADED
        assert [e.grade for e in dispatcher.of_type(SubmissionGraded)] == ["85%", "90%"]

    @pytest.mark.asyncio
    async def test_submission_at_deadline_is_on_time(
        self, submission_service, seeded_school, assignment, clock
    ):
        """Test that the deadline instant itself counts as on time."""
        school = seeded_school
        clock.now = DEADLINE

        result = await submission_service.submit(
            school.ctx(school.students[1]), assignment.id, "Done", "text_entry"
        )

        assert result.status == SubmissionStatus.SUBMITTED

    @pytest.mark.asyncio
    async def test_counter_counts_each_student(
        self, submission_service, seeded_school, assignment, db
    ):
        """Test that two students yield a count of two."""
        school = seeded_school
        for student in school.students[:2]:
            await submission_service.submit(
                school.ctx(student), assignment.id, "Work", "text_entry"
            )

        await db.refresh(assignment)
        assert assignment.total_submissions == 2
        assert await submission_service.count_submissions(assignment.id) == 2


class TestSubmissionValidation:
    """Tests for rejected submits and grades."""

    @pytest.mark.asyncio
    async def test_format_not_allowed(self, submission_service, seeded_school, assignment):
        """Test that a format outside the allowed set is rejected."""
        school = seeded_school

        with pytest.raises(FormatNotAllowedError):
            await submission_service.submit(
                school.ctx(school.students[0]), assignment.id, "s3://file", "file_upload"
            )

    @pytest.mark.asyncio
    async def test_unknown_format(self, submission_service, seeded_school, assignment):
        """Test that an unknown format string is rejected."""
        school = seeded_school

        with pytest.raises(FormatNotAllowedError):
            await submission_service.submit(
                school.ctx(school.students[0]), assignment.id, "hello", "carrier_pigeon"
            )

    @pytest.mark.asyncio
    async def test_teacher_cannot_submit(self, submission_service, seeded_school, assignment):
        """Test that only students submit."""
        school = seeded_school

        with pytest.raises(NotStudentError):
            await submission_service.submit(
                school.ctx(school.teacher), assignment.id, "Work", "text_entry"
            )

    @pytest.mark.asyncio
    async def test_unknown_assignment(self, submission_service, seeded_school):
        """Test submitting to a missing assignment."""
        school = seeded_school

        with pytest.raises(AssignmentNotFoundError):
            await submission_service.submit(
                school.ctx(school.students[0]), "missing", "Work", "text_entry"
            )

    @pytest.mark.asyncio
    async def test_student_cannot_grade(self, submission_service, seeded_school, assignment):
        """Test that students cannot grade."""
        school = seeded_school
        student_ctx = school.ctx(school.students[0])
        result = await submission_service.submit(
            student_ctx, assignment.id, "Work", "text_entry"
        )

        with pytest.raises(NotGraderError):
            await submission_service.grade(student_ctx, result.submission_id, "A+")

    @pytest.mark.asyncio
    async def test_grade_unknown_submission(self, submission_service, seeded_school):
        """Test grading a missing submission."""
        school = seeded_school

        with pytest.raises(SubmissionNotFoundError):
            await submission_service.grade(school.ctx(school.teacher), "missing", "A")


class TestSubmissionQueries:
    """Tests for read access."""

    @pytest.mark.asyncio
    async def test_student_cannot_read_classmate(
        self, submission_service, seeded_school, assignment
    ):
        """Test that students only read their own submission."""
        school = seeded_school

        with pytest.raises(UnauthorizedError):
            await submission_service.get_for_student(
                school.ctx(school.students[0]), assignment.id, school.students[1].id
            )

    @pytest.mark.asyncio
    async def test_no_submission_returns_none(
        self, submission_service, seeded_school, assignment
    ):
        """Test that a student without a row gets None."""
        school = seeded_school

        result = await submission_service.get_for_student(
            school.ctx(school.teacher), assignment.id, school.students[2].id
        )

        assert result is None

    @pytest.mark.asyncio
    async def test_list_for_assignment_includes_names(
        self, submission_service, seeded_school, assignment, clock
    ):
        """Test that the teacher listing carries student names, newest first."""
        school = seeded_school
        clock.now = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
        await submission_service.submit(
            school.ctx(school.students[0]), assignment.id, "First", "text_entry"
        )
        clock.now = datetime(2024, 3, 1, 11, 0, tzinfo=timezone.utc)
        await submission_service.submit(
            school.ctx(school.students[1]), assignment.id, "Second", "text_entry"
        )

        result = await submission_service.list_for_assignment(
            school.ctx(school.teacher), assignment.id
        )

        assert [s.student_name for s in result] == ["Baraka Student", "Amani Student"]

    @pytest.mark.asyncio
    async def test_list_for_assignment_requires_staff(
        self, submission_service, seeded_school, assignment
    ):
        """Test that students cannot list all submissions."""
        school = seeded_school

        with pytest.raises(UnauthorizedError):
            await submission_service.list_for_assignment(
                school.ctx(school.students[0]), assignment.id
            )
