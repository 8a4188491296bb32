# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Exam service."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from src.domains.common import UnauthorizedError
from src.domains.exam import (
    ClassNotInScopeError,
    ExamPeriodLockedError,
    ExamPeriodNotFoundError,
    ExamService,
    InvalidExamWindowError,
    InvalidStatusTransitionError,
    ScopeResolutionError,
    can_transition,
)
from src.infrastructure.database.models.tenant import ExamPeriodStatus, ExamScope
from src.infrastructure.events import (
    ExamPeriodCreated,
    ExamPeriodFinalized,
    ExamPeriodUpdated,
)
from src.models.exam import (
    ExamPeriodCreateRequest,
    ExamPeriodUpdateRequest,
    ExamResultRequest,
)

START = datetime(2024, 3, 11, 8, 0, tzinfo=timezone.utc)
END = datetime(2024, 3, 15, 16, 0, tzinfo=timezone.utc)


@pytest.fixture
def exam_service(db, dispatcher):
    """Create exam service with a recording dispatcher."""
    return ExamService(db=db, dispatcher=dispatcher)


def period_request(**overrides) -> ExamPeriodCreateRequest:
    data = {
        "name": "Term 1 Midterms",
        "start_date": START,
        "end_date": END,
        "scope": ExamScope.FORM_GRADE,
        "grade_label": "Form 1",
    }
    data.update(overrides)
    return ExamPeriodCreateRequest(**data)


async def advance(exam_service, ctx, period_id, *statuses):
    for status in statuses:
        await exam_service.change_status(ctx, period_id, status)


class TestCanTransition:
    """Tests for the transition table."""

    @pytest.mark.parametrize(
        ("current", "target", "allowed"),
        [
            ("upcoming", "active", True),
            ("upcoming", "grading", False),
            ("active", "grading", True),
            ("active", "upcoming", False),
            ("grading", "active", True),
            ("grading", "completed", True),
            ("completed", "grading", False),
            ("completed", "active", False),
        ],
    )
    def test_table(self, current, target, allowed):
        assert can_transition(current, target) is allowed


class TestExamPeriodCreate:
    """Tests for exam period creation."""

    @pytest.mark.asyncio
    async def test_create_resolves_scope(self, exam_service, seeded_school, dispatcher):
        """Test that form_grade scope freezes the matching main classes."""
        school = seeded_school

        result = await exam_service.create(school.ctx(school.admin), period_request())

        assert result.status == ExamPeriodStatus.UPCOMING
        assert result.grade_label == "Form 1"
        assert result.requested_class_ids == []
        assert set(result.assigned_class_ids) == {school.form_1a.id, school.form_1b.id}
        assert result.start_date == START
        event = dispatcher.of_type(ExamPeriodCreated)[0]
        assert set(event.assigned_class_ids) == set(result.assigned_class_ids)

    @pytest.mark.asyncio
    async def test_entire_school(self, exam_service, seeded_school):
        """Test that entire_school takes every main class."""
        school = seeded_school

        result = await exam_service.create(
            school.ctx(school.admin),
            period_request(scope=ExamScope.ENTIRE_SCHOOL, grade_label=None),
        )

        assert set(result.assigned_class_ids) == {
            school.form_1a.id,
            school.form_1b.id,
            school.form_2a.id,
        }
        assert result.grade_label is None

    @pytest.mark.asyncio
    async def test_inverted_window_rejected(self, exam_service, seeded_school):
        """Test that end before start is rejected."""
        school = seeded_school

        with pytest.raises(InvalidExamWindowError):
            await exam_service.create(
                school.ctx(school.admin), period_request(end_date=START - timedelta(days=1))
            )

    @pytest.mark.asyncio
    async def test_single_instant_window_allowed(self, exam_service, seeded_school):
        """Test that start equal to end is accepted."""
        school = seeded_school

        result = await exam_service.create(school.ctx(school.admin), period_request(end_date=START))

        assert result.end_date == START

    @pytest.mark.asyncio
    async def test_unknown_specific_class_rejected(self, exam_service, seeded_school):
        """Test that classes from elsewhere fail resolution."""
        school = seeded_school

        with pytest.raises(ScopeResolutionError):
            await exam_service.create(
                school.ctx(school.admin),
                period_request(scope=ExamScope.SPECIFIC_CLASSES, class_ids=["elsewhere"]),
            )

    @pytest.mark.asyncio
    async def test_teacher_cannot_create(self, exam_service, seeded_school):
        """Test that exam periods are admin-only."""
        school = seeded_school

        with pytest.raises(UnauthorizedError):
            await exam_service.create(school.ctx(school.teacher), period_request())


class TestExamPeriodUpdate:
    """Tests for updates and status changes."""

    @pytest.mark.asyncio
    async def test_update_rescopes_while_upcoming(self, exam_service, seeded_school, dispatcher):
        """Test that changing the scope re-resolves the class set."""
        school = seeded_school
        ctx = school.ctx(school.admin)
        created = await exam_service.create(ctx, period_request())

        result = await exam_service.update(
            ctx,
            created.id,
            ExamPeriodUpdateRequest(scope=ExamScope.SPECIFIC_CLASSES, class_ids=[school.form_2a.id]),
        )

        assert result.scope == ExamScope.SPECIFIC_CLASSES
        assert result.assigned_class_ids == [school.form_2a.id]
        assert result.requested_class_ids == [school.form_2a.id]
        assert result.grade_label is None
        assert len(dispatcher.of_type(ExamPeriodUpdated)) == 1

    @pytest.mark.asyncio
    async def test_rename_keeps_assigned_set(self, exam_service, seeded_school):
        """Test that an update without scope fields keeps the frozen set."""
        school = seeded_school
        ctx = school.ctx(school.admin)
        created = await exam_service.create(ctx, period_request())

        result = await exam_service.update(ctx, created.id, ExamPeriodUpdateRequest(name="Mocks"))

        assert result.name == "Mocks"
        assert result.assigned_class_ids == created.assigned_class_ids

    @pytest.mark.asyncio
    async def test_update_locked_once_active(self, exam_service, seeded_school):
        """Test that only upcoming periods can be edited."""
        school = seeded_school
        ctx = school.ctx(school.admin)
        created = await exam_service.create(ctx, period_request())
        await advance(exam_service, ctx, created.id, "active")

        with pytest.raises(ExamPeriodLockedError):
            await exam_service.update(ctx, created.id, ExamPeriodUpdateRequest(name="Late rename"))

    @pytest.mark.asyncio
    async def test_update_inverted_window_rejected(self, exam_service, seeded_school):
        """Test that the merged window is validated."""
        school = seeded_school
        ctx = school.ctx(school.admin)
        created = await exam_service.create(ctx, period_request())

        with pytest.raises(InvalidExamWindowError):
            await exam_service.update(
                ctx,
                created.id,
                ExamPeriodUpdateRequest(start_date=END + timedelta(days=1)),
            )

    @pytest.mark.asyncio
    async def test_lifecycle_to_completed(self, exam_service, seeded_school, dispatcher):
        """Test the full lifecycle, including grading back to active."""
        school = seeded_school
        ctx = school.ctx(school.admin)
        created = await exam_service.create(ctx, period_request())

        await advance(exam_service, ctx, created.id, "active", "grading", "active", "grading")
        result = await exam_service.change_status(ctx, created.id, ExamPeriodStatus.COMPLETED)

        assert result.status == ExamPeriodStatus.COMPLETED
        assert len(dispatcher.of_type(ExamPeriodUpdated)) == 4
        finalized = dispatcher.of_type(ExamPeriodFinalized)
        assert len(finalized) == 1
        assert set(finalized[0].assigned_class_ids) == set(created.assigned_class_ids)

    @pytest.mark.asyncio
    async def test_completed_is_final(self, exam_service, seeded_school):
        """Test that completed periods cannot move."""
        school = seeded_school
        ctx = school.ctx(school.admin)
        created = await exam_service.create(ctx, period_request())
        await advance(exam_service, ctx, created.id, "active", "grading", "completed")

        with pytest.raises(InvalidStatusTransitionError):
            await exam_service.change_status(ctx, created.id, "grading")

    @pytest.mark.asyncio
    async def test_skipping_a_status_rejected(self, exam_service, seeded_school):
        """Test that upcoming cannot jump to completed."""
        school = seeded_school
        ctx = school.ctx(school.admin)
        created = await exam_service.create(ctx, period_request())

        with pytest.raises(InvalidStatusTransitionError):
            await exam_service.change_status(ctx, created.id, "completed")

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, exam_service, seeded_school):
        """Test that an unknown status is a transition error."""
        school = seeded_school
        ctx = school.ctx(school.admin)
        created = await exam_service.create(ctx, period_request())

        with pytest.raises(InvalidStatusTransitionError):
            await exam_service.change_status(ctx, created.id, "postponed")


class TestExamResults:
    """Tests for recording and listing results."""

    @pytest_asyncio.fixture
    async def period_id(self, exam_service, seeded_school, db):
        """A Form 1 period with Amani and Baraka on the Form 1A roster."""
        school = seeded_school
        school.form_1a.student_ids = [school.students[0].id, school.students[1].id]
        await db.commit()
        created = await exam_service.create(school.ctx(school.admin), period_request())
        return created.id

    def result_request(self, school, student, marks="72") -> ExamResultRequest:
        return ExamResultRequest(
            class_id=school.form_1a.id,
            subject_id=school.math_id,
            student_id=student.id,
            marks=marks,
        )

    @pytest.mark.asyncio
    async def test_record_and_overwrite(self, exam_service, seeded_school, period_id):
        """Test that recording twice keeps one row with the latest marks."""
        school = seeded_school
        ctx = school.ctx(school.teacher)
        student = school.students[0]

        first = await exam_service.record_result(ctx, period_id, self.result_request(school, student))
        second = await exam_service.record_result(
            ctx, period_id, self.result_request(school, student, marks="80")
        )

        assert second.id == first.id
        assert second.marks == "80"
        results = await exam_service.list_results(ctx, period_id)
        assert len(results) == 1

    @pytest.mark.asyncio
    async def test_class_outside_scope_rejected(self, exam_service, seeded_school, period_id):
        """Test that results need a class in the assigned set."""
        school = seeded_school
        request = ExamResultRequest(
            class_id=school.form_2a.id,
            subject_id=school.english_id,
            student_id=school.students[0].id,
            marks="60",
        )

        with pytest.raises(ClassNotInScopeError):
            await exam_service.record_result(school.ctx(school.teacher), period_id, request)

    @pytest.mark.asyncio
    async def test_student_not_on_roster_rejected(self, exam_service, seeded_school, period_id):
        """Test that results need the student on the class roster."""
        school = seeded_school

        with pytest.raises(ClassNotInScopeError):
            await exam_service.record_result(
                school.ctx(school.teacher),
                period_id,
                self.result_request(school, school.students[2]),
            )

    @pytest.mark.asyncio
    async def test_completed_period_locks_results(self, exam_service, seeded_school, period_id):
        """Test that a completed period accepts no more results."""
        school = seeded_school
        await advance(
            exam_service, school.ctx(school.admin), period_id, "active", "grading", "completed"
        )

        with pytest.raises(ExamPeriodLockedError):
            await exam_service.record_result(
                school.ctx(school.teacher),
                period_id,
                self.result_request(school, school.students[0]),
            )

    @pytest.mark.asyncio
    async def test_students_see_only_their_results(self, exam_service, seeded_school, period_id):
        """Test that a student listing is filtered to the student."""
        school = seeded_school
        ctx = school.ctx(school.teacher)
        for student in school.students[:2]:
            await exam_service.record_result(ctx, period_id, self.result_request(school, student))

        staff_view = await exam_service.list_results(ctx, period_id, class_id=school.form_1a.id)
        student_view = await exam_service.list_results(school.ctx(school.students[1]), period_id)

        assert len(staff_view) == 2
        assert [r.student_id for r in student_view] == [school.students[1].id]

    @pytest.mark.asyncio
    async def test_parents_see_only_their_childs_results(
        self, exam_service, seeded_school, period_id
    ):
        """Test that a parent listing is filtered to the linked child."""
        school = seeded_school
        ctx = school.ctx(school.teacher)
        for student in school.students[:2]:
            await exam_service.record_result(ctx, period_id, self.result_request(school, student))

        parent_view = await exam_service.list_results(school.ctx(school.parent), period_id)

        assert [r.student_id for r in parent_view] == [school.students[0].id]

    @pytest.mark.asyncio
    async def test_unlinked_parent_sees_nothing(self, exam_service, seeded_school, period_id, db):
        """Test that a parent without a linked child gets no results."""
        school = seeded_school
        await exam_service.record_result(
            school.ctx(school.teacher), period_id, self.result_request(school, school.students[0])
        )
        school.parent.child_student_id = None
        await db.commit()

        assert await exam_service.list_results(school.ctx(school.parent), period_id) == []

    @pytest.mark.asyncio
    async def test_unknown_period(self, exam_service, seeded_school):
        """Test recording against a missing period."""
        school = seeded_school

        with pytest.raises(ExamPeriodNotFoundError):
            await exam_service.record_result(
                school.ctx(school.teacher),
                "missing",
                self.result_request(school, school.students[0]),
            )
