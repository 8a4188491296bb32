# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the derived-effects dispatcher."""

import pytest
from sqlalchemy import select

from src.core.config.settings import SMTPSettings
from src.infrastructure.database.models.tenant import Activity, Notification
from src.infrastructure.events import (
    HANDLERS,
    ClassCreated,
    EffectDispatcher,
    EffectPlan,
    ExamPeriodFinalized,
    StudentEnrolled,
    SubmissionGraded,
    SubmissionReceived,
)
from src.infrastructure.notifications.service import NotificationService


@pytest.fixture
def notifications() -> NotificationService:
    """In-app only notification service."""
    return NotificationService(SMTPSettings(), send_email=False)


@pytest.fixture
def effect_dispatcher(sessionmaker, notifications) -> EffectDispatcher:
    """Dispatcher writing through the test database."""
    return EffectDispatcher(lambda: sessionmaker, notifications)


async def inbox(db, user_id: str) -> list[Notification]:
    result = await db.execute(select(Notification).where(Notification.user_id == user_id))
    return list(result.scalars().all())


async def feed(db) -> list[Activity]:
    result = await db.execute(select(Activity))
    return list(result.scalars().all())


def graded_event(school) -> SubmissionGraded:
    return SubmissionGraded(
        school_id=school.school_id,
        actor_id=school.teacher.id,
        actor_name=school.teacher.display_name,
        submission_id="submission-1",
        assignment_id="assignment-1",
        assignment_title="Essay on rivers",
        class_id=school.form_1a.id,
        student_id=school.students[0].id,
        grade="85%",
    )


class TestDispatcherConstruction:
    """Tests for handler table completeness."""

    def test_missing_handler_rejected(self, sessionmaker, notifications):
        handlers = dict(HANDLERS)
        del handlers[SubmissionGraded]

        with pytest.raises(ValueError, match="SubmissionGraded"):
            EffectDispatcher(lambda: sessionmaker, notifications, handlers=handlers)

    def test_every_event_has_a_handler(self, effect_dispatcher):
        assert effect_dispatcher.get_stats()["handlers"] == len(HANDLERS)


class TestDispatcherRun:
    """Tests for effect execution."""

    @pytest.mark.asyncio
    async def test_graded_notifies_student_and_parent(
        self, effect_dispatcher, seeded_school, db
    ):
        """Test that grading writes a feed entry and two inbox messages."""
        school = seeded_school

        assert await effect_dispatcher.run(graded_event(school)) is True

        activities = await feed(db)
        assert len(activities) == 1
        assert activities[0].activity_type == "submission_graded"
        assert activities[0].class_id == school.form_1a.id
        assert activities[0].target_user_id == school.students[0].id

        student_inbox = await inbox(db, school.students[0].id)
        parent_inbox = await inbox(db, school.parent.id)
        assert len(student_inbox) == 1
        assert "85%" in student_inbox[0].message
        assert student_inbox[0].is_read is False
        assert student_inbox[0].actor_name == "Ms Achieng"
        assert len(parent_inbox) == 1
        assert parent_inbox[0].link == "/parent/assignments"

    @pytest.mark.asyncio
    async def test_unknown_recipient_dropped(self, effect_dispatcher, seeded_school, db):
        """Test that recipients outside the school get nothing."""
        school = seeded_school
        event = SubmissionReceived(
            school_id=school.school_id,
            actor_id=school.students[0].id,
            actor_name="Amani Student",
            submission_id="submission-1",
            assignment_id="assignment-1",
            assignment_title="Essay on rivers",
            class_id=school.form_1a.id,
            teacher_id="departed-teacher",
            student_id=school.students[0].id,
            student_name="Amani Student",
            status="submitted",
        )

        assert await effect_dispatcher.run(event) is True

        assert len(await feed(db)) == 1
        assert (await db.execute(select(Notification))).scalars().all() == []

    @pytest.mark.asyncio
    async def test_recipients_deduplicated(self, effect_dispatcher, seeded_school, db):
        """Test that a student in two finalized classes is notified once."""
        school = seeded_school
        student = school.students[0]
        school.form_1a.student_ids = [student.id, school.students[1].id]
        school.form_1b.student_ids = [student.id]
        await db.commit()
        event = ExamPeriodFinalized(
            school_id=school.school_id,
            actor_id=school.admin.id,
            actor_name="Grace Admin",
            exam_period_id="period-1",
            name="Term 1 Midterms",
            assigned_class_ids=(school.form_1a.id, school.form_1b.id),
        )

        assert await effect_dispatcher.run(event) is True

        assert len(await inbox(db, student.id)) == 1
        assert len(await inbox(db, school.students[1].id)) == 1
        assert len(await inbox(db, school.parent.id)) == 1
        assert await inbox(db, school.students[2].id) == []

    @pytest.mark.asyncio
    async def test_staff_enrollment_notifies_student(self, effect_dispatcher, seeded_school, db):
        """Test that staff enrollment tells the student, not the teacher."""
        school = seeded_school
        event = StudentEnrolled(
            school_id=school.school_id,
            actor_id=school.admin.id,
            actor_name="Grace Admin",
            class_id=school.form_1a.id,
            class_name="Form 1A",
            student_id=school.students[2].id,
            student_name="Chausiku Student",
            teacher_id=school.teacher.id,
        )

        assert await effect_dispatcher.run(event) is True

        assert len(await inbox(db, school.students[2].id)) == 1
        assert await inbox(db, school.teacher.id) == []

    @pytest.mark.asyncio
    async def test_handler_failure_is_isolated(self, sessionmaker, notifications, seeded_school, db):
        """Test that a failing handler is counted and nothing is written."""
        school = seeded_school

        async def broken(event, directory) -> EffectPlan:
            raise RuntimeError("directory offline")

        handlers = dict(HANDLERS)
        handlers[ClassCreated] = broken
        dispatcher = EffectDispatcher(lambda: sessionmaker, notifications, handlers=handlers)
        event = ClassCreated(
            school_id=school.school_id,
            actor_id=school.admin.id,
            actor_name="Grace Admin",
            class_id=school.form_1a.id,
            class_name="Form 1A",
        )

        assert await dispatcher.run(event) is False
        assert await dispatcher.run(graded_event(school)) is True

        stats = dispatcher.get_stats()
        assert stats["failed"] == 1
        assert stats["succeeded"] == 1
        assert [a.activity_type for a in await feed(db)] == ["submission_graded"]


class TestDispatch:
    """Tests for background scheduling."""

    @pytest.mark.asyncio
    async def test_dispatch_runs_in_background(self, effect_dispatcher, seeded_school, db):
        """Test that drain waits for scheduled effects."""
        school = seeded_school

        effect_dispatcher.dispatch(graded_event(school))
        await effect_dispatcher.drain(timeout=5)

        stats = effect_dispatcher.get_stats()
        assert stats["dispatched"] == 1
        assert stats["succeeded"] == 1
        assert stats["in_flight"] == 0
        assert len(await feed(db)) == 1

    @pytest.mark.asyncio
    async def test_disabled_dispatcher_drops_events(
        self, sessionmaker, notifications, seeded_school, db
    ):
        """Test that a disabled dispatcher schedules nothing."""
        school = seeded_school
        dispatcher = EffectDispatcher(lambda: sessionmaker, notifications, enabled=False)

        dispatcher.dispatch(graded_event(school))
        await dispatcher.drain(timeout=1)

        assert dispatcher.get_stats()["dispatched"] == 0
        assert await feed(db) == []
