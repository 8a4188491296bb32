# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Handler table mapping each transition event to its derived effects.

A handler turns one event into an EffectPlan: the activity-feed entry to
append and the notifications to deliver. Handlers only read; the
dispatcher performs the writes. Recipient lookups that need the database
(class rosters, linked guardians) go through RecipientDirectory.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models.tenant.school import Class
from src.infrastructure.database.models.tenant.user import User, UserRole
from src.infrastructure.events.types import (
    AssignmentCreated,
    AssignmentDeleted,
    AssignmentUpdated,
    ClassCreated,
    ClassDeleted,
    ClassUpdated,
    ExamPeriodCreated,
    ExamPeriodFinalized,
    ExamPeriodUpdated,
    InviteCodeRegenerated,
    StudentEnrolled,
    StudentRemoved,
    SubmissionGraded,
    SubmissionReceived,
    TransitionEvent,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivityDraft:
    """Activity-feed entry to append."""

    message: str
    class_id: str | None = None
    link: str | None = None
    target_user_id: str | None = None
    target_user_name: str | None = None


@dataclass(frozen=True)
class NotificationDraft:
    """Inbox message for one recipient."""

    user_id: str
    message: str
    link: str | None = None


@dataclass
class EffectPlan:
    """Everything one event should produce.

    Attributes:
        activity: Activity-feed entry (always present).
        notifications: Inbox messages, at most one per recipient.
    """

    activity: ActivityDraft
    notifications: list[NotificationDraft] = field(default_factory=list)

    def notify(self, user_ids: list[str], message: str, link: str | None = None) -> None:
        """Queue the same message for several recipients, skipping duplicates."""
        seen = {n.user_id for n in self.notifications}
        for user_id in user_ids:
            if user_id and user_id not in seen:
                self.notifications.append(NotificationDraft(user_id, message, link))
                seen.add(user_id)


class RecipientDirectory:
    """Read-only recipient lookups used by handlers.

    Attributes:
        session: Session owned by the dispatcher for this event.
        school_id: School the event belongs to; all lookups filter on it.
    """

    def __init__(self, session: AsyncSession, school_id: str) -> None:
        self.session = session
        self.school_id = school_id

    async def roster(self, class_id: str) -> list[str]:
        """Student ids currently on a class roster."""
        result = await self.session.execute(
            select(Class.student_ids).where(
                Class.id == class_id,
                Class.school_id == self.school_id,
            )
        )
        student_ids = result.scalar_one_or_none()
        return list(student_ids or [])

    async def students_in_classes(self, class_ids: list[str]) -> list[str]:
        """Distinct student ids across several rosters, in roster order."""
        if not class_ids:
            return []
        result = await self.session.execute(
            select(Class.student_ids).where(
                Class.id.in_(class_ids),
                Class.school_id == self.school_id,
            )
        )
        ordered: dict[str, None] = {}
        for student_ids in result.scalars().all():
            for student_id in student_ids or []:
                ordered.setdefault(student_id, None)
        return list(ordered)

    async def guardians_of(self, student_ids: list[str]) -> list[str]:
        """Parent accounts linked to any of the given students."""
        if not student_ids:
            return []
        result = await self.session.execute(
            select(User.id).where(
                User.school_id == self.school_id,
                User.role == UserRole.PARENT.value,
                User.child_student_id.in_(student_ids),
            )
        )
        return list(result.scalars().all())


EffectHandler = Callable[[TransitionEvent, RecipientDirectory], Awaitable[EffectPlan]]


async def on_class_created(event: ClassCreated, directory: RecipientDirectory) -> EffectPlan:
    return EffectPlan(
        ActivityDraft(
            message=f'{event.actor_name} created class "{event.class_name}".',
            class_id=event.class_id,
            link=f"/admin/classes/{event.class_id}",
        )
    )


async def on_class_updated(event: ClassUpdated, directory: RecipientDirectory) -> EffectPlan:
    return EffectPlan(
        ActivityDraft(
            message=f'{event.actor_name} updated class "{event.class_name}".',
            class_id=event.class_id,
            link=f"/admin/classes/{event.class_id}",
        )
    )


async def on_class_deleted(event: ClassDeleted, directory: RecipientDirectory) -> EffectPlan:
    # The class row is gone; the feed entry stays school-wide.
    return EffectPlan(
        ActivityDraft(
            message=(
                f'{event.actor_name} deleted class "{event.class_name}" '
                f"({len(event.removed_student_ids)} students unenrolled)."
            ),
            link="/admin/classes",
        )
    )


async def on_invite_code_regenerated(
    event: InviteCodeRegenerated, directory: RecipientDirectory
) -> EffectPlan:
    return EffectPlan(
        ActivityDraft(
            message=f'{event.actor_name} regenerated the invite code for "{event.class_name}".',
            class_id=event.class_id,
            link=f"/admin/classes/{event.class_id}",
        )
    )


async def on_student_enrolled(
    event: StudentEnrolled, directory: RecipientDirectory
) -> EffectPlan:
    if event.via_invite_code:
        plan = EffectPlan(
            ActivityDraft(
                message=f'{event.student_name} joined "{event.class_name}" with an invite code.',
                class_id=event.class_id,
                link=f"/teacher/classes/{event.class_id}",
                target_user_id=event.student_id,
                target_user_name=event.student_name,
            )
        )
        if event.teacher_id:
            plan.notify(
                [event.teacher_id],
                f'{event.student_name} joined your class "{event.class_name}".',
                f"/teacher/classes/{event.class_id}",
            )
        return plan

    plan = EffectPlan(
        ActivityDraft(
            message=f'{event.actor_name} added {event.student_name} to "{event.class_name}".',
            class_id=event.class_id,
            link=f"/admin/classes/{event.class_id}",
            target_user_id=event.student_id,
            target_user_name=event.student_name,
        )
    )
    plan.notify(
        [event.student_id],
        f'You have been enrolled in "{event.class_name}".',
        f"/student/classes/{event.class_id}",
    )
    return plan


async def on_student_removed(
    event: StudentRemoved, directory: RecipientDirectory
) -> EffectPlan:
    return EffectPlan(
        ActivityDraft(
            message=f'{event.actor_name} removed {event.student_name} from "{event.class_name}".',
            class_id=event.class_id,
            link=f"/admin/classes/{event.class_id}",
            target_user_id=event.student_id,
            target_user_name=event.student_name,
        )
    )


async def on_assignment_created(
    event: AssignmentCreated, directory: RecipientDirectory
) -> EffectPlan:
    link = f"/student/assignments/{event.assignment_id}"
    plan = EffectPlan(
        ActivityDraft(
            message=f'{event.actor_name} posted assignment "{event.title}" for "{event.class_name}".',
            class_id=event.class_id,
            link=link,
        )
    )
    plan.notify(
        await directory.roster(event.class_id),
        f'New assignment "{event.title}" has been posted for {event.class_name}.',
        link,
    )
    return plan


async def on_assignment_updated(
    event: AssignmentUpdated, directory: RecipientDirectory
) -> EffectPlan:
    link = f"/student/assignments/{event.assignment_id}"
    plan = EffectPlan(
        ActivityDraft(
            message=f'{event.actor_name} updated assignment "{event.title}".',
            class_id=event.class_id,
            link=link,
        )
    )
    plan.notify(
        await directory.roster(event.class_id),
        f'Assignment "{event.title}" in {event.class_name} has been updated.',
        link,
    )
    return plan


async def on_assignment_deleted(
    event: AssignmentDeleted, directory: RecipientDirectory
) -> EffectPlan:
    return EffectPlan(
        ActivityDraft(
            message=f'{event.actor_name} deleted assignment "{event.title}".',
            class_id=event.class_id,
            link=f"/teacher/classes/{event.class_id}",
        )
    )


async def on_submission_received(
    event: SubmissionReceived, directory: RecipientDirectory
) -> EffectPlan:
    verb = "resubmitted" if event.is_resubmission else "submitted"
    link = f"/teacher/assignments/{event.assignment_id}/submissions"
    plan = EffectPlan(
        ActivityDraft(
            message=f'{event.student_name} {verb} "{event.assignment_title}" ({event.status}).',
            class_id=event.class_id,
            link=link,
            target_user_id=event.student_id,
            target_user_name=event.student_name,
        )
    )
    plan.notify(
        [event.teacher_id],
        f'{event.student_name} {verb} work for "{event.assignment_title}".',
        link,
    )
    return plan


async def on_submission_graded(
    event: SubmissionGraded, directory: RecipientDirectory
) -> EffectPlan:
    plan = EffectPlan(
        ActivityDraft(
            message=f'{event.actor_name} graded a submission for "{event.assignment_title}".',
            class_id=event.class_id,
            link=f"/teacher/assignments/{event.assignment_id}/submissions",
            target_user_id=event.student_id,
        )
    )
    plan.notify(
        [event.student_id],
        f'Your submission for "{event.assignment_title}" has been graded: {event.grade}.',
        f"/student/assignments/{event.assignment_id}",
    )
    plan.notify(
        await directory.guardians_of([event.student_id]),
        f'Your child\'s submission for "{event.assignment_title}" has been graded: {event.grade}.',
        "/parent/assignments",
    )
    return plan


async def on_exam_period_created(
    event: ExamPeriodCreated, directory: RecipientDirectory
) -> EffectPlan:
    return EffectPlan(
        ActivityDraft(
            message=(
                f'{event.actor_name} created exam period "{event.name}" '
                f"for {len(event.assigned_class_ids)} classes."
            ),
            link=f"/admin/exams/{event.exam_period_id}",
        )
    )


async def on_exam_period_updated(
    event: ExamPeriodUpdated, directory: RecipientDirectory
) -> EffectPlan:
    return EffectPlan(
        ActivityDraft(
            message=f'{event.actor_name} updated exam period "{event.name}" ({event.status}).',
            link=f"/admin/exams/{event.exam_period_id}",
        )
    )


async def on_exam_period_finalized(
    event: ExamPeriodFinalized, directory: RecipientDirectory
) -> EffectPlan:
    plan = EffectPlan(
        ActivityDraft(
            message=f'{event.actor_name} finalized exam period "{event.name}".',
            link=f"/admin/exams/{event.exam_period_id}",
        )
    )
    students = await directory.students_in_classes(list(event.assigned_class_ids))
    plan.notify(
        students,
        f'Results for "{event.name}" are now available.',
        "/student/results",
    )
    plan.notify(
        await directory.guardians_of(students),
        f'Your child\'s results for "{event.name}" are now available.',
        "/parent/results",
    )
    return plan


HANDLERS: dict[type[TransitionEvent], EffectHandler] = {
    ClassCreated: on_class_created,
    ClassUpdated: on_class_updated,
    ClassDeleted: on_class_deleted,
    InviteCodeRegenerated: on_invite_code_regenerated,
    StudentEnrolled: on_student_enrolled,
    StudentRemoved: on_student_removed,
    AssignmentCreated: on_assignment_created,
    AssignmentUpdated: on_assignment_updated,
    AssignmentDeleted: on_assignment_deleted,
    SubmissionReceived: on_submission_received,
    SubmissionGraded: on_submission_graded,
    ExamPeriodCreated: on_exam_period_created,
    ExamPeriodUpdated: on_exam_period_updated,
    ExamPeriodFinalized: on_exam_period_finalized,
}
