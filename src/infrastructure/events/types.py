# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Transition events emitted by the domain services.

Each committed state change is described by exactly one frozen event
object. The set is closed: TRANSITION_EVENTS lists every event class and
the dispatcher refuses to start unless each has a handler.

The event_type string of each class doubles as the activity type stored
in the activity feed and as the notification type shown to users.

Adding a new event:
1. Add the type constant to EventTypes
2. Declare the dataclass here and add it to TRANSITION_EVENTS
3. Register a handler in src.infrastructure.events.handlers
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar

from src.utils.datetime import utc_now


class EventTypes:
    """All transition event types organized by domain."""

    class Classes:
        """Class registry events."""

        CREATED = "class_created"
        UPDATED = "class_updated"
        DELETED = "class_deleted"
        INVITE_CODE_REGENERATED = "invite_code_regenerated"

    class Enrollment:
        """Roster events."""

        STUDENT_JOINED = "student_joined_class"
        STUDENT_REMOVED = "student_removed_from_class"

    class Assignment:
        """Assignment registry events."""

        CREATED = "assignment_created"
        UPDATED = "assignment_updated"
        DELETED = "assignment_deleted"

    class Submission:
        """Submission state machine events."""

        RECEIVED = "submission_received"
        GRADED = "submission_graded"

    class ExamPeriod:
        """Exam period lifecycle events."""

        CREATED = "exam_period_created"
        UPDATED = "exam_period_updated"
        FINALIZED = "exam_period_finalized"


@dataclass(frozen=True)
class TransitionEvent:
    """Fields shared by every transition event.

    Attributes:
        school_id: School the transition happened in.
        actor_id: User who caused it.
        actor_name: Display name of that user.
        occurred_at: Commit time of the transition.
    """

    event_type: ClassVar[str] = ""

    school_id: str
    actor_id: str | None
    actor_name: str | None
    occurred_at: datetime = field(default_factory=utc_now, kw_only=True)


@dataclass(frozen=True)
class ClassCreated(TransitionEvent):
    event_type: ClassVar[str] = EventTypes.Classes.CREATED

    class_id: str
    class_name: str


@dataclass(frozen=True)
class ClassUpdated(TransitionEvent):
    event_type: ClassVar[str] = EventTypes.Classes.UPDATED

    class_id: str
    class_name: str


@dataclass(frozen=True)
class ClassDeleted(TransitionEvent):
    event_type: ClassVar[str] = EventTypes.Classes.DELETED

    class_id: str
    class_name: str
    removed_student_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class InviteCodeRegenerated(TransitionEvent):
    event_type: ClassVar[str] = EventTypes.Classes.INVITE_CODE_REGENERATED

    class_id: str
    class_name: str
    invite_code: str


@dataclass(frozen=True)
class StudentEnrolled(TransitionEvent):
    """A student was added to a roster.

    via_invite_code distinguishes a student joining on their own (the
    teacher is told) from staff enrolling them (the student is told).
    """

    event_type: ClassVar[str] = EventTypes.Enrollment.STUDENT_JOINED

    class_id: str
    class_name: str
    student_id: str
    student_name: str
    teacher_id: str | None = None
    via_invite_code: bool = False


@dataclass(frozen=True)
class StudentRemoved(TransitionEvent):
    event_type: ClassVar[str] = EventTypes.Enrollment.STUDENT_REMOVED

    class_id: str
    class_name: str
    student_id: str
    student_name: str


@dataclass(frozen=True)
class AssignmentCreated(TransitionEvent):
    event_type: ClassVar[str] = EventTypes.Assignment.CREATED

    assignment_id: str
    class_id: str
    class_name: str
    title: str
    deadline: datetime


@dataclass(frozen=True)
class AssignmentUpdated(TransitionEvent):
    event_type: ClassVar[str] = EventTypes.Assignment.UPDATED

    assignment_id: str
    class_id: str
    class_name: str
    title: str


@dataclass(frozen=True)
class AssignmentDeleted(TransitionEvent):
    event_type: ClassVar[str] = EventTypes.Assignment.DELETED

    assignment_id: str
    class_id: str
    title: str
    deleted_submissions: int = 0


@dataclass(frozen=True)
class SubmissionReceived(TransitionEvent):
    event_type: ClassVar[str] = EventTypes.Submission.RECEIVED

    submission_id: str
    assignment_id: str
    assignment_title: str
    class_id: str
    teacher_id: str
    student_id: str
    student_name: str
    status: str
    is_resubmission: bool = False


@dataclass(frozen=True)
class SubmissionGraded(TransitionEvent):
    event_type: ClassVar[str] = EventTypes.Submission.GRADED

    submission_id: str
    assignment_id: str
    assignment_title: str
    class_id: str
    student_id: str
    grade: str


@dataclass(frozen=True)
class ExamPeriodCreated(TransitionEvent):
    event_type: ClassVar[str] = EventTypes.ExamPeriod.CREATED

    exam_period_id: str
    name: str
    assigned_class_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExamPeriodUpdated(TransitionEvent):
    event_type: ClassVar[str] = EventTypes.ExamPeriod.UPDATED

    exam_period_id: str
    name: str
    status: str


@dataclass(frozen=True)
class ExamPeriodFinalized(TransitionEvent):
    event_type: ClassVar[str] = EventTypes.ExamPeriod.FINALIZED

    exam_period_id: str
    name: str
    assigned_class_ids: tuple[str, ...] = ()


TRANSITION_EVENTS: tuple[type[TransitionEvent], ...] = (
    ClassCreated,
    ClassUpdated,
    ClassDeleted,
    InviteCodeRegenerated,
    StudentEnrolled,
    StudentRemoved,
    AssignmentCreated,
    AssignmentUpdated,
    AssignmentDeleted,
    SubmissionReceived,
    SubmissionGraded,
    ExamPeriodCreated,
    ExamPeriodUpdated,
    ExamPeriodFinalized,
)
