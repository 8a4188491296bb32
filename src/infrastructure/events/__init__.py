# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Derived-effects infrastructure for SchoolOps.

Domain services describe each committed state change with a transition
event; the dispatcher turns it into activity-feed entries, in-app
notifications and email in the background.

Components:
- types: The closed set of transition events and their type strings
- handlers: Handler table mapping each event to an EffectPlan
- dispatcher: Background execution with failure isolation

Architecture:
    API → domain service (commit) → dispatcher.dispatch(event)
        → background task → handler → Activity / Notification rows → email
"""

from src.infrastructure.events.dispatcher import (
    EffectDispatcher,
    get_dispatcher,
    init_dispatcher,
    reset_dispatcher,
)
from src.infrastructure.events.handlers import (
    HANDLERS,
    ActivityDraft,
    EffectPlan,
    NotificationDraft,
    RecipientDirectory,
)
from src.infrastructure.events.types import (
    TRANSITION_EVENTS,
    AssignmentCreated,
    AssignmentDeleted,
    AssignmentUpdated,
    ClassCreated,
    ClassDeleted,
    ClassUpdated,
    EventTypes,
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

__all__ = [
    # Dispatcher
    "EffectDispatcher",
    "get_dispatcher",
    "init_dispatcher",
    "reset_dispatcher",
    # Handlers
    "HANDLERS",
    "ActivityDraft",
    "EffectPlan",
    "NotificationDraft",
    "RecipientDirectory",
    # Events
    "TRANSITION_EVENTS",
    "EventTypes",
    "TransitionEvent",
    "ClassCreated",
    "ClassUpdated",
    "ClassDeleted",
    "InviteCodeRegenerated",
    "StudentEnrolled",
    "StudentRemoved",
    "AssignmentCreated",
    "AssignmentUpdated",
    "AssignmentDeleted",
    "SubmissionReceived",
    "SubmissionGraded",
    "ExamPeriodCreated",
    "ExamPeriodUpdated",
    "ExamPeriodFinalized",
]
