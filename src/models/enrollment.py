# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment request and response models."""

from pydantic import BaseModel, Field


class EnrollStudentRequest(BaseModel):
    """Request to add a student to a class roster."""

    student_id: str


class JoinClassRequest(BaseModel):
    """Request from a student to join a class by invite code."""

    invite_code: str = Field(..., min_length=1, max_length=20)


class EnrollmentResponse(BaseModel):
    """Outcome of an enroll or remove operation.

    changed is False when the operation was a no-op (already enrolled,
    or not a member).
    """

    class_id: str
    student_id: str
    changed: bool
    subject_ids: list[str]
    class_ids: list[str]


class RosterStudent(BaseModel):
    """A student as listed on a roster."""

    id: str
    display_name: str
    email: str | None = None
    status: str


class RosterResponse(BaseModel):
    """Students on, or eligible for, a class roster."""

    class_id: str
    class_name: str
    items: list[RosterStudent]
    total: int
