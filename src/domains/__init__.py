# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for SchoolOps.

This package contains domain services that encapsulate business logic.
Each service receives a RequestContext for the acting user and commits
one unit of work per operation before handing a transition event to the
derived-effects dispatcher.

Domains:
    common: Request context, error taxonomy, unit-of-work commit.
    auth: JWT token validation.
    class_: Class registry and invite codes.
    enrollment: Class rosters and subject inheritance.
    assignment: Assignment registry.
    submission: Submission lifecycle and grading.
    exam: Exam periods, scope resolution and results.
    notification: Inbox and activity feed.
"""
