# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial SchoolOps schema.

Revision ID: 001_initial
Revises: None
Create Date: 2025-01-15
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _school_id() -> sa.Column:
    return sa.Column("school_id", sa.String(36), nullable=False)


def _id_list(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.JSONB,
        nullable=False,
        server_default=sa.text("'[]'::jsonb"),
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    """Create SchoolOps tables."""
    # =========================================================================
    # ORGANIZATION TABLES
    # =========================================================================

    op.create_table(
        "schools",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("invite_code", sa.String(20), nullable=True, unique=True),
        *_timestamps(),
    )

    op.create_table(
        "subjects",
        _id(),
        _school_id(),
        sa.Column("name", sa.String(200), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_subjects_school_id", "subjects", ["school_id"])

    op.create_table(
        "classes",
        _id(),
        _school_id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("teacher_id", sa.String(36), nullable=True),
        sa.Column("class_type", sa.String(20), nullable=False, server_default="main"),
        sa.Column("invite_code", sa.String(20), nullable=False, unique=True),
        _id_list("student_ids"),
        _id_list("compulsory_subject_ids"),
        sa.Column("subject_id", sa.String(36), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_classes_school_id", "classes", ["school_id"])
    op.create_index("ix_classes_teacher_id", "classes", ["teacher_id"])

    # =========================================================================
    # USERS
    # =========================================================================

    op.create_table(
        "users",
        _id(),
        _school_id(),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("display_name", sa.String(200), nullable=False, server_default=""),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column(
            "status",
            sa.String(30),
            nullable=False,
            server_default="pending_verification",
        ),
        _id_list("class_ids"),
        _id_list("subject_ids"),
        sa.Column("child_student_id", sa.String(36), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_school_id", "users", ["school_id"])
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_child_student_id", "users", ["child_student_id"])

    # =========================================================================
    # COURSEWORK
    # =========================================================================

    op.create_table(
        "assignments",
        _id(),
        _school_id(),
        sa.Column("class_id", sa.String(36), nullable=False),
        sa.Column("teacher_id", sa.String(36), nullable=False),
        sa.Column("subject_id", sa.String(36), nullable=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        _id_list("allowed_formats"),
        sa.Column("total_submissions", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_assignments_school_id", "assignments", ["school_id"])
    op.create_index("ix_assignments_class_id", "assignments", ["class_id"])
    op.create_index("ix_assignments_teacher_id", "assignments", ["teacher_id"])

    op.create_table(
        "submissions",
        _id(),
        _school_id(),
        sa.Column("assignment_id", sa.String(36), nullable=False),
        sa.Column("class_id", sa.String(36), nullable=False),
        sa.Column("student_id", sa.String(36), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("submission_format", sa.String(20), nullable=False),
        sa.Column("original_file_name", sa.String(255), nullable=True),
        sa.Column("grade", sa.String(50), nullable=True),
        sa.Column("feedback", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint(
            "assignment_id", "student_id", name="uq_submissions_assignment_student"
        ),
    )
    op.create_index("ix_submissions_school_id", "submissions", ["school_id"])
    op.create_index("ix_submissions_assignment_id", "submissions", ["assignment_id"])
    op.create_index("ix_submissions_class_id", "submissions", ["class_id"])
    op.create_index("ix_submissions_student_id", "submissions", ["student_id"])

    op.create_table(
        "learning_materials",
        _id(),
        _school_id(),
        sa.Column("class_id", sa.String(36), nullable=True),
        sa.Column("subject_id", sa.String(36), nullable=True),
        sa.Column("teacher_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("material_type", sa.String(30), nullable=False, server_default="text"),
        sa.Column("content", sa.Text, nullable=False, server_default=""),
        *_timestamps(),
    )
    op.create_index("ix_learning_materials_school_id", "learning_materials", ["school_id"])
    op.create_index("ix_learning_materials_class_id", "learning_materials", ["class_id"])

    # =========================================================================
    # EXAMS
    # =========================================================================

    op.create_table(
        "exam_periods",
        _id(),
        _school_id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="upcoming"),
        sa.Column("scope", sa.String(30), nullable=False),
        sa.Column("grade_label", sa.String(100), nullable=True),
        _id_list("requested_class_ids"),
        _id_list("assigned_class_ids"),
        *_timestamps(),
    )
    op.create_index("ix_exam_periods_school_id", "exam_periods", ["school_id"])

    op.create_table(
        "exam_results",
        _id(),
        _school_id(),
        sa.Column("exam_period_id", sa.String(36), nullable=False),
        sa.Column("class_id", sa.String(36), nullable=False),
        sa.Column("subject_id", sa.String(36), nullable=False),
        sa.Column("student_id", sa.String(36), nullable=False),
        sa.Column("teacher_id", sa.String(36), nullable=False),
        sa.Column("marks", sa.String(50), nullable=False),
        sa.Column("remarks", sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "exam_period_id",
            "class_id",
            "subject_id",
            "student_id",
            name="uq_exam_results_period_class_subject_student",
        ),
    )
    op.create_index("ix_exam_results_school_id", "exam_results", ["school_id"])
    op.create_index("ix_exam_results_exam_period_id", "exam_results", ["exam_period_id"])
    op.create_index("ix_exam_results_student_id", "exam_results", ["student_id"])

    # =========================================================================
    # DERIVED RECORDS
    # =========================================================================

    op.create_table(
        "notifications",
        _id(),
        _school_id(),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("notification_type", sa.String(50), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("link", sa.String(500), nullable=True),
        sa.Column("actor_name", sa.String(200), nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default="false"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_notifications_school_id", "notifications", ["school_id"])
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_user_read", "notifications", ["user_id", "is_read"])

    op.create_table(
        "activities",
        _id(),
        _school_id(),
        sa.Column("class_id", sa.String(36), nullable=True),
        sa.Column("actor_id", sa.String(36), nullable=True),
        sa.Column("actor_name", sa.String(200), nullable=True),
        sa.Column("target_user_id", sa.String(36), nullable=True),
        sa.Column("target_user_name", sa.String(200), nullable=True),
        sa.Column("activity_type", sa.String(50), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("link", sa.String(500), nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_activities_school_id", "activities", ["school_id"])
    op.create_index("ix_activities_class_id", "activities", ["class_id"])
    op.create_index("ix_activities_actor_id", "activities", ["actor_id"])
    op.create_index("ix_activities_target_user_id", "activities", ["target_user_id"])
    op.create_index("ix_activities_timestamp", "activities", ["timestamp"])


def downgrade() -> None:
    """Drop SchoolOps tables."""
    for table in (
        "activities",
        "notifications",
        "exam_results",
        "exam_periods",
        "learning_materials",
        "submissions",
        "assignments",
        "users",
        "classes",
        "subjects",
        "schools",
    ):
        op.drop_table(table)
