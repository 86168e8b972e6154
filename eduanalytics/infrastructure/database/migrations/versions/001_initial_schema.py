# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial database schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-02-03

This migration creates all tables of the SQLAlchemy models in
eduanalytics/infrastructure/database/models/. Column types are portable
(String ids, generic JSON) so the schema also builds on SQLite.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _school_fk() -> sa.Column:
    return sa.Column(
        "school_id",
        sa.String(36),
        sa.ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    """Create all tables."""
    # ==========================================================================
    # 1. schools
    # ==========================================================================
    op.create_table(
        "schools",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("emis_number", sa.String(50), nullable=False, unique=True),
        sa.Column("province", sa.String(50), nullable=False),
        sa.Column("district", sa.String(100), nullable=False),
        sa.Column("address", sa.JSON, nullable=False),
        sa.Column("contact", sa.JSON, nullable=False),
        sa.Column("subscription_plan", sa.String(20), nullable=False),
        sa.Column("subscription_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("subscription_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("students_limit", sa.Integer, nullable=False),
        sa.Column("academic_year", sa.Integer, nullable=False),
        sa.Column("terms", sa.JSON, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False),
        *_timestamps(),
    )

    # ==========================================================================
    # 2. users
    # ==========================================================================
    op.create_table(
        "users",
        _id(),
        _school_fk(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("subjects", sa.JSON, nullable=False),
        sa.Column("class_ids", sa.JSON, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_school_id", "users", ["school_id"])

    # ==========================================================================
    # 3. classes
    # ==========================================================================
    op.create_table(
        "classes",
        _id(),
        _school_fk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("grade", sa.Integer, nullable=False),
        sa.Column(
            "teacher_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("subjects", sa.JSON, nullable=False),
        sa.Column("academic_year", sa.Integer, nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_classes_school_grade_year", "classes", ["school_id", "grade", "academic_year"]
    )

    # ==========================================================================
    # 4. students
    # ==========================================================================
    op.create_table(
        "students",
        _id(),
        _school_fk(),
        sa.Column(
            "class_id",
            sa.String(36),
            sa.ForeignKey("classes.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("student_number", sa.String(50), nullable=False, unique=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("date_of_birth", sa.Date, nullable=False),
        sa.Column("gender", sa.String(10), nullable=False),
        sa.Column("grade", sa.Integer, nullable=False),
        sa.Column("contact", sa.JSON, nullable=False),
        sa.Column("enrollment_date", sa.Date, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_students_school_grade", "students", ["school_id", "grade"])
    op.create_index("ix_students_school_class", "students", ["school_id", "class_id"])

    # ==========================================================================
    # 5. parents
    # ==========================================================================
    op.create_table(
        "parents",
        _id(),
        _school_fk(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("phone", sa.String(30), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("students", sa.JSON, nullable=False),
        sa.Column("notifications", sa.JSON, nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_parents_school_email", "parents", ["school_id", "email"])

    # ==========================================================================
    # 6. assessments
    # ==========================================================================
    op.create_table(
        "assessments",
        _id(),
        _school_fk(),
        sa.Column(
            "class_id",
            sa.String(36),
            sa.ForeignKey("classes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "teacher_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("subject", sa.String(100), nullable=False),
        sa.Column("assessment_type", sa.String(20), nullable=False),
        sa.Column("term", sa.Integer, nullable=False),
        sa.Column("max_marks", sa.Float, nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_assessments_school_class", "assessments", ["school_id", "class_id"])
    op.create_index("ix_assessments_school_teacher", "assessments", ["school_id", "teacher_id"])

    # ==========================================================================
    # 7. assessment_results
    # ==========================================================================
    op.create_table(
        "assessment_results",
        _id(),
        _school_fk(),
        sa.Column(
            "assessment_id",
            sa.String(36),
            sa.ForeignKey("assessments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "student_id",
            sa.String(36),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("marks", sa.Float, nullable=False),
        sa.Column("percentage", sa.Float, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "assessment_id", "student_id", name="uq_assessment_results_assessment_student"
        ),
    )
    op.create_index(
        "ix_assessment_results_school_student", "assessment_results", ["school_id", "student_id"]
    )

    # ==========================================================================
    # 8. audit_logs
    # ==========================================================================
    op.create_table(
        "audit_logs",
        _id(),
        _school_fk(),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("action", sa.String(40), nullable=False),
        sa.Column("status", sa.String(10), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("details", sa.JSON, nullable=False),
        sa.Column("resource_id", sa.String(36), nullable=True),
        sa.Column("resource_type", sa.String(50), nullable=True),
        sa.Column("ip", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("error_message", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_audit_logs_school_timestamp", "audit_logs", ["school_id", "timestamp"])
    op.create_index("ix_audit_logs_user_timestamp", "audit_logs", ["user_id", "timestamp"])
    op.create_index("ix_audit_logs_action_timestamp", "audit_logs", ["action", "timestamp"])

    # ==========================================================================
    # 9. password_resets
    # ==========================================================================
    op.create_table(
        "password_resets",
        _id(),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("token_hash", sa.String(128), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("password_resets")
    op.drop_table("audit_logs")
    op.drop_table("assessment_results")
    op.drop_table("assessments")
    op.drop_table("parents")
    op.drop_table("students")
    op.drop_table("classes")
    op.drop_table("users")
    op.drop_table("schools")
