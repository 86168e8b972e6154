# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Staff user, parent and password reset models."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from eduanalytics.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

STAFF_ROLES = ("admin", "principal", "teacher", "hod")

PARENT_RELATIONSHIPS = ("Mother", "Father", "Guardian", "Other")


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Staff member of a school. Deactivated, never hard-deleted."""

    __tablename__ = "users"

    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="teacher")
    subjects: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    class_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_users_school_id", "school_id"),)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Parent(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Parent or guardian account.

    ``students`` holds ``{"student_id", "relationship", "is_verified"}``
    links; a parent may only see a child's results once school staff have
    verified the link.
    """

    __tablename__ = "parents"

    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    students: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    notifications: Mapped[dict[str, bool]] = mapped_column(
        JSON,
        nullable=False,
        default=lambda: {"email": True, "sms": True, "push": True},
    )
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (Index("ix_parents_school_email", "school_id", "email"),)

    def verified_student_ids(self) -> list[str]:
        """IDs of children whose link has been verified by staff."""
        return [link["student_id"] for link in self.students if link.get("is_verified")]


class PasswordReset(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Single-use password reset token for a staff user."""

    __tablename__ = "password_resets"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_used(self) -> bool:
        return self.used_at is not None
