# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School (tenant) and class models."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from eduanalytics.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

PROVINCES = (
    "Eastern Cape",
    "Free State",
    "Gauteng",
    "KwaZulu-Natal",
    "Limpopo",
    "Mpumalanga",
    "North West",
    "Northern Cape",
    "Western Cape",
)

SUBSCRIPTION_PLANS = ("trial", "basic", "premium")

GRADES = (8, 9, 10, 11, 12)

SUBJECTS = (
    "Mathematics",
    "English",
    "Afrikaans",
    "IsiZulu",
    "Physical Science",
    "Life Sciences",
    "Geography",
    "History",
    "Accounting",
    "Business Studies",
    "Economics",
    "Life Orientation",
    "Computer Science",
    "Technology",
)


class School(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A registered school. Every tenant-scoped record references one.

    ``terms`` holds the four academic term ranges as
    ``{"term1": {"start": ..., "end": ...}, ...}``.
    """

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    emis_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    province: Mapped[str] = mapped_column(String(50), nullable=False)
    district: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    contact: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    subscription_plan: Mapped[str] = mapped_column(String(20), nullable=False, default="trial")
    subscription_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    subscription_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    students_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    academic_year: Mapped[int] = mapped_column(Integer, nullable=False)
    terms: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Class(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A class (register group) within a grade.

    ``subjects`` is a list of ``{"subject": ..., "teacher_id": ...}`` pairs.
    """

    __tablename__ = "classes"

    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    grade: Mapped[int] = mapped_column(Integer, nullable=False)
    teacher_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    subjects: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    academic_year: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_classes_school_grade_year", "school_id", "grade", "academic_year"),
    )
