# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student model."""

from datetime import date
from typing import Any

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from eduanalytics.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from eduanalytics.utils.datetime import utc_now

GENDERS = ("Male", "Female")


def _today() -> date:
    return utc_now().date()


class Student(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A learner enrolled at a school, in one class of one grade."""

    __tablename__ = "students"

    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False
    )
    class_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("classes.id", ondelete="RESTRICT"), nullable=False
    )
    student_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[str] = mapped_column(String(10), nullable=False)
    grade: Mapped[int] = mapped_column(Integer, nullable=False)
    contact: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    enrollment_date: Mapped[date] = mapped_column(Date, nullable=False, default=_today)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("ix_students_school_grade", "school_id", "grade"),
        Index("ix_students_school_class", "school_id", "class_id"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
