# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assessment and assessment result models.

``AssessmentResult.percentage`` is stored at write time as
``marks / max_marks * 100``; analytics read it as-is.
"""

from datetime import date as date_type

from sqlalchemy import Date, Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from eduanalytics.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

ASSESSMENT_TYPES = ("Test", "Exam", "Assignment", "Practical", "Project")

TERMS = (1, 2, 3, 4)


class Assessment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A single test, exam or task given to one class in one term."""

    __tablename__ = "assessments"

    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False
    )
    class_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False
    )
    teacher_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    subject: Mapped[str] = mapped_column(String(100), nullable=False)
    assessment_type: Mapped[str] = mapped_column(String(20), nullable=False, default="Test")
    term: Mapped[int] = mapped_column(Integer, nullable=False)
    max_marks: Mapped[float] = mapped_column(Float, nullable=False)
    date: Mapped[date_type] = mapped_column(Date, nullable=False)

    __table_args__ = (
        Index("ix_assessments_school_class", "school_id", "class_id"),
        Index("ix_assessments_school_teacher", "school_id", "teacher_id"),
    )


class AssessmentResult(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One student's marks for one assessment."""

    __tablename__ = "assessment_results"

    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False
    )
    assessment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False
    )
    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    marks: Mapped[float] = mapped_column(Float, nullable=False)
    percentage: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        UniqueConstraint("assessment_id", "student_id", name="uq_assessment_results_assessment_student"),
        Index("ix_assessment_results_school_student", "school_id", "student_id"),
    )
