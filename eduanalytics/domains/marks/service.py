# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Marks entry service module.

Teachers enter marks for a whole class at once. Each entry is checked on
its own and reported back as saved or failed; the valid entries are
upserted per (assessment, student) within the caller's transaction, so a
database failure rolls back the whole batch.

Percentages are computed here and stored with the result; analytics read
them as stored.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eduanalytics.infrastructure.database.models.assessment import Assessment, AssessmentResult
from eduanalytics.infrastructure.database.models.student import Student

logger = logging.getLogger(__name__)


class MarksServiceError(Exception):
    """Base exception for marks entry errors."""

    pass


class AssessmentNotFoundError(MarksServiceError):
    """Raised when the assessment does not exist in the school."""

    def __init__(self, assessment_id: str) -> None:
        self.assessment_id = assessment_id
        super().__init__(f"Assessment not found: {assessment_id}")


def compute_percentage(marks: float, max_marks: float) -> float:
    """Percentage scored: marks / max_marks * 100.

    Raises:
        ValueError: If max_marks is not positive.
    """
    if max_marks <= 0:
        raise ValueError("max_marks must be positive")
    return marks / max_marks * 100


@dataclass
class MarkInput:
    """Marks for one student."""

    student_id: str
    marks: float


@dataclass
class MarkOutcome:
    """What happened to one entry of a bulk request."""

    student_id: str
    status: str
    marks: float | None = None
    percentage: float | None = None
    reason: str | None = None

    @property
    def saved(self) -> bool:
        return self.status == "saved"


@dataclass
class BulkMarksResult:
    """Per-row outcome of a bulk marks entry."""

    assessment_id: str
    outcomes: list[MarkOutcome] = field(default_factory=list)

    @property
    def saved_count(self) -> int:
        return sum(1 for o in self.outcomes if o.saved)

    @property
    def failed_count(self) -> int:
        return len(self.outcomes) - self.saved_count

    @property
    def is_partial(self) -> bool:
        """Whether some but not all entries were saved."""
        return 0 < self.saved_count < len(self.outcomes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "assessment_id": self.assessment_id,
            "saved": self.saved_count,
            "failed": self.failed_count,
            "results": [
                {
                    "student_id": o.student_id,
                    "status": o.status,
                    "marks": o.marks,
                    "percentage": round(o.percentage, 2) if o.percentage is not None else None,
                    "reason": o.reason,
                }
                for o in self.outcomes
            ],
        }


@dataclass
class StudentMarks:
    """A student of the assessment's class and their marks, if entered."""

    student_id: str
    student_number: str
    first_name: str
    last_name: str
    marks: float | None = None
    percentage: float | None = None


class MarksService:
    """Service for entering and reading assessment marks."""

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the marks service.

        Args:
            db: Async database session.
        """
        self._db = db

    async def _get_assessment(self, school_id: str, assessment_id: str) -> Assessment:
        result = await self._db.execute(
            select(Assessment).where(
                Assessment.id == assessment_id,
                Assessment.school_id == school_id,
            )
        )
        assessment = result.scalar_one_or_none()
        if assessment is None:
            raise AssessmentNotFoundError(assessment_id)
        return assessment

    async def record_marks(
        self,
        school_id: str,
        assessment_id: str,
        entries: Iterable[MarkInput],
    ) -> BulkMarksResult:
        """Enter marks for several students.

        Args:
            school_id: School of the assessment.
            assessment_id: Assessment being marked.
            entries: Marks per student.

        Returns:
            BulkMarksResult with one outcome per entry, in input order.

        Raises:
            AssessmentNotFoundError: If the assessment is not in the school.
        """
        assessment = await self._get_assessment(school_id, assessment_id)
        entries = list(entries)

        student_ids = {e.student_id for e in entries}
        students = await self._db.execute(
            select(Student.id).where(Student.school_id == school_id, Student.id.in_(list(student_ids)))
        )
        known_students = set(students.scalars().all())

        existing = await self._db.execute(
            select(AssessmentResult).where(
                AssessmentResult.assessment_id == assessment_id,
                AssessmentResult.student_id.in_(list(student_ids)),
            )
        )
        results = {r.student_id: r for r in existing.scalars().all()}

        bulk = BulkMarksResult(assessment_id=assessment_id)
        for entry in entries:
            if entry.student_id not in known_students:
                bulk.outcomes.append(
                    MarkOutcome(entry.student_id, "failed", reason="Student not found")
                )
                continue
            if not 0 <= entry.marks <= assessment.max_marks:
                bulk.outcomes.append(
                    MarkOutcome(
                        entry.student_id,
                        "failed",
                        marks=entry.marks,
                        reason=f"Marks must be between 0 and {assessment.max_marks:g}",
                    )
                )
                continue

            percentage = compute_percentage(entry.marks, assessment.max_marks)
            result = results.get(entry.student_id)
            if result is None:
                result = AssessmentResult(
                    school_id=school_id,
                    assessment_id=assessment_id,
                    student_id=entry.student_id,
                    marks=entry.marks,
                    percentage=percentage,
                )
                self._db.add(result)
                results[entry.student_id] = result
            else:
                result.marks = entry.marks
                result.percentage = percentage

            bulk.outcomes.append(
                MarkOutcome(entry.student_id, "saved", marks=entry.marks, percentage=percentage)
            )

        await self._db.flush()

        logger.info(
            "Marks recorded: assessment=%s, saved=%d, failed=%d",
            assessment_id,
            bulk.saved_count,
            bulk.failed_count,
        )
        return bulk

    async def get_marks(self, school_id: str, assessment_id: str) -> list[StudentMarks]:
        """Get the class roster of an assessment with any marks entered.

        Args:
            school_id: School of the assessment.
            assessment_id: Assessment to read.

        Returns:
            One StudentMarks per active student of the assessment's class,
            ordered by last then first name.

        Raises:
            AssessmentNotFoundError: If the assessment is not in the school.
        """
        assessment = await self._get_assessment(school_id, assessment_id)

        result = await self._db.execute(
            select(Student, AssessmentResult)
            .outerjoin(
                AssessmentResult,
                (AssessmentResult.student_id == Student.id)
                & (AssessmentResult.assessment_id == assessment_id),
            )
            .where(
                Student.school_id == school_id,
                Student.class_id == assessment.class_id,
                Student.is_active.is_(True),
            )
            .order_by(Student.last_name, Student.first_name)
        )

        return [
            StudentMarks(
                student_id=student.id,
                student_number=student.student_number,
                first_name=student.first_name,
                last_name=student.last_name,
                marks=mark.marks if mark else None,
                percentage=mark.percentage if mark else None,
            )
            for student, mark in result.all()
        ]
