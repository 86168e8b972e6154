# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Analytics service module.

This module provides read-only performance statistics computed from
assessment results joined with their assessment, student and class.

All averages are unweighted arithmetic means of the stored result
percentages (``marks / max_marks * 100``). Assessments with different
max_marks therefore count equally towards an average.

Usage:
    from eduanalytics.domains.analytics import AnalyticsService

    service = AnalyticsService(db=db_session)

    # Subject averages per class, broken down by assessment type
    classes = await service.class_performance(school_id, grade=10, term=1)

    # One student's averages per term and subject
    progress = await service.student_progress(school_id, student_id)

    # Students averaging below 50%
    at_risk = await service.at_risk_students(school_id, threshold=50.0)

    # Whole-school summary
    overview = await service.school_overview(school_id)
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from statistics import fmean
from typing import Any

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from eduanalytics.infrastructure.database.models.assessment import Assessment, AssessmentResult
from eduanalytics.infrastructure.database.models.school import Class, School
from eduanalytics.infrastructure.database.models.student import Student

logger = logging.getLogger(__name__)

DEFAULT_AT_RISK_THRESHOLD = 50.0


class AnalyticsError(Exception):
    """Base exception for analytics errors."""

    pass


class SchoolNotFoundError(AnalyticsError):
    """Raised when the school does not exist."""

    def __init__(self, school_id: str) -> None:
        self.school_id = school_id
        super().__init__(f"School not found: {school_id}")


class StudentNotFoundError(AnalyticsError):
    """Raised when the student does not exist in the school."""

    def __init__(self, student_id: str) -> None:
        self.student_id = student_id
        super().__init__(f"Student not found: {student_id}")


def _round(value: float | None) -> float | None:
    return round(value, 2) if value is not None else None


@dataclass
class TypeBreakdown:
    """Average for one assessment type within a class subject."""

    assessment_type: str
    average: float
    student_count: int
    assessment_count: int


@dataclass
class ClassPerformance:
    """Performance of one class in one subject."""

    class_id: str
    class_name: str
    grade: int
    subject: str
    overall_average: float
    total_assessments: int
    assessment_breakdown: list[TypeBreakdown] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "class_id": self.class_id,
            "class_name": self.class_name,
            "grade": self.grade,
            "subject": self.subject,
            "overall_average": _round(self.overall_average),
            "total_assessments": self.total_assessments,
            "assessment_breakdown": [
                {
                    "type": b.assessment_type,
                    "average": _round(b.average),
                    "student_count": b.student_count,
                }
                for b in self.assessment_breakdown
            ],
        }


@dataclass
class ProgressAssessment:
    """One assessment contributing to a term average."""

    title: str
    assessment_type: str
    marks: float
    percentage: float
    date: date


@dataclass
class TermProgress:
    """A student's average in one subject for one term."""

    term: int
    subject: str
    average: float
    assessments: list[ProgressAssessment] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "term": self.term,
            "subject": self.subject,
            "average": _round(self.average),
            "assessments": [
                {
                    "title": a.title,
                    "type": a.assessment_type,
                    "marks": a.marks,
                    "percentage": _round(a.percentage),
                    "date": a.date.isoformat(),
                }
                for a in self.assessments
            ],
        }


@dataclass(frozen=True)
class WeakSubject:
    """A subject attempt scored below the at-risk threshold."""

    subject: str
    percentage: float


@dataclass
class AtRiskStudent:
    """A student whose overall average is below the threshold."""

    student_id: str
    student_number: str
    first_name: str
    last_name: str
    grade: int
    class_id: str
    average_percentage: float
    weak_subjects: list[WeakSubject] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "student_id": self.student_id,
            "student_number": self.student_number,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "grade": self.grade,
            "class_id": self.class_id,
            "average_percentage": _round(self.average_percentage),
            "weak_subjects": [
                {"subject": w.subject, "percentage": _round(w.percentage)}
                for w in self.weak_subjects
            ],
        }


@dataclass
class GradePerformance:
    """Average and student count for one grade."""

    grade: int
    average: float
    student_count: int


@dataclass
class SubjectPerformance:
    """Average and volume for one subject."""

    subject: str
    average: float
    assessment_count: int
    result_count: int


@dataclass
class SchoolOverview:
    """Whole-school summary.

    The grade and subject sections are computed from the same result set
    as the overall figures, so e.g. the students counted per grade add up
    to total_students.
    """

    school_id: str
    overall_average: float = 0.0
    total_assessments: int = 0
    total_students: int = 0
    total_results: int = 0
    grade_performance: list[GradePerformance] = field(default_factory=list)
    subject_performance: list[SubjectPerformance] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "school_id": self.school_id,
            "overall_average": _round(self.overall_average),
            "total_assessments": self.total_assessments,
            "total_students": self.total_students,
            "total_results": self.total_results,
            "grade_performance": [
                {"grade": g.grade, "average": _round(g.average), "student_count": g.student_count}
                for g in self.grade_performance
            ],
            "subject_performance": [
                {
                    "subject": s.subject,
                    "average": _round(s.average),
                    "assessment_count": s.assessment_count,
                    "result_count": s.result_count,
                }
                for s in self.subject_performance
            ],
        }


class AnalyticsService:
    """Service computing school performance statistics.

    All methods are pure reads scoped to one school.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the analytics service.

        Args:
            db: Async database session.
        """
        self._db = db

    async def _ensure_school(self, school_id: str) -> None:
        result = await self._db.execute(select(School.id).where(School.id == school_id))
        if result.scalar_one_or_none() is None:
            raise SchoolNotFoundError(school_id)

    async def class_performance(
        self,
        school_id: str,
        grade: int | None = None,
        class_id: str | None = None,
        term: int | None = None,
        subject: str | None = None,
    ) -> list[ClassPerformance]:
        """Get subject averages per class.

        Results are grouped by (class, subject, assessment type) in SQL and
        then folded per (class, subject). The overall average of a class
        subject is the mean of its per-type averages.

        Args:
            school_id: School to report on.
            grade: Only classes of this grade.
            class_id: Only this class.
            term: Only assessments of this term.
            subject: Only this subject.

        Returns:
            List of ClassPerformance ordered by class name and subject.

        Raises:
            SchoolNotFoundError: If the school does not exist.
        """
        await self._ensure_school(school_id)

        average = func.avg(AssessmentResult.percentage)
        stmt = (
            select(
                Class.id.label("class_id"),
                Class.name.label("class_name"),
                Class.grade,
                Assessment.subject,
                Assessment.assessment_type,
                average.label("average"),
                func.count(AssessmentResult.id).label("result_count"),
                func.count(distinct(Assessment.id)).label("assessment_count"),
            )
            .select_from(AssessmentResult)
            .join(Assessment, AssessmentResult.assessment_id == Assessment.id)
            .join(Class, Assessment.class_id == Class.id)
            .where(Assessment.school_id == school_id)
            .where(AssessmentResult.school_id == school_id)
        )
        if grade is not None:
            stmt = stmt.where(Class.grade == grade)
        if class_id is not None:
            stmt = stmt.where(Assessment.class_id == class_id)
        if term is not None:
            stmt = stmt.where(Assessment.term == term)
        if subject is not None:
            stmt = stmt.where(Assessment.subject == subject)

        stmt = stmt.group_by(
            Class.id, Class.name, Class.grade, Assessment.subject, Assessment.assessment_type
        ).order_by(Class.name, Class.id, Assessment.subject, Assessment.assessment_type)

        result = await self._db.execute(stmt)

        performance: dict[tuple[str, str], ClassPerformance] = {}
        for row in result.all():
            key = (row.class_id, row.subject)
            entry = performance.get(key)
            if entry is None:
                entry = ClassPerformance(
                    class_id=row.class_id,
                    class_name=row.class_name,
                    grade=row.grade,
                    subject=row.subject,
                    overall_average=0.0,
                    total_assessments=0,
                )
                performance[key] = entry
            entry.assessment_breakdown.append(
                TypeBreakdown(
                    assessment_type=row.assessment_type,
                    average=float(row.average),
                    student_count=row.result_count,
                    assessment_count=row.assessment_count,
                )
            )
            entry.total_assessments += row.assessment_count

        for entry in performance.values():
            entry.overall_average = fmean(b.average for b in entry.assessment_breakdown)

        logger.debug(
            "Computed class performance: school=%s, groups=%d", school_id, len(performance)
        )
        return list(performance.values())

    async def student_progress(
        self,
        school_id: str,
        student_id: str,
        subject: str | None = None,
    ) -> list[TermProgress]:
        """Get a student's average per term and subject.

        Args:
            school_id: School the student belongs to.
            student_id: Student to report on.
            subject: Only this subject.

        Returns:
            List of TermProgress sorted by term, then subject.

        Raises:
            SchoolNotFoundError: If the school does not exist.
            StudentNotFoundError: If the student is not in the school.
        """
        await self._ensure_school(school_id)

        student = await self._db.execute(
            select(Student.id).where(Student.id == student_id, Student.school_id == school_id)
        )
        if student.scalar_one_or_none() is None:
            raise StudentNotFoundError(student_id)

        stmt = (
            select(
                Assessment.term,
                Assessment.subject,
                Assessment.title,
                Assessment.assessment_type,
                Assessment.date,
                AssessmentResult.marks,
                AssessmentResult.percentage,
            )
            .select_from(AssessmentResult)
            .join(Assessment, AssessmentResult.assessment_id == Assessment.id)
            .where(AssessmentResult.school_id == school_id)
            .where(AssessmentResult.student_id == student_id)
        )
        if subject is not None:
            stmt = stmt.where(Assessment.subject == subject)
        stmt = stmt.order_by(
            Assessment.term, Assessment.subject, Assessment.date, Assessment.title
        )

        result = await self._db.execute(stmt)

        progress: dict[tuple[int, str], TermProgress] = {}
        for row in result.all():
            key = (row.term, row.subject)
            entry = progress.get(key)
            if entry is None:
                entry = TermProgress(term=row.term, subject=row.subject, average=0.0)
                progress[key] = entry
            entry.assessments.append(
                ProgressAssessment(
                    title=row.title,
                    assessment_type=row.assessment_type,
                    marks=row.marks,
                    percentage=row.percentage,
                    date=row.date,
                )
            )

        for entry in progress.values():
            entry.average = fmean(a.percentage for a in entry.assessments)

        return list(progress.values())

    async def at_risk_students(
        self,
        school_id: str,
        grade: int | None = None,
        threshold: float = DEFAULT_AT_RISK_THRESHOLD,
        term: int | None = None,
    ) -> list[AtRiskStudent]:
        """Find students whose overall average is below a threshold.

        A student is at risk when the mean of all their result percentages
        (within the term, if given) is strictly below threshold. Their weak
        subjects are the distinct (subject, percentage) attempts that are
        also below threshold.

        Args:
            school_id: School to report on.
            grade: Only students of this grade.
            threshold: Percentage below which a student is at risk.
            term: Only assessments of this term.

        Returns:
            List of AtRiskStudent, lowest average first.

        Raises:
            SchoolNotFoundError: If the school does not exist.
        """
        await self._ensure_school(school_id)

        filters = [
            Assessment.school_id == school_id,
            AssessmentResult.school_id == school_id,
        ]
        if term is not None:
            filters.append(Assessment.term == term)
        if grade is not None:
            filters.append(Student.grade == grade)

        average = func.avg(AssessmentResult.percentage).label("average")
        stmt = (
            select(
                Student.id,
                Student.student_number,
                Student.first_name,
                Student.last_name,
                Student.grade,
                Student.class_id,
                average,
            )
            .select_from(AssessmentResult)
            .join(Assessment, AssessmentResult.assessment_id == Assessment.id)
            .join(Student, AssessmentResult.student_id == Student.id)
            .where(*filters)
            .group_by(
                Student.id,
                Student.student_number,
                Student.first_name,
                Student.last_name,
                Student.grade,
                Student.class_id,
            )
            .having(func.avg(AssessmentResult.percentage) < threshold)
            .order_by(average, Student.student_number)
        )

        result = await self._db.execute(stmt)
        students = [
            AtRiskStudent(
                student_id=row.id,
                student_number=row.student_number,
                first_name=row.first_name,
                last_name=row.last_name,
                grade=row.grade,
                class_id=row.class_id,
                average_percentage=float(row.average),
            )
            for row in result.all()
        ]
        if not students:
            return []

        by_id = {s.student_id: s for s in students}
        attempts = await self._db.execute(
            select(AssessmentResult.student_id, Assessment.subject, AssessmentResult.percentage)
            .distinct()
            .select_from(AssessmentResult)
            .join(Assessment, AssessmentResult.assessment_id == Assessment.id)
            .join(Student, AssessmentResult.student_id == Student.id)
            .where(*filters)
            .where(AssessmentResult.student_id.in_(list(by_id)))
            .where(AssessmentResult.percentage < threshold)
            .order_by(AssessmentResult.student_id, Assessment.subject, AssessmentResult.percentage)
        )
        for row in attempts.all():
            by_id[row.student_id].weak_subjects.append(
                WeakSubject(subject=row.subject, percentage=row.percentage)
            )

        logger.debug(
            "Identified at-risk students: school=%s, threshold=%s, count=%d",
            school_id,
            threshold,
            len(students),
        )
        return students

    async def school_overview(self, school_id: str) -> SchoolOverview:
        """Summarize a school's results.

        The school's results are fetched once, joined with their assessment
        and student, and the overall, per-grade and per-subject figures are
        all folded from that single row set.

        Args:
            school_id: School to report on.

        Returns:
            SchoolOverview; zero averages and counts when there are no results.

        Raises:
            SchoolNotFoundError: If the school does not exist.
        """
        await self._ensure_school(school_id)

        result = await self._db.execute(
            select(
                AssessmentResult.assessment_id,
                AssessmentResult.student_id,
                AssessmentResult.percentage,
                Assessment.subject,
                Student.grade,
            )
            .select_from(AssessmentResult)
            .join(Assessment, AssessmentResult.assessment_id == Assessment.id)
            .join(Student, AssessmentResult.student_id == Student.id)
            .where(Assessment.school_id == school_id)
            .where(AssessmentResult.school_id == school_id)
        )
        rows = result.all()

        overview = SchoolOverview(school_id=school_id)
        if not rows:
            return overview

        grades: dict[int, tuple[list[float], set[str]]] = {}
        subjects: dict[str, tuple[list[float], set[str]]] = {}
        for row in rows:
            grade_percentages, grade_students = grades.setdefault(row.grade, ([], set()))
            grade_percentages.append(row.percentage)
            grade_students.add(row.student_id)

            subject_percentages, subject_assessments = subjects.setdefault(row.subject, ([], set()))
            subject_percentages.append(row.percentage)
            subject_assessments.add(row.assessment_id)

        overview.overall_average = fmean(row.percentage for row in rows)
        overview.total_assessments = len({row.assessment_id for row in rows})
        overview.total_students = len({row.student_id for row in rows})
        overview.total_results = len(rows)
        overview.grade_performance = [
            GradePerformance(grade=grade, average=fmean(percentages), student_count=len(students))
            for grade, (percentages, students) in sorted(grades.items())
        ]
        overview.subject_performance = [
            SubjectPerformance(
                subject=subject,
                average=fmean(percentages),
                assessment_count=len(assessments),
                result_count=len(percentages),
            )
            for subject, (percentages, assessments) in sorted(subjects.items())
        ]
        return overview
