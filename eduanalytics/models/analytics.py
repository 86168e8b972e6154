# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Analytics query filters and response schemas."""

from datetime import date

from pydantic import BaseModel, Field


class AnalyticsFilters(BaseModel):
    """Optional filters shared by the analytics queries.

    An absent filter means no filtering on that field.
    """

    grade: int | None = Field(default=None, ge=8, le=12, description="School grade")
    class_id: str | None = Field(default=None, description="Class ID")
    term: int | None = Field(default=None, ge=1, le=4, description="Academic term")
    subject: str | None = Field(default=None, description="Subject name")
    threshold: float = Field(default=50.0, ge=0, le=100, description="At-risk threshold percentage")


class TypeBreakdownResponse(BaseModel):
    """Average for one assessment type."""

    type: str = Field(description="Assessment type")
    average: float = Field(description="Average percentage")
    student_count: int = Field(description="Number of results")


class ClassPerformanceResponse(BaseModel):
    """Performance of one class in one subject."""

    class_id: str = Field(description="Class ID")
    class_name: str = Field(description="Class name")
    grade: int = Field(description="Class grade")
    subject: str = Field(description="Subject")
    overall_average: float = Field(description="Mean of the per-type averages")
    total_assessments: int = Field(description="Assessments taken")
    assessment_breakdown: list[TypeBreakdownResponse] = Field(description="Per-type averages")


class ProgressAssessmentResponse(BaseModel):
    """One assessment contributing to a term average."""

    title: str
    type: str
    marks: float
    percentage: float
    date: date


class TermProgressResponse(BaseModel):
    """A student's average in one subject for one term."""

    term: int = Field(description="Academic term")
    subject: str = Field(description="Subject")
    average: float = Field(description="Average percentage")
    assessments: list[ProgressAssessmentResponse] = Field(description="Contributing assessments")


class WeakSubjectResponse(BaseModel):
    """A subject attempt below the threshold."""

    subject: str
    percentage: float


class AtRiskStudentResponse(BaseModel):
    """A student averaging below the threshold."""

    student_id: str
    student_number: str
    first_name: str
    last_name: str
    grade: int
    class_id: str
    average_percentage: float = Field(description="Overall average percentage")
    weak_subjects: list[WeakSubjectResponse] = Field(description="Attempts below the threshold")


class GradePerformanceResponse(BaseModel):
    grade: int
    average: float
    student_count: int


class SubjectPerformanceResponse(BaseModel):
    subject: str
    average: float
    assessment_count: int
    result_count: int


class SchoolOverviewResponse(BaseModel):
    """Whole-school summary."""

    school_id: str
    overall_average: float = Field(description="Average percentage over all results")
    total_assessments: int = Field(description="Distinct assessments with results")
    total_students: int = Field(description="Distinct students with results")
    total_results: int = Field(description="Number of results")
    grade_performance: list[GradePerformanceResponse]
    subject_performance: list[SubjectPerformanceResponse]
