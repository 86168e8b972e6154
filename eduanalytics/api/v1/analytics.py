# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Analytics API endpoints.

This module provides endpoints for school performance analytics:
- GET /class-performance - Subject averages per class
- GET /student-progress - One student's averages per term and subject
- GET /at-risk-students - Students averaging below a threshold
- GET /school-overview - Whole-school summary

All queries are scoped to the school of the request.

Example:
    GET /api/v1/analytics/at-risk-students?grade=10&threshold=45
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from eduanalytics.api.dependencies import get_db, require_school
from eduanalytics.domains.analytics import (
    DEFAULT_AT_RISK_THRESHOLD,
    AnalyticsError,
    AnalyticsService,
)
from eduanalytics.models.analytics import (
    AtRiskStudentResponse,
    ClassPerformanceResponse,
    SchoolOverviewResponse,
    TermProgressResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found(error: AnalyticsError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))


@router.get(
    "/class-performance",
    response_model=list[ClassPerformanceResponse],
    summary="Get class performance",
    description="Subject averages per class with a breakdown by assessment type.",
)
async def get_class_performance(
    grade: Annotated[int | None, Query(ge=8, le=12)] = None,
    class_id: Annotated[str | None, Query()] = None,
    term: Annotated[int | None, Query(ge=1, le=4)] = None,
    subject: Annotated[str | None, Query()] = None,
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> list[ClassPerformanceResponse]:
    """Get class performance analytics.

    Args:
        grade: Only classes of this grade.
        class_id: Only this class.
        term: Only assessments of this term.
        subject: Only this subject.
        school_id: School of the request.
        db: Database session.

    Returns:
        One entry per class and subject.
    """
    service = AnalyticsService(db=db)
    try:
        performance = await service.class_performance(
            school_id, grade=grade, class_id=class_id, term=term, subject=subject
        )
    except AnalyticsError as e:
        raise _not_found(e) from e

    return [ClassPerformanceResponse(**p.to_dict()) for p in performance]


@router.get(
    "/student-progress",
    response_model=list[TermProgressResponse],
    summary="Get student progress",
    description="A student's average per term and subject with contributing assessments.",
)
async def get_student_progress(
    student_id: Annotated[str, Query(min_length=1)],
    subject: Annotated[str | None, Query()] = None,
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> list[TermProgressResponse]:
    """Get progress of a student.

    Raises:
        HTTPException: If the student is not in the school.
    """
    service = AnalyticsService(db=db)
    try:
        progress = await service.student_progress(school_id, student_id, subject=subject)
    except AnalyticsError as e:
        raise _not_found(e) from e

    return [TermProgressResponse(**p.to_dict()) for p in progress]


@router.get(
    "/at-risk-students",
    response_model=list[AtRiskStudentResponse],
    summary="Get at-risk students",
    description="Students whose overall average percentage is below the threshold.",
)
async def get_at_risk_students(
    grade: Annotated[int | None, Query(ge=8, le=12)] = None,
    threshold: Annotated[float, Query(ge=0, le=100)] = DEFAULT_AT_RISK_THRESHOLD,
    term: Annotated[int | None, Query(ge=1, le=4)] = None,
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> list[AtRiskStudentResponse]:
    """Get at-risk students, lowest average first."""
    logger.info("Identifying at-risk students: school=%s, threshold=%s", school_id, threshold)

    service = AnalyticsService(db=db)
    try:
        students = await service.at_risk_students(
            school_id, grade=grade, threshold=threshold, term=term
        )
    except AnalyticsError as e:
        raise _not_found(e) from e

    return [AtRiskStudentResponse(**s.to_dict()) for s in students]


@router.get(
    "/school-overview",
    response_model=SchoolOverviewResponse,
    summary="Get school overview",
    description="Overall, per-grade and per-subject averages for the school.",
)
async def get_school_overview(
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> SchoolOverviewResponse:
    """Get the school overview."""
    service = AnalyticsService(db=db)
    try:
        overview = await service.school_overview(school_id)
    except AnalyticsError as e:
        raise _not_found(e) from e

    return SchoolOverviewResponse(**overview.to_dict())
