# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Marks entry API endpoints.

This module provides endpoints for entering assessment marks:
- POST /{assessment_id}/marks/bulk - Enter marks for several students
- GET /{assessment_id}/marks - Class roster with marks entered so far
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from eduanalytics.api.dependencies import get_app_settings, get_db, require_school, require_user
from eduanalytics.core.config.settings import Settings
from eduanalytics.domains.audit import AuditService
from eduanalytics.domains.marks import AssessmentNotFoundError, MarkInput, MarksService
from eduanalytics.infrastructure.database.models.audit import AuditAction
from eduanalytics.models.marks import (
    AssessmentMarksResponse,
    BulkMarksRequest,
    BulkMarksResponse,
    StudentMarksResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/{assessment_id}/marks/bulk",
    response_model=BulkMarksResponse,
    summary="Enter marks",
    description="Enter marks for several students; each entry is reported as saved or failed.",
)
async def record_bulk_marks(
    assessment_id: str,
    body: BulkMarksRequest,
    request: Request,
    school_id: str = Depends(require_school),
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> BulkMarksResponse:
    """Enter marks for an assessment.

    Raises:
        HTTPException: If the assessment is not in the school.
    """
    service = MarksService(db=db)
    try:
        result = await service.record_marks(
            school_id,
            assessment_id,
            [MarkInput(student_id=m.student_id, marks=m.marks) for m in body.marks],
        )
    except AssessmentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    await AuditService(db, settings.audit.retention_days).record(
        action=AuditAction.MARKS_ENTRY,
        user_id=user_id,
        school_id=school_id,
        details={"saved": result.saved_count, "failed": result.failed_count},
        resource_id=assessment_id,
        resource_type="Assessment",
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )

    return BulkMarksResponse(**result.to_dict())


@router.get(
    "/{assessment_id}/marks",
    response_model=AssessmentMarksResponse,
    summary="Get marks",
)
async def get_marks(
    assessment_id: str,
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> AssessmentMarksResponse:
    """Get the class roster of an assessment with marks entered so far.

    Raises:
        HTTPException: If the assessment is not in the school.
    """
    service = MarksService(db=db)
    try:
        students = await service.get_marks(school_id, assessment_id)
    except AssessmentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    return AssessmentMarksResponse(
        assessment_id=assessment_id,
        students=[
            StudentMarksResponse(
                student_id=s.student_id,
                student_number=s.student_number,
                first_name=s.first_name,
                last_name=s.last_name,
                marks=s.marks,
                percentage=round(s.percentage, 2) if s.percentage is not None else None,
            )
            for s in students
        ],
    )
