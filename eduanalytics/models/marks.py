# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Marks entry request and response schemas."""

from typing import Literal

from pydantic import BaseModel, Field


class MarkEntry(BaseModel):
    """Marks for one student."""

    student_id: str = Field(min_length=1, description="Student ID")
    marks: float = Field(ge=0, description="Marks obtained")


class BulkMarksRequest(BaseModel):
    """Marks for several students of one assessment."""

    marks: list[MarkEntry] = Field(min_length=1, description="One entry per student")


class MarkOutcomeResponse(BaseModel):
    student_id: str
    status: Literal["saved", "failed"]
    marks: float | None = None
    percentage: float | None = None
    reason: str | None = None


class BulkMarksResponse(BaseModel):
    """Per-row outcome of a bulk marks entry."""

    assessment_id: str
    saved: int = Field(description="Entries saved")
    failed: int = Field(description="Entries rejected")
    results: list[MarkOutcomeResponse]


class StudentMarksResponse(BaseModel):
    """A student of the assessment's class with marks, if entered."""

    student_id: str
    student_number: str
    first_name: str
    last_name: str
    marks: float | None = None
    percentage: float | None = None


class AssessmentMarksResponse(BaseModel):
    assessment_id: str
    students: list[StudentMarksResponse]
