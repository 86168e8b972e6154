# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Marks entry domain."""

from eduanalytics.domains.marks.service import (
    AssessmentNotFoundError,
    BulkMarksResult,
    MarkInput,
    MarkOutcome,
    MarksService,
    MarksServiceError,
    StudentMarks,
    compute_percentage,
)

__all__ = [
    "AssessmentNotFoundError",
    "BulkMarksResult",
    "MarkInput",
    "MarkOutcome",
    "MarksService",
    "MarksServiceError",
    "StudentMarks",
    "compute_percentage",
]
