# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Analytics domain.

Read-only performance statistics over assessment results.
"""

from eduanalytics.domains.analytics.service import (
    DEFAULT_AT_RISK_THRESHOLD,
    AnalyticsError,
    AnalyticsService,
    AtRiskStudent,
    ClassPerformance,
    GradePerformance,
    ProgressAssessment,
    SchoolNotFoundError,
    SchoolOverview,
    StudentNotFoundError,
    SubjectPerformance,
    TermProgress,
    TypeBreakdown,
    WeakSubject,
)

__all__ = [
    "DEFAULT_AT_RISK_THRESHOLD",
    "AnalyticsError",
    "AnalyticsService",
    "AtRiskStudent",
    "ClassPerformance",
    "GradePerformance",
    "ProgressAssessment",
    "SchoolNotFoundError",
    "SchoolOverview",
    "StudentNotFoundError",
    "SubjectPerformance",
    "TermProgress",
    "TypeBreakdown",
    "WeakSubject",
]
