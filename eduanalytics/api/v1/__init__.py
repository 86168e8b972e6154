# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    analytics: School performance analytics endpoints.
    audit: Audit trail endpoints.
    backup: Backup, restore, listing and download endpoints.
    marks: Assessment marks entry endpoints.
"""

from fastapi import APIRouter

from eduanalytics.api.v1 import analytics, audit, backup, marks

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
router.include_router(audit.router, prefix="/audit-logs", tags=["Audit"])
router.include_router(backup.router, prefix="/backup", tags=["Backup"])
router.include_router(marks.router, prefix="/assessments", tags=["Marks"])

__all__ = ["router"]
