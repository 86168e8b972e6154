# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit trail API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AuditLogResponse(BaseModel):
    """One audited action."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    action: str
    status: str
    timestamp: datetime
    details: dict[str, Any] = Field(default_factory=dict)
    resource_id: str | None = None
    resource_type: str | None = None
    ip: str | None = None
    error_message: str | None = None


class AuditLogListResponse(BaseModel):
    """A page of a school's audit trail, newest first."""

    logs: list[AuditLogResponse]
    total: int = Field(description="Entries matching the filters")
    limit: int
    offset: int
