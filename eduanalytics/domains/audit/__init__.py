# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit trail domain."""

from eduanalytics.domains.audit.retention import AuditRetentionScheduler
from eduanalytics.domains.audit.service import DEFAULT_RETENTION_DAYS, AuditService

__all__ = ["DEFAULT_RETENTION_DAYS", "AuditRetentionScheduler", "AuditService"]
