# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models for EduAnalytics.

Every tenant-scoped model carries an explicit school_id; tenant isolation
is achieved purely by always filtering on it.
"""

from eduanalytics.infrastructure.database.models.assessment import (
    ASSESSMENT_TYPES,
    TERMS,
    Assessment,
    AssessmentResult,
)
from eduanalytics.infrastructure.database.models.audit import AuditAction, AuditLog, AuditStatus
from eduanalytics.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    generate_uuid,
)
from eduanalytics.infrastructure.database.models.registry import (
    MODEL_REGISTRY,
    MODELS_BY_NAME,
    RegisteredModel,
    ScopeContext,
    get_registered_model,
    model_names,
)
from eduanalytics.infrastructure.database.models.school import (
    GRADES,
    PROVINCES,
    SUBJECTS,
    SUBSCRIPTION_PLANS,
    Class,
    School,
)
from eduanalytics.infrastructure.database.models.student import GENDERS, Student
from eduanalytics.infrastructure.database.models.user import (
    PARENT_RELATIONSHIPS,
    STAFF_ROLES,
    Parent,
    PasswordReset,
    User,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "generate_uuid",
    # Entities
    "School",
    "Class",
    "User",
    "Parent",
    "PasswordReset",
    "Student",
    "Assessment",
    "AssessmentResult",
    "AuditLog",
    "AuditAction",
    "AuditStatus",
    # Enumerations
    "PROVINCES",
    "SUBSCRIPTION_PLANS",
    "GRADES",
    "SUBJECTS",
    "GENDERS",
    "STAFF_ROLES",
    "PARENT_RELATIONSHIPS",
    "ASSESSMENT_TYPES",
    "TERMS",
    # Registry
    "MODEL_REGISTRY",
    "MODELS_BY_NAME",
    "RegisteredModel",
    "ScopeContext",
    "get_registered_model",
    "model_names",
]
