# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registry of backup-able models.

MODEL_REGISTRY lists every entity collection in dependency order: a model
only references models listed before it. Backups export in this order,
restores insert in this order and delete in reverse.

Each entry knows how to restrict its table to one school (tenant):
- School: by its own id
- PasswordReset: through its user's school_id
- everything else: by its school_id column
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, select

from eduanalytics.infrastructure.database.models.assessment import Assessment, AssessmentResult
from eduanalytics.infrastructure.database.models.audit import AuditLog
from eduanalytics.infrastructure.database.models.base import Base
from eduanalytics.infrastructure.database.models.school import Class, School
from eduanalytics.infrastructure.database.models.student import Student
from eduanalytics.infrastructure.database.models.user import Parent, PasswordReset, User


@dataclass(frozen=True)
class RegisteredModel:
    """A model exported by backups.

    Attributes:
        name: Collection name used in archives (e.g. "Student").
        model: ORM class.
        scope: Builds the WHERE clause selecting one school's rows.
        owner_of: Tells whether an archived record belongs to a school,
            for records that have not been inserted yet.
    """

    name: str
    model: type[Base]
    scope: Callable[[str], ColumnElement[bool]]
    owner_of: Callable[[Mapping[str, Any], str, "ScopeContext"], bool]


@dataclass
class ScopeContext:
    """Facts about the archive needed to attribute indirectly-scoped records.

    Attributes:
        user_ids: IDs of archived users belonging to the target school.
    """

    user_ids: set[str]


def _school_column_scope(model: Any) -> Callable[[str], ColumnElement[bool]]:
    return lambda school_id: model.school_id == school_id


def _owned_by_school_column(record: Mapping[str, Any], school_id: str, _: ScopeContext) -> bool:
    return record.get("school_id") == school_id


MODEL_REGISTRY: tuple[RegisteredModel, ...] = (
    RegisteredModel(
        name="School",
        model=School,
        scope=lambda school_id: School.id == school_id,
        owner_of=lambda record, school_id, _: record.get("id") == school_id,
    ),
    RegisteredModel("User", User, _school_column_scope(User), _owned_by_school_column),
    RegisteredModel("Class", Class, _school_column_scope(Class), _owned_by_school_column),
    RegisteredModel("Student", Student, _school_column_scope(Student), _owned_by_school_column),
    RegisteredModel("Parent", Parent, _school_column_scope(Parent), _owned_by_school_column),
    RegisteredModel("Assessment", Assessment, _school_column_scope(Assessment), _owned_by_school_column),
    RegisteredModel(
        "AssessmentResult",
        AssessmentResult,
        _school_column_scope(AssessmentResult),
        _owned_by_school_column,
    ),
    RegisteredModel("AuditLog", AuditLog, _school_column_scope(AuditLog), _owned_by_school_column),
    RegisteredModel(
        name="PasswordReset",
        model=PasswordReset,
        scope=lambda school_id: PasswordReset.user_id.in_(
            select(User.id).where(User.school_id == school_id)
        ),
        owner_of=lambda record, school_id, ctx: record.get("user_id") in ctx.user_ids,
    ),
)

MODELS_BY_NAME: dict[str, RegisteredModel] = {entry.name: entry for entry in MODEL_REGISTRY}


def get_registered_model(name: str) -> RegisteredModel | None:
    """Look up a registered model by its archive name."""
    return MODELS_BY_NAME.get(name)


def model_names() -> list[str]:
    """Archive names of all registered models, in dependency order."""
    return [entry.name for entry in MODEL_REGISTRY]
