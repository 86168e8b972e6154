# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Validation schemas for school entities.

These schemas are independent of the database: they check plain
dictionaries (API payloads, imported records) before anything is stored.
validate_record() looks up the schema for a model name and raises
RecordValidationError listing every field error.

Example:
    >>> from eduanalytics.models.entities import validate_record
    >>> student = validate_record("Student", payload)
"""

from datetime import date
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

from eduanalytics.infrastructure.database.models.assessment import ASSESSMENT_TYPES
from eduanalytics.infrastructure.database.models.school import PROVINCES, SUBJECTS

GradeValue = Annotated[int, Field(ge=8, le=12, description="School grade, 8 to 12")]
TermValue = Annotated[int, Field(ge=1, le=4, description="Academic term, 1 to 4")]


class RecordValidationError(ValueError):
    """Raised when a record does not match its schema.

    Attributes:
        model_name: Name of the model the record was checked against.
        errors: Field errors as reported by pydantic.
    """

    def __init__(self, model_name: str, errors: list[dict[str, Any]]) -> None:
        self.model_name = model_name
        self.errors = errors
        fields = ", ".join(".".join(str(p) for p in e["loc"]) or "<record>" for e in errors)
        super().__init__(f"Invalid {model_name} record: {fields}")


class EntitySchema(BaseModel):
    """Base for entity schemas: strips whitespace, ignores unknown keys."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class Address(EntitySchema):
    street: str | None = None
    city: str | None = None
    postal_code: str | None = None


class SchoolContact(EntitySchema):
    phone: str | None = None
    email: EmailStr | None = None
    principal_name: str | None = None


class SchoolCreate(EntitySchema):
    """A school (tenant) registration."""

    name: str = Field(min_length=1, max_length=200)
    emis_number: str = Field(min_length=1, max_length=50, description="EMIS registration number")
    province: str
    district: str = Field(min_length=1, max_length=100)
    address: Address = Field(default_factory=Address)
    contact: SchoolContact = Field(default_factory=SchoolContact)
    subscription_plan: Literal["trial", "basic", "premium"] = "trial"
    students_limit: int = Field(default=100, ge=1)
    academic_year: int = Field(ge=2000, le=2100)

    @field_validator("province")
    @classmethod
    def _known_province(cls, value: str) -> str:
        if value not in PROVINCES:
            raise ValueError(f"province must be one of: {', '.join(PROVINCES)}")
        return value


class ClassSubject(EntitySchema):
    subject: str
    teacher_id: str | None = None

    @field_validator("subject")
    @classmethod
    def _known_subject(cls, value: str) -> str:
        if value not in SUBJECTS:
            raise ValueError(f"unknown subject: {value}")
        return value


class ClassCreate(EntitySchema):
    """A class within a grade."""

    name: str = Field(min_length=1, max_length=100)
    grade: GradeValue
    teacher_id: str | None = None
    subjects: list[ClassSubject] = Field(default_factory=list)
    academic_year: int = Field(ge=2000, le=2100)


class StudentContact(EntitySchema):
    parent_name: str | None = None
    parent_phone: str | None = None
    parent_email: EmailStr | None = None
    address: str | None = None


class StudentCreate(EntitySchema):
    """A learner enrolment."""

    student_number: str = Field(min_length=1, max_length=50)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    date_of_birth: date
    gender: Literal["Male", "Female"]
    grade: GradeValue
    class_id: str
    contact: StudentContact = Field(default_factory=StudentContact)
    enrollment_date: date | None = None


class AssessmentCreate(EntitySchema):
    """An assessment given to one class."""

    title: str = Field(min_length=1, max_length=200)
    subject: str = Field(min_length=1, max_length=100)
    assessment_type: str = "Test"
    term: TermValue
    max_marks: float = Field(ge=1)
    date: date
    class_id: str
    teacher_id: str

    @field_validator("assessment_type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        if value not in ASSESSMENT_TYPES:
            raise ValueError(f"assessment_type must be one of: {', '.join(ASSESSMENT_TYPES)}")
        return value


class AssessmentResultRecord(EntitySchema):
    """One student's marks for an assessment."""

    assessment_id: str
    student_id: str
    marks: float = Field(ge=0)
    percentage: float | None = Field(default=None, ge=0, le=100)


SCHEMAS: dict[str, type[EntitySchema]] = {
    "School": SchoolCreate,
    "Class": ClassCreate,
    "Student": StudentCreate,
    "Assessment": AssessmentCreate,
    "AssessmentResult": AssessmentResultRecord,
}


def validate_record(model_name: str, payload: dict[str, Any]) -> EntitySchema:
    """Validate a plain record against the schema of a model.

    Args:
        model_name: Model name, e.g. "Student".
        payload: Record to check.

    Returns:
        The validated schema instance.

    Raises:
        LookupError: If no schema is registered for model_name.
        RecordValidationError: If the record is invalid.
    """
    schema = SCHEMAS.get(model_name)
    if schema is None:
        raise LookupError(f"No schema registered for model: {model_name}")

    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        raise RecordValidationError(
            model_name,
            [{"loc": err["loc"], "msg": err["msg"], "type": err["type"]} for err in e.errors()],
        ) from e
