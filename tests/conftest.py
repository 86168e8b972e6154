# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (services against an in-memory SQLite database)
- Integration tests (the FastAPI app against a file SQLite database)

SchoolData builds the ORM objects of one school. It only creates objects;
the ``persist`` fixture (async) or ``persist_sync`` (plain sessions) writes
them, one dependency level at a time so foreign keys always resolve.
"""

from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.orm import Session

from eduanalytics.domains.marks import compute_percentage
from eduanalytics.infrastructure.database.connection import Database
from eduanalytics.infrastructure.database.models import (
    Assessment,
    AssessmentResult,
    Class,
    School,
    Student,
    User,
    generate_uuid,
)


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Seed Data
# =============================================================================


@dataclass
class SchoolData:
    """ORM objects of one school, ready to be persisted."""

    school: School
    teacher: User
    classes: list[Class]
    students: list[Student]
    assessments: list[Assessment] = field(default_factory=list)
    results: list[AssessmentResult] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.school.id

    def groups(self) -> list[list[Any]]:
        """Objects grouped by dependency level, parents first."""
        return [
            [self.school],
            [self.teacher],
            self.classes,
            self.students,
            self.assessments,
            self.results,
        ]

    def add_assessment(
        self,
        subject: str = "Mathematics",
        term: int = 1,
        max_marks: float = 100,
        assessment_type: str = "Test",
        class_index: int = 0,
        title: str | None = None,
    ) -> Assessment:
        """Add an assessment for one of the school's classes."""
        klass = self.classes[class_index]
        assessment = Assessment(
            id=generate_uuid(),
            school_id=self.id,
            class_id=klass.id,
            teacher_id=self.teacher.id,
            title=title or f"{subject} {assessment_type} T{term} #{len(self.assessments) + 1}",
            subject=subject,
            assessment_type=assessment_type,
            term=term,
            max_marks=max_marks,
            date=date(2025, 2 + term, 10 + len(self.assessments) % 10),
        )
        self.assessments.append(assessment)
        return assessment

    def add_result(self, assessment: Assessment, student: Student, marks: float) -> AssessmentResult:
        """Add a result with its percentage computed from the marks."""
        result = AssessmentResult(
            id=generate_uuid(),
            school_id=self.id,
            assessment_id=assessment.id,
            student_id=student.id,
            marks=marks,
            percentage=compute_percentage(marks, assessment.max_marks),
        )
        self.results.append(result)
        return result


def build_school(
    code: str,
    student_count: int = 5,
    grades: tuple[int, ...] = (10,),
) -> SchoolData:
    """Build a school with one teacher, one class per grade and its students.

    Students are spread over the classes round-robin.

    Args:
        code: Short unique code used in names, numbers and emails.
        student_count: Number of students.
        grades: Grade of each class.
    """
    school_id = generate_uuid()
    school = School(
        id=school_id,
        name=f"{code.upper()} High School",
        emis_number=f"EMIS-{code.upper()}",
        province="Gauteng",
        district="Johannesburg East",
        address={"street": "1 Main Road", "city": "Johannesburg", "postal_code": "2001"},
        contact={"phone": "0110000000", "email": f"office@{code}.school.za"},
        academic_year=2025,
        terms={
            "term1": {"start": "2025-01-15", "end": "2025-03-28"},
            "term2": {"start": "2025-04-08", "end": "2025-06-27"},
        },
    )
    teacher = User(
        id=generate_uuid(),
        school_id=school_id,
        first_name="Thandi",
        last_name="Mokoena",
        email=f"teacher@{code}.school.za",
        password_hash="not-a-real-hash",
        role="teacher",
        subjects=["Mathematics", "English"],
    )
    classes = [
        Class(
            id=generate_uuid(),
            school_id=school_id,
            name=f"{grade}A",
            grade=grade,
            teacher_id=teacher.id,
            subjects=[{"subject": "Mathematics", "teacher_id": teacher.id}],
            academic_year=2025,
        )
        for grade in grades
    ]
    teacher.class_ids = [c.id for c in classes]

    students = []
    for i in range(student_count):
        klass = classes[i % len(classes)]
        students.append(
            Student(
                id=generate_uuid(),
                school_id=school_id,
                class_id=klass.id,
                student_number=f"{code.upper()}-{i + 1:03d}",
                first_name=f"Learner{i + 1}",
                last_name=f"{code.capitalize()}{i + 1:02d}",
                date_of_birth=date(2009, 1 + i % 12, 1 + i % 28),
                gender="Female" if i % 2 else "Male",
                grade=klass.grade,
                contact={"parent_name": f"Parent {i + 1}"},
                enrollment_date=date(2024, 1, 15),
            )
        )

    return SchoolData(school=school, teacher=teacher, classes=classes, students=students)


def persist_sync(session: Session, *datasets: SchoolData) -> None:
    """Write seed data through a synchronous session and commit."""
    for data in datasets:
        for group in data.groups():
            session.add_all(group)
            session.flush()
    session.commit()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    """Provide an empty in-memory SQLite database with all tables."""
    db = Database.from_url("sqlite+aiosqlite:///:memory:")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def school_factory() -> Callable[..., SchoolData]:
    """Provide the school seed builder."""
    return build_school


@pytest.fixture
def persist(database: Database) -> Callable[..., Any]:
    """Provide an async function writing seed data to the test database."""

    async def _persist(*datasets: SchoolData) -> None:
        async with database.session() as session:
            for data in datasets:
                for group in data.groups():
                    session.add_all(group)
                    await session.flush()

    return _persist


@pytest.fixture
def sync_persist() -> Callable[..., None]:
    """Provide the synchronous seed writer."""
    return persist_sync


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_school_id() -> str:
    """Provide a sample school ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def sample_student_payload() -> dict[str, Any]:
    """Provide a valid student record for validation tests."""
    return {
        "student_number": "GP-2025-001",
        "first_name": "  Sipho ",
        "last_name": "Ndlovu",
        "date_of_birth": "2009-04-12",
        "gender": "Male",
        "grade": 10,
        "class_id": "550e8400-e29b-41d4-a716-446655440010",
        "contact": {"parent_name": "Zanele Ndlovu", "parent_email": "zanele.ndlovu@gmail.com"},
    }
