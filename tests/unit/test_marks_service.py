# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the marks entry service."""

import pytest
import pytest_asyncio
from sqlalchemy import select

from eduanalytics.domains.marks import (
    AssessmentNotFoundError,
    MarkInput,
    MarksService,
    compute_percentage,
)
from eduanalytics.infrastructure.database.connection import DatabaseError
from eduanalytics.infrastructure.database.models import AssessmentResult


@pytest_asyncio.fixture
async def marked_school(persist, school_factory):
    """A school with three students and an assessment out of 80."""
    school = school_factory("lima", student_count=3)
    school.add_assessment("Mathematics", max_marks=80)
    other = school_factory("mike", student_count=1)
    await persist(school, other)
    return school, other


class TestComputePercentage:
    """Tests for compute_percentage."""

    def test_percentage(self) -> None:
        """Test marks are scaled to a percentage of max marks."""
        assert compute_percentage(40, 80) == 50.0
        assert compute_percentage(0, 80) == 0.0
        assert compute_percentage(80, 80) == 100.0

    def test_non_positive_max_rejected(self) -> None:
        """Test max marks must be positive."""
        with pytest.raises(ValueError):
            compute_percentage(10, 0)


class TestRecordMarks:
    """Tests for record_marks."""

    @pytest.mark.asyncio
    async def test_saves_valid_entries(self, database, marked_school) -> None:
        """Test every valid entry is saved with its percentage."""
        school, _ = marked_school
        assessment = school.assessments[0]

        async with database.session() as session:
            result = await MarksService(session).record_marks(
                school.id,
                assessment.id,
                [MarkInput(s.id, marks) for s, marks in zip(school.students, (40, 60, 80))],
            )

        assert result.saved_count == 3
        assert result.failed_count == 0
        assert result.is_partial is False
        assert [o.percentage for o in result.outcomes] == [50.0, 75.0, 100.0]

        async with database.session() as session:
            stored = (await session.scalars(select(AssessmentResult))).all()
        assert len(stored) == 3
        assert all(r.percentage == compute_percentage(r.marks, 80) for r in stored)

    @pytest.mark.asyncio
    async def test_reports_partial_failure(self, database, marked_school) -> None:
        """Test invalid entries are reported per row while valid ones are saved."""
        school, other = marked_school
        assessment = school.assessments[0]

        async with database.session() as session:
            result = await MarksService(session).record_marks(
                school.id,
                assessment.id,
                [
                    MarkInput(school.students[0].id, 70),
                    MarkInput(school.students[1].id, 95),
                    MarkInput(other.students[0].id, 50),
                    MarkInput("no-such-student", 10),
                ],
            )

        assert result.is_partial is True
        assert [o.status for o in result.outcomes] == ["saved", "failed", "failed", "failed"]
        assert result.outcomes[1].reason == "Marks must be between 0 and 80"
        assert result.outcomes[2].reason == "Student not found"
        assert result.outcomes[3].reason == "Student not found"
        assert result.to_dict()["saved"] == 1
        assert result.to_dict()["failed"] == 3

        async with database.session() as session:
            stored = (await session.scalars(select(AssessmentResult))).all()
        assert [r.student_id for r in stored] == [school.students[0].id]

    @pytest.mark.asyncio
    async def test_upserts_existing_result(self, database, marked_school) -> None:
        """Test re-entering marks updates the existing result."""
        school, _ = marked_school
        assessment = school.assessments[0]
        student = school.students[0]

        for marks in (20, 60):
            async with database.session() as session:
                await MarksService(session).record_marks(
                    school.id, assessment.id, [MarkInput(student.id, marks)]
                )

        async with database.session() as session:
            stored = (await session.scalars(select(AssessmentResult))).all()
        assert len(stored) == 1
        assert stored[0].marks == 60
        assert stored[0].percentage == 75.0

    @pytest.mark.asyncio
    async def test_duplicate_entries_in_one_request(self, database, marked_school) -> None:
        """Test the last entry for a student wins within one request."""
        school, _ = marked_school
        assessment = school.assessments[0]
        student = school.students[0]

        async with database.session() as session:
            result = await MarksService(session).record_marks(
                school.id,
                assessment.id,
                [MarkInput(student.id, 10), MarkInput(student.id, 30)],
            )

        assert result.saved_count == 2
        async with database.session() as session:
            stored = (await session.scalars(select(AssessmentResult))).all()
        assert [r.marks for r in stored] == [30]

    @pytest.mark.asyncio
    async def test_assessment_of_other_school(self, database, marked_school) -> None:
        """Test an assessment outside the school is not found."""
        school, other = marked_school

        async with database.session() as session:
            with pytest.raises(AssessmentNotFoundError):
                await MarksService(session).record_marks(
                    other.id, school.assessments[0].id, [MarkInput(other.students[0].id, 10)]
                )

    @pytest.mark.asyncio
    async def test_database_failure_rolls_back_all_rows(self, database, marked_school) -> None:
        """Test a store failure saves none of the batch."""
        school, _ = marked_school
        assessment = school.assessments[0]

        with pytest.raises(DatabaseError):
            async with database.session() as session:
                await MarksService(session).record_marks(
                    school.id,
                    assessment.id,
                    [MarkInput(s.id, 50) for s in school.students],
                )
                # Violates the assessment foreign key at commit.
                session.add(
                    AssessmentResult(
                        school_id=school.id,
                        assessment_id="no-such-assessment",
                        student_id=school.students[0].id,
                        marks=1,
                        percentage=1,
                    )
                )

        async with database.session() as session:
            stored = (await session.scalars(select(AssessmentResult))).all()
        assert stored == []


class TestGetMarks:
    """Tests for get_marks."""

    @pytest.mark.asyncio
    async def test_roster_with_marks(self, database, marked_school) -> None:
        """Test the class roster is returned with marks where entered."""
        school, _ = marked_school
        assessment = school.assessments[0]

        async with database.session() as session:
            await MarksService(session).record_marks(
                school.id, assessment.id, [MarkInput(school.students[1].id, 40)]
            )

        async with database.session() as session:
            roster = await MarksService(session).get_marks(school.id, assessment.id)

        assert [r.student_number for r in roster] == ["LIMA-001", "LIMA-002", "LIMA-003"]
        assert [r.marks for r in roster] == [None, 40, None]
        assert roster[1].percentage == 50.0
