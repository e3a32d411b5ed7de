# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Roster lookups over the class master-data projection."""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.connection import storage_guard
from src.infrastructure.database.models import ClassCourse, ClassStudent


class RosterProvider(Protocol):
    """Source of class rosters and class-course offerings."""

    async def list_students(self, class_id: str) -> list[str]:
        ...

    async def list_class_courses(
        self, class_id: str, academic_year_id: str, institution_id: str
    ) -> list[str]:
        ...


class SqlRosterProvider:
    """Roster provider reading class_students and class_courses.

    Attributes:
        db: Async database session.
        timeout: Seconds allowed for one storage round-trip.
    """

    def __init__(self, db: AsyncSession, timeout: float | None = None) -> None:
        self.db = db
        self.timeout = timeout

    async def list_students(self, class_id: str) -> list[str]:
        """List active student profile ids of a class."""
        async with storage_guard(self.db, "roster.students", self.timeout):
            result = await self.db.execute(
                select(ClassStudent.student_profile_id)
                .where(
                    ClassStudent.class_id == class_id,
                    ClassStudent.status == "active",
                )
                .order_by(ClassStudent.student_profile_id)
            )
            return list(result.scalars().all())

    async def list_class_courses(
        self, class_id: str, academic_year_id: str, institution_id: str
    ) -> list[str]:
        """List class-course ids a class is offered in an academic year."""
        async with storage_guard(self.db, "roster.class_courses", self.timeout):
            result = await self.db.execute(
                select(ClassCourse.id)
                .where(
                    ClassCourse.class_id == class_id,
                    ClassCourse.academic_year_id == academic_year_id,
                    ClassCourse.institution_id == institution_id,
                )
                .order_by(ClassCourse.id)
            )
            return list(result.scalars().all())
