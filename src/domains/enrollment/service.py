# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment window service.

This module provides the EnrollmentWindowService class for:
- Scheduling and force-closing enrollment windows
- Listing windows with their effective status
- Bulk auto-enrollment of a class cohort into its class-courses

Auto-enrollment relies on the unique (student, class-course, window)
constraint: rows are inserted with ON CONFLICT DO NOTHING and only the
rows actually inserted are counted as created, so repeated runs are no-ops.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.access.capability import ADMIN_ROLES, Actor, require_role
from src.domains.access.mediator import AccessDecision
from src.domains.enrollment.roster import RosterProvider, SqlRosterProvider
from src.domains.errors import (
    ConflictError,
    NoActiveWindowError,
    NotFoundError,
    WindowValidationError,
)
from src.domains.notifications import queue_workflow_alert
from src.infrastructure.database.connection import storage_guard
from src.infrastructure.database.models import (
    EnrollmentWindow,
    StudentCourseEnrollment,
    new_id,
)
from src.models.enrollment import (
    AutoEnrollResponse,
    EnrollmentWindowCreateRequest,
    EnrollmentWindowResponse,
    WindowStatus,
)
from src.models.notification import WorkflowAlert
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)

# Rows per INSERT statement; all chunks share one transaction.
INSERT_CHUNK_SIZE = 1000


def resolve_window_status(window: EnrollmentWindow, now: datetime | None = None) -> WindowStatus:
    """Compute the effective status of a window at a point in time.

    A force-closed window stays closed. Otherwise the status follows the
    bounds: scheduled before opens_at, open until closes_at, closed after.

    Args:
        window: Window to evaluate.
        now: Reference time, defaults to the current time.

    Returns:
        Effective WindowStatus.
    """
    if window.status == WindowStatus.CLOSED.value:
        return WindowStatus.CLOSED

    now = ensure_utc(now or utc_now())
    if now < ensure_utc(window.opens_at):
        return WindowStatus.SCHEDULED
    if now < ensure_utc(window.closes_at):
        return WindowStatus.OPEN
    return WindowStatus.CLOSED


def _to_response(window: EnrollmentWindow, now: datetime | None = None) -> EnrollmentWindowResponse:
    return EnrollmentWindowResponse(
        id=window.id,
        class_id=window.class_id,
        academic_year_id=window.academic_year_id,
        institution_id=window.institution_id,
        opens_at=window.opens_at,
        closes_at=window.closes_at,
        status=resolve_window_status(window, now),
        closed_by_profile_id=window.closed_by_profile_id,
        closed_at=window.closed_at,
    )


class EnrollmentWindowService:
    """Service for enrollment windows and cohort auto-enrollment.

    Attributes:
        db: Async database session.
        roster: Provider of class rosters.
        timeout: Seconds allowed for one storage round-trip.
    """

    def __init__(
        self,
        db: AsyncSession,
        roster: RosterProvider | None = None,
        timeout: float | None = None,
    ) -> None:
        self.db = db
        self.roster = roster or SqlRosterProvider(db, timeout)
        self.timeout = timeout

    async def schedule_window(
        self,
        request: EnrollmentWindowCreateRequest,
        actor: Actor,
    ) -> EnrollmentWindowResponse:
        """Schedule the enrollment window of a class for an academic year.

        Args:
            request: Window bounds and target class/year.
            actor: Acting administrator.

        Returns:
            The created window.

        Raises:
            UnauthorizedError: If the actor is not an administrator.
            WindowValidationError: If closes_at is not after opens_at.
            ConflictError: If the class already has a window for that year.
            TransientStorageError: If the storage call failed.
        """
        require_role(actor, ADMIN_ROLES, "schedule enrollment windows")

        opens_at = ensure_utc(request.opens_at)
        closes_at = ensure_utc(request.closes_at)
        if closes_at <= opens_at:
            raise WindowValidationError(
                "Enrollment window must close after it opens",
                details={"opens_at": opens_at.isoformat(), "closes_at": closes_at.isoformat()},
            )

        window_id = new_id()
        async with storage_guard(self.db, "enrollment.schedule_window", self.timeout):
            result = await self.db.execute(
                pg_insert(EnrollmentWindow)
                .values(
                    id=window_id,
                    class_id=request.class_id,
                    academic_year_id=request.academic_year_id,
                    institution_id=actor.institution_id,
                    opens_at=opens_at,
                    closes_at=closes_at,
                    status=WindowStatus.SCHEDULED.value,
                )
                .on_conflict_do_nothing(index_elements=["class_id", "academic_year_id"])
                .returning(EnrollmentWindow.id)
            )
            inserted = result.scalar_one_or_none()
            if inserted is not None:
                await queue_workflow_alert(
                    self.db,
                    WorkflowAlert.ENROLLMENT_SCHEDULED,
                    {
                        "window_id": window_id,
                        "class_id": request.class_id,
                        "academic_year_id": request.academic_year_id,
                        "opens_at": opens_at.isoformat(),
                        "closes_at": closes_at.isoformat(),
                    },
                    actor.institution_id,
                )
                await self.db.commit()
            else:
                await self.db.rollback()

        if inserted is None:
            raise ConflictError(
                "Class already has an enrollment window for this academic year",
                details={"class_id": request.class_id, "academic_year_id": request.academic_year_id},
            )

        logger.info(
            "Scheduled enrollment window: id=%s, class=%s, year=%s, by=%s",
            window_id,
            request.class_id,
            request.academic_year_id,
            actor.profile_id,
        )

        window = EnrollmentWindow(
            id=window_id,
            class_id=request.class_id,
            academic_year_id=request.academic_year_id,
            institution_id=actor.institution_id,
            opens_at=opens_at,
            closes_at=closes_at,
            status=WindowStatus.SCHEDULED.value,
        )
        return _to_response(window)

    async def close_window(self, window_id: str, actor: Actor) -> EnrollmentWindowResponse:
        """Force-close an enrollment window. Closing is terminal and idempotent.

        Raises:
            UnauthorizedError: If the actor is not an administrator.
            NotFoundError: If the window does not exist in the actor's institution.
            TransientStorageError: If the storage call failed.
        """
        require_role(actor, ADMIN_ROLES, "close enrollment windows")

        now = utc_now()
        stmt = (
            update(EnrollmentWindow)
            .where(
                EnrollmentWindow.id == window_id,
                EnrollmentWindow.institution_id == actor.institution_id,
                EnrollmentWindow.status != WindowStatus.CLOSED.value,
            )
            .values(
                status=WindowStatus.CLOSED.value,
                closed_by_profile_id=actor.profile_id,
                closed_at=now,
                updated_at=now,
            )
            .returning(EnrollmentWindow)
            .execution_options(synchronize_session=False, populate_existing=True)
        )

        async with storage_guard(self.db, "enrollment.close_window", self.timeout):
            result = await self.db.execute(stmt)
            window = result.scalar_one_or_none()
            closed = window is not None
            if closed:
                await queue_workflow_alert(
                    self.db,
                    WorkflowAlert.ENROLLMENT_CLOSED,
                    {
                        "window_id": window_id,
                        "class_id": window.class_id,
                        "academic_year_id": window.academic_year_id,
                        "closed_by_profile_id": actor.profile_id,
                    },
                    actor.institution_id,
                )
                await self.db.commit()
            else:
                await self.db.rollback()
                window = await self._load(window_id, actor.institution_id)

        if window is None:
            raise NotFoundError("Enrollment window not found", details={"window_id": window_id})

        if closed:
            logger.info("Closed enrollment window: id=%s, by=%s", window_id, actor.profile_id)
        else:
            logger.debug("Enrollment window already closed: id=%s", window_id)
        return _to_response(window, now)

    async def get_window(self, window_id: str, institution_id: str) -> EnrollmentWindowResponse:
        """Get one window with its effective status.

        Raises:
            NotFoundError: If the window does not exist in the institution.
        """
        async with storage_guard(self.db, "enrollment.get_window", self.timeout):
            window = await self._load(window_id, institution_id)

        if window is None:
            raise NotFoundError("Enrollment window not found", details={"window_id": window_id})
        return _to_response(window)

    async def list_windows(
        self,
        institution_id: str,
        class_id: str | None = None,
        academic_year_id: str | None = None,
    ) -> list[EnrollmentWindowResponse]:
        """List windows of an institution, latest opening first."""
        conditions = [EnrollmentWindow.institution_id == institution_id]
        if class_id:
            conditions.append(EnrollmentWindow.class_id == class_id)
        if academic_year_id:
            conditions.append(EnrollmentWindow.academic_year_id == academic_year_id)

        async with storage_guard(self.db, "enrollment.list_windows", self.timeout):
            result = await self.db.execute(
                select(EnrollmentWindow)
                .where(*conditions)
                .order_by(EnrollmentWindow.opens_at.desc())
            )
            windows = result.scalars().all()

        now = utc_now()
        return [_to_response(w, now) for w in windows]

    async def auto_enroll(
        self,
        class_id: str,
        academic_year_id: str,
        decision: AccessDecision,
    ) -> AutoEnrollResponse:
        """Enroll every student of a class into the class-courses of a decision.

        Already enrolled (student, class-course) pairs are skipped, so a
        second run over an unchanged roster creates nothing.

        Args:
            class_id: Class whose roster is enrolled.
            academic_year_id: Academic year of the enrollment window.
            decision: Access decision over the class's class-courses.

        Returns:
            AutoEnrollResponse with created and skipped counts.

        Raises:
            NoActiveWindowError: If the class has no open window for the year.
            TransientStorageError: If a storage call failed; nothing was committed.
        """
        actor = decision.actor

        async with storage_guard(self.db, "enrollment.resolve_window", self.timeout):
            result = await self.db.execute(
                select(EnrollmentWindow).where(
                    EnrollmentWindow.class_id == class_id,
                    EnrollmentWindow.academic_year_id == academic_year_id,
                    EnrollmentWindow.institution_id == actor.institution_id,
                )
            )
            window = result.scalar_one_or_none()

        if window is None or resolve_window_status(window) is not WindowStatus.OPEN:
            raise NoActiveWindowError(
                "No open enrollment window for this class and academic year",
                details={
                    "class_id": class_id,
                    "academic_year_id": academic_year_id,
                    "window_status": resolve_window_status(window).value if window else None,
                },
            )

        students = list(dict.fromkeys(await self.roster.list_students(class_id)))
        class_course_ids = decision.class_course_ids

        rows = [
            {
                "id": new_id(),
                "student_profile_id": student_id,
                "class_course_id": class_course_id,
                "window_id": window.id,
                "class_id": class_id,
                "academic_year_id": academic_year_id,
                "enrolled_by_profile_id": actor.profile_id,
                "status": "active",
            }
            for student_id in students
            for class_course_id in class_course_ids
        ]

        created = 0
        if rows:
            async with storage_guard(self.db, "enrollment.auto_enroll", self.timeout):
                for start in range(0, len(rows), INSERT_CHUNK_SIZE):
                    chunk = rows[start : start + INSERT_CHUNK_SIZE]
                    result = await self.db.execute(
                        pg_insert(StudentCourseEnrollment)
                        .values(chunk)
                        .on_conflict_do_nothing(
                            index_elements=["student_profile_id", "class_course_id", "window_id"]
                        )
                        .returning(StudentCourseEnrollment.id)
                    )
                    created += len(result.scalars().all())
                await self.db.commit()

        skipped = len(rows) - created
        logger.info(
            "Auto-enrolled class %s: window=%s, created=%d, skipped=%d, by=%s, delegate=%s",
            class_id,
            window.id,
            created,
            skipped,
            actor.profile_id,
            decision.is_delegate,
        )

        return AutoEnrollResponse(
            window_id=window.id,
            created=created,
            skipped=skipped,
            class_course_ids=class_course_ids,
        )

    async def _load(self, window_id: str, institution_id: str) -> EnrollmentWindow | None:
        result = await self.db.execute(
            select(EnrollmentWindow)
            .where(
                EnrollmentWindow.id == window_id,
                EnrollmentWindow.institution_id == institution_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()
