# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam workflow service.

This module provides the ExamWorkflowService class which moves a
class-course's exam record through draft -> submitted -> approved -> locked.

Each transition is one conditional UPDATE keyed by class_course_id and the
expected current status. The database decides which of two racing calls
wins; the loser re-reads the record and gets InvalidTransitionError naming
the winner's state.
"""

from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import WorkflowSettings
from src.domains.access.capability import APPROVER_ROLES, Capability, require_role
from src.domains.access.mediator import AccessDecision
from src.domains.errors import (
    EmptyRosterError,
    InvalidTransitionError,
    UnauthorizedError,
)
from src.domains.exam_workflow.transitions import (
    PREVIOUS_STAGE_AT,
    STAGE_COLUMNS,
    AlreadyApplied,
    Rejected,
    plan_transition,
)
from src.infrastructure.database.connection import storage_guard
from src.infrastructure.database.models import (
    ExamRecord,
    StudentCourseEnrollment,
    new_id,
)
from src.domains.notifications import queue_workflow_alert
from src.models.exam_workflow import ExamAction, ExamRecordResponse, ExamStatus
from src.models.notification import WorkflowAlert
from src.utils.datetime import latest, utc_now

logger = logging.getLogger(__name__)

TRANSITION_ALERTS: dict[ExamAction, WorkflowAlert] = {
    ExamAction.SUBMIT: WorkflowAlert.EXAM_SUBMITTED,
    ExamAction.APPROVE: WorkflowAlert.GRADE_VALIDATED,
    ExamAction.LOCK: WorkflowAlert.EXAM_LOCKED,
}


class ExamWorkflowService:
    """Service driving the exam approval lifecycle.

    Every operation takes the AccessDecision produced by the access
    mediator, so identity and capability are never re-resolved here.

    Attributes:
        db: Async database session.
        settings: Workflow policy settings.
        timeout: Seconds allowed for one storage round-trip.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: WorkflowSettings | None = None,
        timeout: float | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or WorkflowSettings()
        self.timeout = timeout

    async def get_record(self, class_course_id: str) -> ExamRecordResponse:
        """Get the exam record of a class-course.

        A class-course without a stored record is reported as draft.

        Args:
            class_course_id: Class-course to read.

        Returns:
            ExamRecordResponse with the current state.
        """
        async with storage_guard(self.db, "exam_workflow.get", self.timeout):
            record = await self._load(class_course_id)

        if record is None:
            return ExamRecordResponse(class_course_id=class_course_id, status=ExamStatus.DRAFT)
        return ExamRecordResponse.model_validate(record)

    async def submit(self, decision: AccessDecision, class_course_id: str) -> ExamRecordResponse:
        """Submit an exam record for approval.

        Creates the record as draft when absent. Submitting an already
        submitted record returns it unchanged.

        Args:
            decision: Access decision covering the class-course.
            class_course_id: Class-course whose exam is submitted.

        Returns:
            ExamRecordResponse in status submitted.

        Raises:
            InvalidTransitionError: If the record is approved or locked.
            EmptyRosterError: If roster checks are enabled and nobody is enrolled.
            UnauthorizedError: If the decision does not cover the class-course.
            TransientStorageError: If the storage call failed.
        """
        decision.capability_for(class_course_id)

        if self.settings.require_roster_for_submission:
            await self._ensure_roster(class_course_id)

        return await self._apply(decision, class_course_id, ExamAction.SUBMIT)

    async def approve(self, decision: AccessDecision, class_course_id: str) -> ExamRecordResponse:
        """Approve a submitted exam record.

        Only dean-level approvers may approve. Unless self-approval is
        allowed, the approver must be neither the submitter nor the owning
        teacher.

        Args:
            decision: Access decision covering the class-course.
            class_course_id: Class-course whose exam is approved.

        Returns:
            ExamRecordResponse in status approved.

        Raises:
            UnauthorizedError: If the actor may not approve this record.
            InvalidTransitionError: If the record is not submitted, including
                when a concurrent approval won the race.
            TransientStorageError: If the storage call failed.
        """
        require_role(decision.actor, APPROVER_ROLES, "approve exam records")
        capability = decision.capability_for(class_course_id)

        def check_approver(record: ExamRecord) -> None:
            if self.settings.allow_self_approval:
                return
            actor_id = decision.actor.profile_id
            if capability is Capability.OWNER or record.submitted_by_profile_id == actor_id:
                raise UnauthorizedError(
                    "Exam records cannot be approved by their submitter or owner",
                    details={"class_course_id": class_course_id, "actor_profile_id": actor_id},
                )

        return await self._apply(
            decision, class_course_id, ExamAction.APPROVE, guard=check_approver
        )

    async def lock(self, decision: AccessDecision, class_course_id: str) -> ExamRecordResponse:
        """Lock an approved exam record. Locked is terminal.

        Raises:
            InvalidTransitionError: If the record is not approved.
            UnauthorizedError: If the decision does not cover the class-course.
            TransientStorageError: If the storage call failed.
        """
        decision.capability_for(class_course_id)
        return await self._apply(decision, class_course_id, ExamAction.LOCK)

    async def _apply(
        self,
        decision: AccessDecision,
        class_course_id: str,
        action: ExamAction,
        guard: Callable[[ExamRecord], None] | None = None,
    ) -> ExamRecordResponse:
        """Apply one transition with compare-and-set on the current status."""
        actor = decision.actor
        operation = f"exam_workflow.{action.value}"

        async with storage_guard(self.db, operation, self.timeout):
            record = await self._load(class_course_id)
            if record is None and action is ExamAction.SUBMIT:
                record = await self._create_draft(class_course_id, actor.institution_id)

        current = ExamStatus(record.status) if record is not None else ExamStatus.DRAFT
        plan = plan_transition(current, action)

        if isinstance(plan, AlreadyApplied):
            logger.info(
                "Exam %s already applied: class_course=%s, actor=%s",
                action.value,
                class_course_id,
                actor.profile_id,
            )
            return ExamRecordResponse.model_validate(record)

        if isinstance(plan, Rejected):
            logger.warning(
                "Rejected exam %s: class_course=%s, status=%s, actor=%s",
                action.value,
                class_course_id,
                plan.current.value,
                actor.profile_id,
            )
            raise InvalidTransitionError(
                plan.current.value, plan.requested.value, class_course_id
            )

        if guard is not None:
            guard(record)

        by_column, at_column = STAGE_COLUMNS[action]
        previous_column = PREVIOUS_STAGE_AT[action]
        previous_at = getattr(record, previous_column) if previous_column else None
        stamped_at = latest(utc_now(), previous_at)

        stmt = (
            update(ExamRecord)
            .where(
                ExamRecord.class_course_id == class_course_id,
                ExamRecord.status == plan.source.value,
            )
            .values(
                {
                    "status": plan.target.value,
                    by_column: actor.profile_id,
                    at_column: stamped_at,
                    "updated_at": utc_now(),
                }
            )
            .returning(ExamRecord)
            .execution_options(synchronize_session=False, populate_existing=True)
        )

        async with storage_guard(self.db, operation, self.timeout):
            result = await self.db.execute(stmt)
            updated = result.scalar_one_or_none()
            if updated is not None:
                await queue_workflow_alert(
                    self.db,
                    TRANSITION_ALERTS[action],
                    {
                        "class_course_id": class_course_id,
                        "status": plan.target.value,
                        "actor_profile_id": actor.profile_id,
                    },
                    updated.institution_id,
                    # Approval notifies the teacher who submitted.
                    recipient_profile_id=(
                        updated.submitted_by_profile_id
                        if action is ExamAction.APPROVE
                        else None
                    ),
                )
                await self.db.commit()
            else:
                await self.db.rollback()
                winner = await self._load(class_course_id)

        if updated is None:
            winner_status = winner.status if winner is not None else ExamStatus.DRAFT.value
            logger.warning(
                "Lost exam %s race: class_course=%s, now=%s, actor=%s",
                action.value,
                class_course_id,
                winner_status,
                actor.profile_id,
            )
            raise InvalidTransitionError(winner_status, action.value, class_course_id)

        logger.info(
            "Exam record %s -> %s: class_course=%s, actor=%s, delegate=%s",
            plan.source.value,
            plan.target.value,
            class_course_id,
            actor.profile_id,
            decision.capability_for(class_course_id) is Capability.DELEGATE,
        )
        return ExamRecordResponse.model_validate(updated)

    async def _load(self, class_course_id: str) -> ExamRecord | None:
        result = await self.db.execute(
            select(ExamRecord)
            .where(ExamRecord.class_course_id == class_course_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _create_draft(self, class_course_id: str, institution_id: str) -> ExamRecord | None:
        """Insert a draft record unless a concurrent call already did, then read it."""
        await self.db.execute(
            pg_insert(ExamRecord)
            .values(
                id=new_id(),
                class_course_id=class_course_id,
                institution_id=institution_id,
                status=ExamStatus.DRAFT.value,
            )
            .on_conflict_do_nothing(index_elements=["class_course_id"])
        )
        return await self._load(class_course_id)

    async def _ensure_roster(self, class_course_id: str) -> None:
        async with storage_guard(self.db, "exam_workflow.roster", self.timeout):
            result = await self.db.execute(
                select(func.count())
                .select_from(StudentCourseEnrollment)
                .where(StudentCourseEnrollment.class_course_id == class_course_id)
            )
            enrolled = result.scalar() or 0

        if enrolled == 0:
            raise EmptyRosterError(
                "Cannot submit an exam for a class course without enrolled students",
                details={"class_course_id": class_course_id},
            )
