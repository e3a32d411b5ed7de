# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam workflow API endpoints.

This module provides endpoints for a class-course's exam record:
- GET /{class_course_id}/exam-record - Get the exam record
- POST /{class_course_id}/exam-record/submit - Submit for approval
- POST /{class_course_id}/exam-record/approve - Approve (dean-level)
- POST /{class_course_id}/exam-record/lock - Lock (terminal)

Every request is authorized by the access mediator first; delegate
access is written to the access ledger before the workflow runs.
"""

import logging

from fastapi import APIRouter

from src.api.dependencies import AuthenticatedActor, Mediator, WorkflowService
from src.models.access_log import AccessSource
from src.models.exam_workflow import ExamRecordResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/{class_course_id}/exam-record",
    response_model=ExamRecordResponse,
    summary="Get exam record",
    description="Get the exam record of a class-course. Absent records are reported as draft.",
)
async def get_exam_record(
    class_course_id: str,
    actor: AuthenticatedActor,
    mediator: Mediator,
    service: WorkflowService,
) -> ExamRecordResponse:
    """Get the exam record of a class-course."""
    await mediator.authorize(actor, actor.institution_id, [class_course_id], AccessSource.GRADING)
    return await service.get_record(class_course_id)


@router.post(
    "/{class_course_id}/exam-record/submit",
    response_model=ExamRecordResponse,
    summary="Submit exam record",
    description="Submit the exam for approval. Retrying a submission returns the record unchanged.",
)
async def submit_exam_record(
    class_course_id: str,
    actor: AuthenticatedActor,
    mediator: Mediator,
    service: WorkflowService,
) -> ExamRecordResponse:
    """Submit the exam record of a class-course."""
    decision = await mediator.authorize(
        actor, actor.institution_id, [class_course_id], AccessSource.WORKFLOW
    )
    return await service.submit(decision, class_course_id)


@router.post(
    "/{class_course_id}/exam-record/approve",
    response_model=ExamRecordResponse,
    summary="Approve exam record",
    description="Approve a submitted exam. Requires a dean-level role.",
)
async def approve_exam_record(
    class_course_id: str,
    actor: AuthenticatedActor,
    mediator: Mediator,
    service: WorkflowService,
) -> ExamRecordResponse:
    """Approve the exam record of a class-course."""
    decision = await mediator.authorize(
        actor, actor.institution_id, [class_course_id], AccessSource.WORKFLOW
    )
    return await service.approve(decision, class_course_id)


@router.post(
    "/{class_course_id}/exam-record/lock",
    response_model=ExamRecordResponse,
    summary="Lock exam record",
    description="Lock an approved exam. Locked records cannot change.",
)
async def lock_exam_record(
    class_course_id: str,
    actor: AuthenticatedActor,
    mediator: Mediator,
    service: WorkflowService,
) -> ExamRecordResponse:
    """Lock the exam record of a class-course."""
    decision = await mediator.authorize(
        actor, actor.institution_id, [class_course_id], AccessSource.WORKFLOW
    )
    return await service.lock(decision, class_course_id)
