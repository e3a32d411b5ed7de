# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment window API endpoints.

This module provides endpoints for enrollment windows and cohort enrollment:
- POST /enrollment-windows - Schedule a window
- GET /enrollment-windows - List windows
- GET /enrollment-windows/{window_id} - Get window details
- POST /enrollment-windows/{window_id}/close - Force-close a window
- POST /classes/{class_id}/auto-enroll - Enroll a class roster

Window management requires an administrator role.
"""

import logging

from fastapi import APIRouter, Query, status

from src.api.dependencies import AuthenticatedActor, EnrollmentService, Mediator
from src.models.access_log import AccessSource
from src.models.enrollment import (
    AutoEnrollRequest,
    AutoEnrollResponse,
    EnrollmentWindowCreateRequest,
    EnrollmentWindowListResponse,
    EnrollmentWindowResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/enrollment-windows",
    response_model=EnrollmentWindowResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule enrollment window",
    description="Schedule the enrollment window of a class for an academic year.",
)
async def schedule_window(
    data: EnrollmentWindowCreateRequest,
    actor: AuthenticatedActor,
    service: EnrollmentService,
) -> EnrollmentWindowResponse:
    """Schedule an enrollment window."""
    return await service.schedule_window(data, actor)


@router.get(
    "/enrollment-windows",
    response_model=EnrollmentWindowListResponse,
    summary="List enrollment windows",
)
async def list_windows(
    actor: AuthenticatedActor,
    service: EnrollmentService,
    class_id: str | None = Query(None, description="Filter by class"),
    academic_year_id: str | None = Query(None, description="Filter by academic year"),
) -> EnrollmentWindowListResponse:
    """List enrollment windows of the actor's institution."""
    items = await service.list_windows(
        actor.institution_id,
        class_id=class_id,
        academic_year_id=academic_year_id,
    )
    return EnrollmentWindowListResponse(items=items, total=len(items))


@router.get(
    "/enrollment-windows/{window_id}",
    response_model=EnrollmentWindowResponse,
    summary="Get enrollment window",
)
async def get_window(
    window_id: str,
    actor: AuthenticatedActor,
    service: EnrollmentService,
) -> EnrollmentWindowResponse:
    """Get one enrollment window."""
    return await service.get_window(window_id, actor.institution_id)


@router.post(
    "/enrollment-windows/{window_id}/close",
    response_model=EnrollmentWindowResponse,
    summary="Close enrollment window",
    description="Force-close a window. Closing is terminal.",
)
async def close_window(
    window_id: str,
    actor: AuthenticatedActor,
    service: EnrollmentService,
) -> EnrollmentWindowResponse:
    """Force-close an enrollment window."""
    return await service.close_window(window_id, actor)


@router.post(
    "/classes/{class_id}/auto-enroll",
    response_model=AutoEnrollResponse,
    summary="Auto-enroll class roster",
    description=(
        "Enroll every student of the class into each class-course offered for "
        "the academic year. Already enrolled pairs are skipped."
    ),
)
async def auto_enroll(
    class_id: str,
    data: AutoEnrollRequest,
    actor: AuthenticatedActor,
    mediator: Mediator,
    service: EnrollmentService,
) -> AutoEnrollResponse:
    """Auto-enroll a class roster."""
    decision = await mediator.authorize_class(
        actor,
        actor.institution_id,
        class_id,
        data.academic_year_id,
        AccessSource.ENROLLMENT,
    )
    return await service.auto_enroll(class_id, data.academic_year_id, decision)
