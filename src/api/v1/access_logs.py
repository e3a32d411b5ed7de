# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access ledger API endpoints.

- GET / - List delegate access entries of the actor's institution

Reading the ledger requires a dean-level role.
"""

from fastapi import APIRouter, Query

from src.api.dependencies import AuthenticatedActor, Ledger
from src.domains.access.capability import APPROVER_ROLES, require_role
from src.models.access_log import AccessLogListResponse

router = APIRouter()


@router.get(
    "",
    response_model=AccessLogListResponse,
    summary="List access log entries",
    description="List delegate accesses, newest first.",
)
async def list_access_logs(
    actor: AuthenticatedActor,
    ledger: Ledger,
    class_course_id: str | None = Query(None, description="Filter by class-course"),
    actor_profile_id: str | None = Query(None, description="Filter by acting profile"),
    limit: int = Query(100, ge=1, le=500),
) -> AccessLogListResponse:
    """List access ledger entries."""
    require_role(actor, APPROVER_ROLES, "read the access log")
    items, total = await ledger.list_entries(
        actor.institution_id,
        class_course_id=class_course_id,
        actor_profile_id=actor_profile_id,
        limit=limit,
    )
    return AccessLogListResponse(items=items, total=total)
