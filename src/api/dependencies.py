# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get the authenticated actor
- Get service instances wired to the request's session

Example:
    @router.post("/{class_course_id}/exam-record/submit")
    async def submit(
        actor: Actor = Depends(require_actor),
        mediator: AccessMediator = Depends(get_access_mediator),
    ):
        ...
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import get_current_actor
from src.core.config import get_settings
from src.domains.access import (
    AccessLedger,
    AccessMediator,
    Actor,
    SqlCapabilityResolver,
)
from src.domains.enrollment import EnrollmentWindowService, SqlRosterProvider
from src.domains.exam_workflow import ExamWorkflowService
from src.infrastructure.database.connection import (
    close_database,
    get_session,
    init_database,
)

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Initialize the database connection pool."""
    await init_database(get_settings())


async def close_db() -> None:
    """Close the database connection pool."""
    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Yields:
        AsyncSession for the institution database.
    """
    async with get_session() as session:
        yield session


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_actor(request: Request) -> Actor:
    """Require an authenticated actor.

    Args:
        request: HTTP request.

    Returns:
        Actor built from the verified access token.

    Raises:
        HTTPException: If not authenticated.
    """
    current = get_current_actor(request)
    if not current:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current.to_actor()


# =========================================================================
# Service Dependencies
# =========================================================================


def _storage_timeout() -> float:
    return get_settings().database.statement_timeout_seconds


def get_access_ledger(db: AsyncSession = Depends(get_db)) -> AccessLedger:
    """Get AccessLedger instance."""
    return AccessLedger(db, timeout=_storage_timeout())


def get_access_mediator(
    db: AsyncSession = Depends(get_db),
    ledger: AccessLedger = Depends(get_access_ledger),
) -> AccessMediator:
    """Get AccessMediator instance.

    Args:
        db: Database session.
        ledger: Access ledger sharing the session.

    Returns:
        AccessMediator.
    """
    timeout = _storage_timeout()
    return AccessMediator(
        resolver=SqlCapabilityResolver(db, timeout=timeout),
        ledger=ledger,
        roster=SqlRosterProvider(db, timeout=timeout),
    )


def get_exam_workflow_service(db: AsyncSession = Depends(get_db)) -> ExamWorkflowService:
    """Get ExamWorkflowService instance."""
    settings = get_settings()
    return ExamWorkflowService(
        db,
        settings=settings.workflow,
        timeout=settings.database.statement_timeout_seconds,
    )


def get_enrollment_service(db: AsyncSession = Depends(get_db)) -> EnrollmentWindowService:
    """Get EnrollmentWindowService instance."""
    timeout = _storage_timeout()
    return EnrollmentWindowService(
        db,
        roster=SqlRosterProvider(db, timeout=timeout),
        timeout=timeout,
    )


# =========================================================================
# Type Aliases for Dependency Injection
# =========================================================================

DB = Annotated[AsyncSession, Depends(get_db)]
AuthenticatedActor = Annotated[Actor, Depends(require_actor)]
Mediator = Annotated[AccessMediator, Depends(get_access_mediator)]
Ledger = Annotated[AccessLedger, Depends(get_access_ledger)]
WorkflowService = Annotated[ExamWorkflowService, Depends(get_exam_workflow_service)]
EnrollmentService = Annotated[EnrollmentWindowService, Depends(get_enrollment_service)]
