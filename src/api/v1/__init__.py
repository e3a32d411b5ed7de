# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    exam_workflow: Exam record read and submit/approve/lock transitions.
    enrollment_windows: Enrollment windows and cohort auto-enrollment.
    access_logs: Delegate access ledger.
"""

from fastapi import APIRouter

from src.api.v1 import access_logs, enrollment_windows, exam_workflow

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(exam_workflow.router, prefix="/class-courses", tags=["Exam Workflow"])
router.include_router(enrollment_windows.router, tags=["Enrollment"])
router.include_router(access_logs.router, prefix="/access-logs", tags=["Access Logs"])

__all__ = ["router"]
