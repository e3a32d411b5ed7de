# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment window and auto-enrollment models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from src.utils.datetime import ensure_utc


class WindowStatus(str, Enum):
    """Enrollment window state."""

    SCHEDULED = "scheduled"
    OPEN = "open"
    CLOSED = "closed"


class EnrollmentWindowCreateRequest(BaseModel):
    """Request to schedule an enrollment window."""

    class_id: str = Field(..., min_length=1)
    academic_year_id: str = Field(..., min_length=1)
    opens_at: datetime
    closes_at: datetime

    @model_validator(mode="after")
    def check_bounds(self) -> "EnrollmentWindowCreateRequest":
        """Reject windows that close before they open."""
        if ensure_utc(self.closes_at) <= ensure_utc(self.opens_at):
            raise ValueError("closes_at must be after opens_at")
        return self


class EnrollmentWindowResponse(BaseModel):
    """Enrollment window with its effective status."""

    id: str
    class_id: str
    academic_year_id: str
    institution_id: str
    opens_at: datetime
    closes_at: datetime
    status: WindowStatus
    closed_by_profile_id: str | None = None
    closed_at: datetime | None = None


class EnrollmentWindowListResponse(BaseModel):
    """List of enrollment windows."""

    items: list[EnrollmentWindowResponse]
    total: int


class AutoEnrollRequest(BaseModel):
    """Request to auto-enroll a class cohort."""

    academic_year_id: str = Field(..., min_length=1)


class AutoEnrollResponse(BaseModel):
    """Outcome of a cohort auto-enrollment."""

    window_id: str
    created: int
    skipped: int
    class_course_ids: list[str] = Field(default_factory=list)
