# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam workflow models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ExamStatus(str, Enum):
    """Exam record lifecycle state."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    LOCKED = "locked"


class ExamAction(str, Enum):
    """Actions that move an exam record forward."""

    SUBMIT = "submit"
    APPROVE = "approve"
    LOCK = "lock"


class ExamRecordResponse(BaseModel):
    """Exam record state for one class-course."""

    model_config = ConfigDict(from_attributes=True)

    id: str | None = Field(None, description="Record id, None until first submission")
    class_course_id: str
    institution_id: str | None = None
    status: ExamStatus
    submitted_by_profile_id: str | None = None
    approved_by_profile_id: str | None = None
    locked_by_profile_id: str | None = None
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    locked_at: datetime | None = None
