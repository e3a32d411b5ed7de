# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access ledger models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class AccessSource(str, Enum):
    """Origin of a delegate access to class-course resources."""

    LIST = "list"
    SEARCH = "search"
    GRADING = "grading"
    EXPORT = "export"
    ENROLLMENT = "enrollment"
    WORKFLOW = "workflow"
    ADMIN_OVERRIDE = "admin_override"


class AccessLogEntryResponse(BaseModel):
    """One ledger entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    class_course_id: str
    actor_profile_id: str
    institution_id: str
    source: AccessSource
    is_delegate: bool
    occurred_at: datetime


class AccessLogListResponse(BaseModel):
    """Ledger entries, newest first."""

    items: list[AccessLogEntryResponse]
    total: int
