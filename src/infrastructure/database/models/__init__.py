# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ORM models for the institution database."""

from src.infrastructure.database.models.academic import (
    ClassCourse,
    ClassCourseEditor,
    ClassStudent,
)
from src.infrastructure.database.models.base import Base, IdMixin, TimestampMixin, new_id
from src.infrastructure.database.models.notification import WorkflowNotification
from src.infrastructure.database.models.workflow import (
    ClassCourseAccessLog,
    EnrollmentWindow,
    ExamRecord,
    StudentCourseEnrollment,
)

__all__ = [
    "Base",
    "IdMixin",
    "TimestampMixin",
    "new_id",
    # Master-data projection
    "ClassCourse",
    "ClassCourseEditor",
    "ClassStudent",
    # Workflow tables
    "ClassCourseAccessLog",
    "EnrollmentWindow",
    "ExamRecord",
    "StudentCourseEnrollment",
    # Alert outbox
    "WorkflowNotification",
]
