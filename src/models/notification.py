# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Workflow alert enumerations."""

from enum import Enum


class NotificationChannel(str, Enum):
    """Delivery channel of a queued alert."""

    EMAIL = "email"
    WEBHOOK = "webhook"


class NotificationStatus(str, Enum):
    """Delivery state of a queued alert."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class WorkflowAlert(str, Enum):
    """Alert types raised by committed workflow transitions."""

    EXAM_SUBMITTED = "exam_submitted"
    GRADE_VALIDATED = "grade_validated"
    EXAM_LOCKED = "exam_locked"
    ENROLLMENT_SCHEDULED = "enrollment_scheduled"
    ENROLLMENT_CLOSED = "enrollment_closed"
