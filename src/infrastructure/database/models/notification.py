# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Workflow alert outbox table.

Rows are written in the same transaction as the transition they describe
and picked up later by a delivery worker.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import CheckConstraint, DateTime, Index, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, IdMixin
from src.infrastructure.database.models.workflow import _in_clause
from src.models.notification import NotificationChannel, NotificationStatus
from src.utils.datetime import utc_now


class WorkflowNotification(IdMixin, Base):
    """Queued alert for a committed workflow transition."""

    __tablename__ = "notifications"
    __table_args__ = (
        CheckConstraint(
            _in_clause("channel", [c.value for c in NotificationChannel]),
            name="chk_notifications_channel",
        ),
        CheckConstraint(
            _in_clause("status", [s.value for s in NotificationStatus]),
            name="chk_notifications_status",
        ),
        Index("idx_notifications_recipient", "recipient_profile_id"),
        Index("idx_notifications_status", "status"),
    )

    institution_id: Mapped[str] = mapped_column(String(36), nullable=False)
    recipient_profile_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    channel: Mapped[str] = mapped_column(
        String(20), nullable=False, default=NotificationChannel.EMAIL.value
    )
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=NotificationStatus.PENDING.value
    )
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<WorkflowNotification(type={self.type}, status={self.status})>"
