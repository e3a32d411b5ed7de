# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Workflow alert outbox.

queue_workflow_alert stages a pending notification row on the caller's
session. It never commits: the row becomes visible only when the caller
commits the transition it belongs to, and disappears with it on rollback.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import WorkflowNotification, new_id
from src.models.notification import (
    NotificationChannel,
    NotificationStatus,
    WorkflowAlert,
)

logger = logging.getLogger(__name__)


async def queue_workflow_alert(
    db: AsyncSession,
    alert: WorkflowAlert,
    payload: dict[str, Any],
    institution_id: str,
    recipient_profile_id: str | None = None,
    channel: NotificationChannel = NotificationChannel.EMAIL,
) -> str:
    """Stage a pending alert in the current transaction.

    Must be called inside the caller's storage_guard block, before commit.

    Args:
        db: Session holding the open transition transaction.
        alert: Alert type.
        payload: JSON-serializable alert body.
        institution_id: Institution the transition belongs to.
        recipient_profile_id: Addressee, if the alert targets one person.
        channel: Delivery channel.

    Returns:
        The id of the queued notification.
    """
    notification_id = new_id()
    await db.execute(
        insert(WorkflowNotification).values(
            id=notification_id,
            institution_id=institution_id,
            recipient_profile_id=recipient_profile_id,
            channel=channel.value,
            type=alert.value,
            payload=payload,
            status=NotificationStatus.PENDING.value,
        )
    )
    logger.debug("Queued workflow alert: type=%s, id=%s", alert.value, notification_id)
    return notification_id
