# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notifications domain package.

Queues workflow alerts into the notifications outbox.
"""

from src.domains.notifications.outbox import queue_workflow_alert

__all__ = ["queue_workflow_alert"]
