# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain package.

This package provides cohort enrollment functionality including:
- Enrollment window scheduling and force-closing
- Effective window status resolution
- Idempotent bulk auto-enrollment of a class roster
"""

from src.domains.enrollment.roster import RosterProvider, SqlRosterProvider
from src.domains.enrollment.service import (
    EnrollmentWindowService,
    resolve_window_status,
)

__all__ = [
    "EnrollmentWindowService",
    "RosterProvider",
    "SqlRosterProvider",
    "resolve_window_status",
]
