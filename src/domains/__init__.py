# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer.

This package contains domain services that encapsulate business logic.

Domains:
    access: Capability resolution, access mediation and the delegate access ledger.
    auth: Access token verification.
    enrollment: Enrollment windows and cohort auto-enrollment.
    exam_workflow: Exam approval lifecycle (draft, submitted, approved, locked).
"""
