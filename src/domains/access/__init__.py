# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access domain package.

This package decides who may act on a class-course and audits delegates:
- Capability resolution (owner / delegate / none)
- Append-only access ledger
- Access mediator, the entry point every request passes through
"""

from src.domains.access.capability import (
    ADMIN_ROLES,
    APPROVER_ROLES,
    Actor,
    Capability,
    CapabilityResolver,
    CapabilityResult,
    SqlCapabilityResolver,
    require_role,
    role_satisfies,
)
from src.domains.access.ledger import AccessLedger
from src.domains.access.mediator import AccessDecision, AccessMediator

__all__ = [
    "ADMIN_ROLES",
    "APPROVER_ROLES",
    "AccessDecision",
    "AccessLedger",
    "AccessMediator",
    "Actor",
    "Capability",
    "CapabilityResolver",
    "CapabilityResult",
    "SqlCapabilityResolver",
    "require_role",
    "role_satisfies",
]
