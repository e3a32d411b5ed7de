# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

This package provides middleware for request processing:
- AuthMiddleware: JWT access token verification.

Exports:
    AuthMiddleware: JWT authentication middleware.
    CurrentActor: Authenticated profile stored on request.state.
"""

from src.api.middleware.auth import AuthMiddleware, CurrentActor, get_current_actor

__all__ = [
    "AuthMiddleware",
    "CurrentActor",
    "get_current_actor",
]
