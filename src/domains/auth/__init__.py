# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain services.

Profiles authenticate with the institution's identity service, which
issues access tokens. This package only verifies them.

Exports:
    JWTManager: JWT access token validation.
    AccessTokenPayload: Decoded access token claims.
"""

from src.domains.auth.jwt import (
    AccessTokenPayload,
    InvalidTokenError,
    JWTError,
    JWTManager,
    TokenExpiredError,
)

__all__ = [
    "AccessTokenPayload",
    "InvalidTokenError",
    "JWTError",
    "JWTManager",
    "TokenExpiredError",
]
