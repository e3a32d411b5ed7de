# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for JWT token utilities.

Tests the JWTManager class and token verification.
"""

import time
from unittest.mock import MagicMock

import pytest
from jose import jwt
from pydantic import SecretStr

from src.domains.auth.jwt import (
    AccessTokenPayload,
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
)

SECRET = "test-secret-key-for-jwt-testing"


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr(SECRET)
    settings.algorithm = "HS256"
    return settings


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


def _token(secret: str = SECRET, **overrides) -> str:
    now = int(time.time())
    claims = {
        "sub": "t-1",
        "type": "access",
        "institution_id": "inst-1",
        "role": "teacher",
        "iat": now,
        "exp": now + 600,
    }
    claims.update(overrides)
    return jwt.encode(claims, secret, algorithm="HS256")


class TestJWTManager:
    """Tests for JWTManager class."""

    def test_decode_access_token_returns_payload(self, jwt_manager: JWTManager) -> None:
        payload = jwt_manager.decode_token(_token())

        assert isinstance(payload, AccessTokenPayload)
        assert payload.sub == "t-1"
        assert payload.institution_id == "inst-1"
        assert payload.role == "teacher"

    def test_expired_token_raises(self, jwt_manager: JWTManager) -> None:
        past = int(time.time()) - 3600

        with pytest.raises(TokenExpiredError):
            jwt_manager.decode_token(_token(iat=past - 60, exp=past))

    def test_wrong_signature_raises(self, jwt_manager: JWTManager) -> None:
        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(_token(secret="another-secret"))

    def test_refresh_token_rejected_as_access(self, jwt_manager: JWTManager) -> None:
        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(_token(type="refresh"))

    def test_missing_institution_rejected(self, jwt_manager: JWTManager) -> None:
        now = int(time.time())
        token = jwt.encode(
            {"sub": "t-1", "type": "access", "iat": now, "exp": now + 60},
            SECRET,
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(token)

    def test_garbage_token_rejected(self, jwt_manager: JWTManager) -> None:
        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token("not-a-jwt")

    def test_verify_token(self, jwt_manager: JWTManager) -> None:
        assert jwt_manager.verify_token(_token()) is True
        assert jwt_manager.verify_token("not-a-jwt") is False
