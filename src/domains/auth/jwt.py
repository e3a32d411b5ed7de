# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT access token verification.

Tokens are issued by the institution's identity service. This module only
decodes and validates them using python-jose.

Example:
    >>> from src.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> claims = jwt_manager.decode_token(token)
    >>> claims.institution_id
    'inst-1'
"""

import logging
from typing import Literal

from jose import ExpiredSignatureError, JWTError as JoseJWTError, jwt
from pydantic import BaseModel, ValidationError

from src.core.config.settings import JWTSettings

logger = logging.getLogger(__name__)


class AccessTokenPayload(BaseModel):
    """JWT access token payload structure.

    Attributes:
        sub: Subject (profile ID).
        type: Token type.
        institution_id: Institution the profile acts in.
        role: Business role within the institution.
        exp: Expiration timestamp.
        iat: Issued at timestamp.
    """

    sub: str
    type: Literal["access", "refresh"]
    institution_id: str
    role: str | None = None
    exp: int
    iat: int


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTManager:
    """JWT access token validator.

    Attributes:
        _settings: JWT configuration settings.
    """

    def __init__(self, settings: JWTSettings) -> None:
        """Initialize the JWT manager.

        Args:
            settings: JWT configuration settings.
        """
        self._settings = settings

    def decode_token(
        self,
        token: str,
        expected_type: Literal["access", "refresh"] | None = "access",
    ) -> AccessTokenPayload:
        """Decode and validate a JWT token.

        Args:
            token: JWT token string.
            expected_type: Expected token type.

        Returns:
            AccessTokenPayload with decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid or of the wrong type.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
            )
        except ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except JoseJWTError as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}") from e

        if expected_type and payload.get("type") != expected_type:
            raise InvalidTokenError(f"Expected {expected_type} token, got {payload.get('type')}")

        try:
            return AccessTokenPayload.model_validate(payload)
        except ValidationError as e:
            logger.warning("Token claims invalid: %s", str(e))
            raise InvalidTokenError("Invalid token claims") from e

    def verify_token(self, token: str) -> bool:
        """Check whether a token is a valid access token.

        Args:
            token: JWT token string.

        Returns:
            True if token is valid, False otherwise.
        """
        try:
            self.decode_token(token)
            return True
        except (TokenExpiredError, InvalidTokenError):
            return False
