# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package.

This package provides centralized configuration management:
- Settings: Pydantic-based settings loaded from environment variables

Example:
    >>> from src.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from src.core.config.settings import (
    APISettings,
    CORSSettings,
    DatabaseSettings,
    JWTSettings,
    Settings,
    WorkflowSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "APISettings",
    "CORSSettings",
    "DatabaseSettings",
    "JWTSettings",
    "Settings",
    "WorkflowSettings",
    "clear_settings_cache",
    "get_settings",
]
