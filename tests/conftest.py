# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.config.settings import clear_settings_cache
from src.domains.access.capability import Actor


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires services)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Drop cached settings around each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def institution_id() -> str:
    """Provide a sample institution ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def teacher(institution_id: str) -> Actor:
    """Teacher of record for the sample class-courses."""
    return Actor(profile_id="t-1", institution_id=institution_id, role="teacher")


@pytest.fixture
def dean(institution_id: str) -> Actor:
    """Dean-level approver."""
    return Actor(profile_id="d-1", institution_id=institution_id, role="dean")


@pytest.fixture
def administrator(institution_id: str) -> Actor:
    """Institution administrator."""
    return Actor(profile_id="a-1", institution_id=institution_id, role="administrator")


@pytest.fixture
def substitute(institution_id: str) -> Actor:
    """Teacher granted delegated grade editing."""
    return Actor(profile_id="t-2", institution_id=institution_id, role="teacher")


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.execute = AsyncMock()
    return db


def _make_result(
    scalar_one_or_none=None,
    scalar=None,
    scalars=None,
    rows=None,
) -> MagicMock:
    """Build a mock SQLAlchemy result.

    Args:
        scalar_one_or_none: Value for result.scalar_one_or_none().
        scalar: Value for result.scalar().
        scalars: List for result.scalars().all().
        rows: List for result.all().

    Returns:
        MagicMock standing in for a Result.
    """
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar_one_or_none
    result.scalar.return_value = scalar
    result.scalars.return_value.all.return_value = list(scalars or [])
    result.all.return_value = list(rows or [])
    return result


@pytest.fixture
def make_result():
    """Provide the mock result builder."""
    return _make_result
