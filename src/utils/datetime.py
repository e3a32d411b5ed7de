# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Timezone-aware datetime helpers.

All timestamps stored by the service are UTC and timezone-aware.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Coerce a datetime to aware UTC.

    Naive values are assumed to already be UTC.

    Args:
        value: Datetime to normalize.

    Returns:
        Aware datetime in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def latest(*values: datetime | None) -> datetime:
    """Return the latest of the given timestamps, ignoring None.

    Args:
        values: Candidate timestamps; at least one must be set.

    Returns:
        The maximum timestamp, normalized to UTC.

    Raises:
        ValueError: If every value is None.
    """
    present = [ensure_utc(v) for v in values if v is not None]
    if not present:
        raise ValueError("latest() requires at least one timestamp")
    return max(present)
