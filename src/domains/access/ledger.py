# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Append-only ledger of delegate accesses to class-courses.

Entries are never updated or deleted. Within one record() call duplicate
class-course ids are coalesced; separate calls always append new entries.
"""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.connection import storage_guard
from src.infrastructure.database.models import ClassCourseAccessLog, new_id
from src.models.access_log import AccessLogEntryResponse, AccessSource
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 500


class AccessLedger:
    """Writer and reader for the class-course access ledger.

    Attributes:
        db: Async database session.
        timeout: Seconds allowed for one storage round-trip.
    """

    def __init__(self, db: AsyncSession, timeout: float | None = None) -> None:
        self.db = db
        self.timeout = timeout

    async def record(
        self,
        class_course_ids: Iterable[str],
        actor_profile_id: str,
        institution_id: str,
        source: AccessSource,
    ) -> int:
        """Append one delegate access entry per distinct class-course.

        An empty id collection is a no-op: nothing is written and no
        storage call is made. Otherwise all entries are inserted in one
        transaction, so either every entry is stored or none is.

        Args:
            class_course_ids: Accessed class-courses, duplicates allowed.
            actor_profile_id: Delegate performing the access.
            institution_id: Institution the access happened in.
            source: Origin of the access.

        Returns:
            Number of entries appended.

        Raises:
            TransientStorageError: If the insert failed; nothing was stored.
        """
        unique_ids = list(dict.fromkeys(class_course_ids))
        if not unique_ids:
            return 0

        occurred_at = utc_now()
        rows = [
            {
                "id": new_id(),
                "class_course_id": class_course_id,
                "actor_profile_id": actor_profile_id,
                "institution_id": institution_id,
                "source": AccessSource(source).value,
                "is_delegate": True,
                "occurred_at": occurred_at,
            }
            for class_course_id in unique_ids
        ]

        async with storage_guard(self.db, "access_ledger.record", self.timeout):
            await self.db.execute(insert(ClassCourseAccessLog), rows)
            await self.db.commit()

        logger.info(
            "Recorded delegate access: actor=%s, institution=%s, source=%s, class_courses=%d",
            actor_profile_id,
            institution_id,
            AccessSource(source).value,
            len(rows),
        )
        return len(rows)

    async def list_entries(
        self,
        institution_id: str,
        class_course_id: str | None = None,
        actor_profile_id: str | None = None,
        limit: int = 100,
    ) -> tuple[list[AccessLogEntryResponse], int]:
        """List ledger entries for an institution, newest first.

        Args:
            institution_id: Institution to read.
            class_course_id: Optional class-course filter.
            actor_profile_id: Optional actor filter.
            limit: Maximum number of entries to return.

        Returns:
            Tuple of (entries, total matching entries).
        """
        conditions = [ClassCourseAccessLog.institution_id == institution_id]
        if class_course_id:
            conditions.append(ClassCourseAccessLog.class_course_id == class_course_id)
        if actor_profile_id:
            conditions.append(ClassCourseAccessLog.actor_profile_id == actor_profile_id)

        limit = max(1, min(limit, MAX_PAGE_SIZE))

        async with storage_guard(self.db, "access_ledger.list", self.timeout):
            count_result = await self.db.execute(
                select(func.count()).select_from(ClassCourseAccessLog).where(*conditions)
            )
            total = count_result.scalar() or 0

            result = await self.db.execute(
                select(ClassCourseAccessLog)
                .where(*conditions)
                .order_by(ClassCourseAccessLog.occurred_at.desc())
                .limit(limit)
            )
            entries = result.scalars().all()

        return [AccessLogEntryResponse.model_validate(e) for e in entries], total
