# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Capability resolution for class-course resources.

An actor relates to a class-course in exactly one of three ways:
- owner: the teacher of record
- delegate: acting on a course they do not own (administrator, dean,
  substitute with delegated grade editing)
- none: no access

Both the exam workflow and the enrollment manager consume the same
CapabilityResult, so ownership rules live only here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.errors import UnauthorizedError
from src.infrastructure.database.connection import storage_guard
from src.infrastructure.database.models import ClassCourse, ClassCourseEditor

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    """How an actor relates to a class-course."""

    OWNER = "owner"
    DELEGATE = "delegate"
    NONE = "none"


# Business roles, each expanded to the roles it satisfies.
ROLE_HIERARCHY: dict[str, tuple[str, ...]] = {
    "owner": ("owner", "super_admin", "administrator", "dean", "teacher", "staff", "student"),
    "super_admin": ("super_admin", "administrator", "dean", "teacher", "staff", "student"),
    "administrator": ("administrator", "dean", "teacher", "staff", "student"),
    "dean": ("dean", "teacher", "staff", "student"),
    "teacher": ("teacher", "staff", "student"),
    "staff": ("staff", "student"),
    "student": ("student",),
}

ADMIN_ROLES: tuple[str, ...] = ("administrator", "dean", "super_admin", "owner")
APPROVER_ROLES: tuple[str, ...] = ("dean",)


def role_satisfies(role: str | None, allowed: Iterable[str]) -> bool:
    """Check whether a role, through the hierarchy, covers any allowed role.

    Args:
        role: Actor's business role.
        allowed: Roles that grant access.

    Returns:
        True if the expanded role set intersects the allowed roles.
    """
    if not role:
        return False
    expanded = ROLE_HIERARCHY.get(role, ())
    allowed_set = set(allowed)
    return any(r in allowed_set for r in expanded)


@dataclass(frozen=True)
class Actor:
    """Authenticated profile performing a request.

    Attributes:
        profile_id: Domain profile id of the actor.
        institution_id: Institution the actor is acting in.
        role: Business role within that institution.
    """

    profile_id: str
    institution_id: str
    role: str | None = None


def require_role(actor: Actor, allowed: Iterable[str], action: str) -> None:
    """Raise UnauthorizedError unless the actor's role covers an allowed role.

    Args:
        actor: Acting profile.
        allowed: Roles that may perform the action.
        action: Action name for the error message.

    Raises:
        UnauthorizedError: If the role is insufficient.
    """
    allowed = tuple(allowed)
    if not role_satisfies(actor.role, allowed):
        raise UnauthorizedError(
            f"Role '{actor.role}' may not {action}",
            details={"actor_profile_id": actor.profile_id, "required_roles": list(allowed)},
        )


@dataclass(frozen=True)
class CapabilityResult:
    """Resolved relation of an actor to one class-course."""

    capability: Capability
    role: str | None = None

    @property
    def is_owner(self) -> bool:
        return self.capability is Capability.OWNER

    @property
    def is_delegate(self) -> bool:
        return self.capability is Capability.DELEGATE


class CapabilityResolver(Protocol):
    """Resolves actor capabilities over class-courses."""

    async def resolve(self, actor: Actor, class_course_id: str) -> CapabilityResult:
        ...

    async def resolve_many(
        self, actor: Actor, class_course_ids: list[str]
    ) -> dict[str, CapabilityResult]:
        ...


class SqlCapabilityResolver:
    """Capability resolver backed by the class-course master-data projection.

    Rules:
    - owner if the actor is the class-course's teacher of record
    - delegate if the actor holds an admin role or was granted editing
    - none otherwise, including unknown or foreign-institution class-courses

    Attributes:
        db: Async database session.
        timeout: Seconds allowed for one storage round-trip.
    """

    def __init__(self, db: AsyncSession, timeout: float | None = None) -> None:
        self.db = db
        self.timeout = timeout

    async def resolve(self, actor: Actor, class_course_id: str) -> CapabilityResult:
        """Resolve the actor's capability over a single class-course."""
        results = await self.resolve_many(actor, [class_course_id])
        return results[class_course_id]

    async def resolve_many(
        self, actor: Actor, class_course_ids: list[str]
    ) -> dict[str, CapabilityResult]:
        """Resolve the actor's capability over several class-courses.

        Args:
            actor: Acting profile.
            class_course_ids: Class-course ids to resolve.

        Returns:
            Mapping of every requested id to its CapabilityResult.
        """
        ids = list(dict.fromkeys(class_course_ids))
        if not ids:
            return {}

        is_admin = role_satisfies(actor.role, ADMIN_ROLES)
        edited: set[str] = set()

        async with storage_guard(self.db, "capability.resolve", self.timeout):
            result = await self.db.execute(
                select(ClassCourse.id, ClassCourse.teacher_profile_id).where(
                    ClassCourse.id.in_(ids),
                    ClassCourse.institution_id == actor.institution_id,
                )
            )
            teachers = {row.id: row.teacher_profile_id for row in result.all()}

            if not is_admin:
                editor_result = await self.db.execute(
                    select(ClassCourseEditor.class_course_id).where(
                        ClassCourseEditor.class_course_id.in_(ids),
                        ClassCourseEditor.editor_profile_id == actor.profile_id,
                    )
                )
                edited = set(editor_result.scalars().all())

        resolved: dict[str, CapabilityResult] = {}
        for class_course_id in ids:
            if class_course_id not in teachers:
                capability = Capability.NONE
            elif teachers[class_course_id] == actor.profile_id:
                capability = Capability.OWNER
            elif is_admin or class_course_id in edited:
                capability = Capability.DELEGATE
            else:
                capability = Capability.NONE
            resolved[class_course_id] = CapabilityResult(capability=capability, role=actor.role)

        logger.debug(
            "Resolved capabilities for %s over %d class-courses",
            actor.profile_id,
            len(resolved),
        )
        return resolved
