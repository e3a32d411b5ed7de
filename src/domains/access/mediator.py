# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access mediation for class-course resources.

Every workflow and enrollment request passes through AccessMediator first.
For a delegate the ledger entry is written before access is granted; if
that write fails access is denied, so no delegate action can happen
without a preceding audit entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Iterable, Mapping

from src.domains.access.capability import (
    Actor,
    Capability,
    CapabilityResolver,
)
from src.domains.access.ledger import AccessLedger
from src.domains.errors import (
    AccessDeniedError,
    NotFoundError,
    TransientStorageError,
    UnauthorizedError,
)
from src.models.access_log import AccessSource

if TYPE_CHECKING:
    from src.domains.enrollment.roster import RosterProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessDecision:
    """Granted access over a set of class-courses.

    Attributes:
        actor: Acting profile.
        capability: DELEGATE if any resource is delegated, else OWNER.
        resources: Capability per class-course id.
        logged_entries: Ledger entries written for this decision.
    """

    actor: Actor
    capability: Capability
    resources: Mapping[str, Capability] = field(default_factory=dict)
    logged_entries: int = 0

    @property
    def is_delegate(self) -> bool:
        return self.capability is Capability.DELEGATE

    @property
    def class_course_ids(self) -> list[str]:
        return list(self.resources)

    def capability_for(self, class_course_id: str) -> Capability:
        """Capability granted over one class-course.

        Raises:
            UnauthorizedError: If the decision does not cover the class-course.
        """
        capability = self.resources.get(class_course_id)
        if capability is None:
            raise UnauthorizedError(
                "Access to this class course was not authorized",
                details={"class_course_id": class_course_id},
            )
        return capability


class AccessMediator:
    """Single entry point resolving owner/delegate access.

    Attributes:
        resolver: Capability resolver.
        ledger: Access ledger used for delegate accesses.
        roster: Roster provider used to expand a class into its class-courses.
    """

    def __init__(
        self,
        resolver: CapabilityResolver,
        ledger: AccessLedger,
        roster: "RosterProvider | None" = None,
    ) -> None:
        self.resolver = resolver
        self.ledger = ledger
        self.roster = roster

    async def authorize(
        self,
        actor: Actor,
        institution_id: str,
        class_course_ids: Iterable[str],
        source: AccessSource,
    ) -> AccessDecision:
        """Authorize an actor over class-courses, auditing delegate access.

        Args:
            actor: Acting profile.
            institution_id: Institution the request targets.
            class_course_ids: Resources the request touches.
            source: Origin recorded in the ledger for delegate access.

        Returns:
            AccessDecision carrying the resolved capabilities.

        Raises:
            ValueError: If no class-course ids are given.
            UnauthorizedError: If the actor has no capability over a resource
                or acts outside its institution.
            AccessDeniedError: If the delegate ledger entry could not be written.
        """
        ids = list(dict.fromkeys(class_course_ids))
        if not ids:
            raise ValueError("authorize() requires at least one class course id")

        if actor.institution_id != institution_id:
            logger.warning(
                "Cross-institution access refused: actor=%s, actor_institution=%s, target=%s",
                actor.profile_id,
                actor.institution_id,
                institution_id,
            )
            raise UnauthorizedError(
                "Actor does not belong to this institution",
                details={"institution_id": institution_id},
            )

        resolved = await self.resolver.resolve_many(actor, ids)

        denied = [cc for cc in ids if resolved[cc].capability is Capability.NONE]
        if denied:
            logger.warning(
                "Access refused: actor=%s, role=%s, class_courses=%s",
                actor.profile_id,
                actor.role,
                denied,
            )
            raise UnauthorizedError(
                "Actor has no access to the requested class courses",
                details={"class_course_ids": denied},
            )

        resources = {cc: resolved[cc].capability for cc in ids}
        is_delegate = any(c is Capability.DELEGATE for c in resources.values())

        logged = 0
        if is_delegate:
            try:
                logged = await self.ledger.record(
                    ids,
                    actor_profile_id=actor.profile_id,
                    institution_id=institution_id,
                    source=source,
                )
            except TransientStorageError as e:
                logger.error(
                    "Delegate access denied, ledger write failed: actor=%s, class_courses=%d",
                    actor.profile_id,
                    len(ids),
                )
                raise AccessDeniedError(
                    "Delegate access could not be audited",
                    details={"class_course_ids": ids, "source": AccessSource(source).value},
                ) from e

        return AccessDecision(
            actor=actor,
            capability=Capability.DELEGATE if is_delegate else Capability.OWNER,
            resources=MappingProxyType(resources),
            logged_entries=logged,
        )

    async def authorize_class(
        self,
        actor: Actor,
        institution_id: str,
        class_id: str,
        academic_year_id: str,
        source: AccessSource,
    ) -> AccessDecision:
        """Authorize an actor over every class-course a class offers in a year.

        Raises:
            NotFoundError: If the class offers no class-courses that year.
            UnauthorizedError: See authorize().
            AccessDeniedError: See authorize().
        """
        if self.roster is None:
            raise RuntimeError("AccessMediator.authorize_class requires a roster provider")

        class_course_ids = await self.roster.list_class_courses(
            class_id, academic_year_id, institution_id
        )
        if not class_course_ids:
            raise NotFoundError(
                "Class offers no courses in this academic year",
                details={"class_id": class_id, "academic_year_id": academic_year_id},
            )
        return await self.authorize(actor, institution_id, class_course_ids, source)
