# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam record transition table.

plan_transition() is total over every (status, action) pair and never
raises: it returns a variant describing what the store update must do.
"""

from dataclasses import dataclass

from src.models.exam_workflow import ExamAction, ExamStatus


@dataclass(frozen=True)
class Advance:
    """Move the record from source to target."""

    source: ExamStatus
    target: ExamStatus


@dataclass(frozen=True)
class AlreadyApplied:
    """The action already happened; return the record unchanged."""

    status: ExamStatus


@dataclass(frozen=True)
class Rejected:
    """The action is not legal from the current status."""

    current: ExamStatus
    requested: ExamAction


TransitionPlan = Advance | AlreadyApplied | Rejected


# action -> (required predecessor, resulting status)
_EDGES: dict[ExamAction, tuple[ExamStatus, ExamStatus]] = {
    ExamAction.SUBMIT: (ExamStatus.DRAFT, ExamStatus.SUBMITTED),
    ExamAction.APPROVE: (ExamStatus.SUBMITTED, ExamStatus.APPROVED),
    ExamAction.LOCK: (ExamStatus.APPROVED, ExamStatus.LOCKED),
}

# Columns stamped by each action.
STAGE_COLUMNS: dict[ExamAction, tuple[str, str]] = {
    ExamAction.SUBMIT: ("submitted_by_profile_id", "submitted_at"),
    ExamAction.APPROVE: ("approved_by_profile_id", "approved_at"),
    ExamAction.LOCK: ("locked_by_profile_id", "locked_at"),
}

# Timestamp of the stage preceding each action, if any.
PREVIOUS_STAGE_AT: dict[ExamAction, str | None] = {
    ExamAction.SUBMIT: None,
    ExamAction.APPROVE: "submitted_at",
    ExamAction.LOCK: "approved_at",
}


def plan_transition(status: ExamStatus | str, action: ExamAction | str) -> TransitionPlan:
    """Decide how an action applies to a record in the given status.

    Args:
        status: Current record status.
        action: Requested action.

    Returns:
        Advance when the action is legal, AlreadyApplied for a repeated
        submit, Rejected otherwise.
    """
    status = ExamStatus(status)
    action = ExamAction(action)
    source, target = _EDGES[action]

    if status is source:
        return Advance(source=source, target=target)
    # Retried submits are tolerated; every other repeat is an error.
    if action is ExamAction.SUBMIT and status is ExamStatus.SUBMITTED:
        return AlreadyApplied(status=status)
    return Rejected(current=status, requested=action)
