# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam workflow domain package.

This package provides the exam approval lifecycle:
- Transition table (draft -> submitted -> approved -> locked)
- Compare-and-set transitions per class-course
"""

from src.domains.exam_workflow.service import ExamWorkflowService
from src.domains.exam_workflow.transitions import (
    Advance,
    AlreadyApplied,
    Rejected,
    TransitionPlan,
    plan_transition,
)

__all__ = [
    "Advance",
    "AlreadyApplied",
    "ExamWorkflowService",
    "Rejected",
    "TransitionPlan",
    "plan_transition",
]
