# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam workflow, access ledger and enrollment tables.

Each table has exactly one writer:
- exam_records: ExamWorkflowService (compare-and-set on status)
- class_course_access_logs: AccessLedger (insert only)
- enrollment_windows, student_course_enrollments: EnrollmentWindowService
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, IdMixin, TimestampMixin
from src.models.access_log import AccessSource
from src.models.enrollment import WindowStatus
from src.models.exam_workflow import ExamStatus
from src.utils.datetime import utc_now


def _in_clause(column: str, values: list[str]) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class ExamRecord(IdMixin, TimestampMixin, Base):
    """Exam approval state for one class-course."""

    __tablename__ = "exam_records"
    __table_args__ = (
        UniqueConstraint("class_course_id", name="uq_exam_records_class_course"),
        CheckConstraint(
            _in_clause("status", [s.value for s in ExamStatus]),
            name="chk_exam_records_status",
        ),
        Index("idx_exam_records_institution_status", "institution_id", "status"),
    )

    class_course_id: Mapped[str] = mapped_column(String(36), nullable=False)
    institution_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ExamStatus.DRAFT.value
    )
    submitted_by_profile_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    approved_by_profile_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    locked_by_profile_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<ExamRecord(class_course={self.class_course_id}, status={self.status})>"


class ClassCourseAccessLog(IdMixin, Base):
    """Append-only record of a delegate touching a class-course."""

    __tablename__ = "class_course_access_logs"
    __table_args__ = (
        CheckConstraint(
            _in_clause("source", [s.value for s in AccessSource]),
            name="chk_access_logs_source",
        ),
        Index("idx_access_logs_class_course", "class_course_id", "occurred_at"),
        Index("idx_access_logs_actor", "actor_profile_id", "occurred_at"),
        Index("idx_access_logs_institution", "institution_id"),
    )

    class_course_id: Mapped[str] = mapped_column(String(36), nullable=False)
    actor_profile_id: Mapped[str] = mapped_column(String(36), nullable=False)
    institution_id: Mapped[str] = mapped_column(String(36), nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    is_delegate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )


class EnrollmentWindow(IdMixin, TimestampMixin, Base):
    """Period during which a class cohort accepts course enrollments."""

    __tablename__ = "enrollment_windows"
    __table_args__ = (
        UniqueConstraint("class_id", "academic_year_id", name="uq_enrollment_window_class_year"),
        CheckConstraint("closes_at > opens_at", name="chk_enrollment_window_bounds"),
        CheckConstraint(
            _in_clause("status", [s.value for s in WindowStatus]),
            name="chk_enrollment_window_status",
        ),
        Index("idx_enrollment_window_institution", "institution_id"),
    )

    class_id: Mapped[str] = mapped_column(String(36), nullable=False)
    academic_year_id: Mapped[str] = mapped_column(String(36), nullable=False)
    institution_id: Mapped[str] = mapped_column(String(36), nullable=False)
    opens_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    closes_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # Stored status only records a force-close; open/scheduled is derived from the bounds.
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=WindowStatus.SCHEDULED.value
    )
    closed_by_profile_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class StudentCourseEnrollment(IdMixin, Base):
    """A student enrolled in one class-course through one window."""

    __tablename__ = "student_course_enrollments"
    __table_args__ = (
        UniqueConstraint(
            "student_profile_id",
            "class_course_id",
            "window_id",
            name="uq_student_course_window",
        ),
        Index("idx_student_course_class_course", "class_course_id"),
        Index("idx_student_course_window", "window_id"),
    )

    student_profile_id: Mapped[str] = mapped_column(String(36), nullable=False)
    class_course_id: Mapped[str] = mapped_column(String(36), nullable=False)
    window_id: Mapped[str] = mapped_column(String(36), nullable=False)
    class_id: Mapped[str] = mapped_column(String(36), nullable=False)
    academic_year_id: Mapped[str] = mapped_column(String(36), nullable=False)
    enrolled_by_profile_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )
