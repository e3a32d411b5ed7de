# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Read-only projection of institution master data.

Programs, classes and courses are owned by the catalog service. This
service only reads who teaches a class-course, who was granted delegated
grade editing on it, and which students belong to a class.
"""

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, IdMixin


class ClassCourse(IdMixin, Base):
    """A course taught to one class (cohort) in one academic year."""

    __tablename__ = "class_courses"

    class_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    course_id: Mapped[str] = mapped_column(String(36), nullable=False)
    academic_year_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    institution_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    teacher_profile_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    def __repr__(self) -> str:
        return f"<ClassCourse(id={self.id}, class={self.class_id}, teacher={self.teacher_profile_id})>"


class ClassCourseEditor(IdMixin, Base):
    """Profile granted delegated grade editing on a class-course."""

    __tablename__ = "class_course_editors"
    __table_args__ = (
        UniqueConstraint("class_course_id", "editor_profile_id", name="uq_class_course_editor"),
    )

    class_course_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    editor_profile_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    granted_by_profile_id: Mapped[str | None] = mapped_column(String(36), nullable=True)


class ClassStudent(IdMixin, Base):
    """Membership of a student profile in a class (the roster)."""

    __tablename__ = "class_students"
    __table_args__ = (
        UniqueConstraint("class_id", "student_profile_id", name="uq_class_student"),
        Index("idx_class_students_class_status", "class_id", "status"),
    )

    class_id: Mapped[str] = mapped_column(String(36), nullable=False)
    student_profile_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
