"""
Lecture and lecture-prerequisite models.

A LecturePrerequisite row reads "lecture_id requires prerequisite_lecture_id".
"""

import uuid
from typing import List

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lyceum.kernel.models.base import Base, TimestampMixin, generate_uuid


class Lecture(Base, TimestampMixin):
    """A learning unit, ordered within its category."""

    __tablename__ = "lectures"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    lecturer_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    content_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content_type: Mapped[str] = mapped_column(String(50), nullable=False, default="video")
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    prerequisites: Mapped[List["LecturePrerequisite"]] = relationship(
        back_populates="lecture",
        foreign_keys="LecturePrerequisite.lecture_id",
        cascade="all, delete-orphan",
    )
    prerequisite_for: Mapped[List["LecturePrerequisite"]] = relationship(
        back_populates="prerequisite_lecture",
        foreign_keys="LecturePrerequisite.prerequisite_lecture_id",
    )

    def __repr__(self) -> str:
        return f"<Lecture {self.title} [{self.category}#{self.order}]>"


class LecturePrerequisite(Base, TimestampMixin):
    """Directed prerequisite edge between two lectures."""

    __tablename__ = "lecture_prerequisites"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    lecture_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("lectures.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    prerequisite_lecture_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("lectures.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    importance_level: Mapped[int] = mapped_column(Integer, nullable=False, default=3)

    lecture: Mapped["Lecture"] = relationship(
        back_populates="prerequisites",
        foreign_keys=[lecture_id],
    )
    prerequisite_lecture: Mapped["Lecture"] = relationship(
        back_populates="prerequisite_for",
        foreign_keys=[prerequisite_lecture_id],
    )

    __table_args__ = (
        UniqueConstraint("lecture_id", "prerequisite_lecture_id", name="uq_lecture_prerequisite_pair"),
        CheckConstraint("lecture_id <> prerequisite_lecture_id", name="ck_lecture_prerequisite_not_self"),
        CheckConstraint("importance_level BETWEEN 1 AND 5", name="ck_lecture_prerequisite_importance"),
    )
