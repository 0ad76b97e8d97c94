"""
Per-learner, per-lecture workflow progress.

Exactly one row per (user, lecture); created lazily on first interaction and
updated in place afterwards.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Float, ForeignKey, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lyceum.kernel.models.base import Base, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from lyceum.kernel.models.lecture import Lecture
    from lyceum.kernel.models.user import User


class WorkflowStatus(str, Enum):
    """Steps of a lecture workflow, in intended order of progression."""
    LOCKED = "LOCKED"
    READY = "READY"
    STARTED = "STARTED"
    WATCHED = "WATCHED"
    INITIAL_REFLECTION = "INITIAL_REFLECTION"
    MASTERY_TESTING = "MASTERY_TESTING"
    MASTERED = "MASTERED"


class Progress(Base, TimestampMixin):
    """Workflow position of one learner on one lecture."""

    __tablename__ = "progress"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lecture_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("lectures.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    status: Mapped[WorkflowStatus] = mapped_column(
        SAEnum(
            WorkflowStatus,
            native_enum=False,
            length=32,
            validate_strings=True,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=WorkflowStatus.LOCKED,
    )
    last_viewed: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_mastery_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    user: Mapped["User"] = relationship(back_populates="progress")
    lecture: Mapped["Lecture"] = relationship()

    __table_args__ = (UniqueConstraint("user_id", "lecture_id", name="uq_progress_user_lecture"),)
