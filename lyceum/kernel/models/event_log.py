"""
Append-only event log for graph and progress mutations.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from lyceum.kernel.models.base import Base, generate_uuid


class EventType(str, Enum):
    """All event types for the audit log."""

    # Lecture prerequisite graph
    PREREQUISITE_ADDED = "prerequisite.added"
    PREREQUISITE_UPDATED = "prerequisite.updated"
    PREREQUISITE_REMOVED = "prerequisite.removed"

    # Concept graph
    RELATION_ADDED = "relation.added"

    # Learner workflow
    PROGRESS_CREATED = "progress.created"
    PROGRESS_STATE_CHANGED = "progress.state_changed"
    MASTERY_SCORED = "progress.mastery_scored"


class EventLog(Base):
    """
    Immutable audit event.

    Rows are only ever inserted; the log is never updated or pruned.
    """

    __tablename__ = "event_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    event_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    # System events may not have an actor
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True, index=True)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        Index("ix_event_logs_entity", "entity_type", "entity_id"),
        Index("ix_event_logs_type_time", "event_type", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<EventLog {self.event_type} {self.entity_type}:{self.entity_id}>"
