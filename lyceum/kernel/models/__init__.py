"""
Kernel data models.

SQLAlchemy models for the storage side of the prerequisite graph: lectures,
philosophical entities, their edges, learner progress and the audit log.
"""

from lyceum.kernel.models.base import Base, TimestampMixin, generate_uuid
from lyceum.kernel.models.user import User, UserRole
from lyceum.kernel.models.lecture import Lecture, LecturePrerequisite
from lyceum.kernel.models.philosophical_entity import (
    EntityType,
    PhilosophicalEntity,
    PhilosophicalRelation,
    RelationType,
)
from lyceum.kernel.models.progress import Progress, WorkflowStatus
from lyceum.kernel.models.event_log import EventLog, EventType

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    # Users
    "User",
    "UserRole",
    # Lectures
    "Lecture",
    "LecturePrerequisite",
    # Concepts
    "EntityType",
    "PhilosophicalEntity",
    "PhilosophicalRelation",
    "RelationType",
    # Progress
    "Progress",
    "WorkflowStatus",
    # Event log
    "EventLog",
    "EventType",
]
