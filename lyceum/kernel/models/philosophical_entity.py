"""
Philosophical entities and the typed relations between them.

Relations tagged HIERARCHICAL form the concept prerequisite graph:
the source entity is a prerequisite of the target entity.
"""

import uuid
from enum import Enum
from typing import List, Optional

from sqlalchemy import JSON, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lyceum.kernel.models.base import Base, TimestampMixin, generate_uuid


class EntityType(str, Enum):
    """Kinds of philosophical entity."""
    PHILOSOPHER = "Philosopher"
    CONCEPT = "PhilosophicalConcept"
    BRANCH = "Branch"
    MOVEMENT = "Movement"
    PROBLEMATIC = "Problematic"
    ERA = "Era"


class RelationType(str, Enum):
    """Kinds of relation between entities."""
    HIERARCHICAL = "HIERARCHICAL"
    DEVELOPMENT = "DEVELOPMENT"
    ADDRESSES_PROBLEMATIC = "ADDRESSES_PROBLEMATIC"
    INFLUENCE = "INFLUENCE"
    CRITIQUE = "CRITIQUE"
    SYNTHESIS = "SYNTHESIS"
    OPPOSITION = "OPPOSITION"


class PhilosophicalEntity(Base, TimestampMixin):
    """A philosopher, concept, movement, era, ..."""

    __tablename__ = "philosophical_entities"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    start_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    end_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    outgoing_relations: Mapped[List["PhilosophicalRelation"]] = relationship(
        back_populates="source_entity",
        foreign_keys="PhilosophicalRelation.source_entity_id",
        cascade="all, delete-orphan",
    )
    incoming_relations: Mapped[List["PhilosophicalRelation"]] = relationship(
        back_populates="target_entity",
        foreign_keys="PhilosophicalRelation.target_entity_id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<PhilosophicalEntity {self.type}:{self.name}>"


class PhilosophicalRelation(Base, TimestampMixin):
    """Directed relation source -> target with one or more relation types."""

    __tablename__ = "philosophical_relations"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    source_entity_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("philosophical_entities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    target_entity_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("philosophical_entities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    relation_types: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    importance: Mapped[int] = mapped_column(Integer, nullable=False, default=3)

    source_entity: Mapped["PhilosophicalEntity"] = relationship(
        back_populates="outgoing_relations",
        foreign_keys=[source_entity_id],
    )
    target_entity: Mapped["PhilosophicalEntity"] = relationship(
        back_populates="incoming_relations",
        foreign_keys=[target_entity_id],
    )

    @property
    def is_hierarchical(self) -> bool:
        return RelationType.HIERARCHICAL.value in (self.relation_types or [])
