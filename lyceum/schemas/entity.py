"""
Pydantic schemas for philosophical entities and learning paths.
"""

import uuid
from typing import List, Optional

from pydantic import BaseModel

from lyceum.engines.graph.model import GraphNode


class ConceptNode(BaseModel):
    """An entity as a node of the concept graph."""

    id: str
    name: str
    type: str

    @classmethod
    def from_node(cls, node: GraphNode) -> "ConceptNode":
        return cls(id=node.id, name=node.label, type=node.category)


class LearningPathResponse(BaseModel):
    """Concepts in study order; the target is last."""

    target_id: uuid.UUID
    path: List[ConceptNode]
    length: int


class RelationCreate(BaseModel):
    """New relation source -> target."""

    source_entity_id: uuid.UUID
    target_entity_id: uuid.UUID
    relation_types: List[str]
    importance: int = 3
    description: Optional[str] = None


class RelationResponse(BaseModel):
    """A stored relation."""

    id: uuid.UUID
    source_entity_id: uuid.UUID
    target_entity_id: uuid.UUID
    relation_types: List[str]
    importance: int
    description: Optional[str] = None

    class Config:
        from_attributes = True
