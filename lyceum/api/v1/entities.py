"""
Concept graph endpoints - learning paths and hierarchical relations.
"""

import uuid
from typing import List

from fastapi import APIRouter, status

from lyceum.api.deps import Concepts
from lyceum.schemas.entity import ConceptNode, LearningPathResponse, RelationCreate, RelationResponse

router = APIRouter()


@router.get("/entities/{entity_id}/learning-path", response_model=LearningPathResponse)
async def get_learning_path(entity_id: uuid.UUID, service: Concepts):
    """Concepts to study, leaves first, ending at the target."""
    nodes = await service.build_learning_path(entity_id)
    return LearningPathResponse(
        target_id=entity_id,
        path=[ConceptNode.from_node(n) for n in nodes],
        length=len(nodes),
    )


@router.get("/entities/{entity_id}/prerequisites", response_model=List[ConceptNode])
async def get_entity_prerequisites(entity_id: uuid.UUID, service: Concepts):
    nodes = await service.get_prerequisites(entity_id)
    return [ConceptNode.from_node(n) for n in nodes]


@router.post("/relations", response_model=RelationResponse, status_code=status.HTTP_201_CREATED)
async def create_relation(data: RelationCreate, service: Concepts):
    """Relate two entities; HIERARCHICAL relations are cycle checked."""
    relation = await service.add_relation(
        data.source_entity_id,
        data.target_entity_id,
        data.relation_types,
        importance=data.importance,
        description=data.description,
    )
    return RelationResponse.model_validate(relation)
