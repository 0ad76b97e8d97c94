"""
Concept Graph Service - Learning paths over philosophical entities.

HIERARCHICAL relations define the concept prerequisite graph (source is the
prerequisite, target the dependent). Path building tolerates cycles already
in the data; adding a hierarchical relation refuses to create new ones.
"""

import uuid
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from lyceum.engines.graph.cycle_detector import label_path, would_create_cycle
from lyceum.engines.graph.learning_path import build_learning_path
from lyceum.engines.graph.model import GraphNode
from lyceum.engines.prerequisites.graph_store import GraphStore, storage_errors
from lyceum.engines.prerequisites.prerequisite_service import validate_importance
from lyceum.engines.prerequisites.write_guard import CONCEPT_GRAPH, graph_write_lock
from lyceum.kernel.errors import CircularDependencyError, ConflictError, NotFoundError, ValidationError
from lyceum.kernel.events.event_store import EventStore
from lyceum.kernel.models.event_log import EventType
from lyceum.kernel.models.philosophical_entity import PhilosophicalEntity, PhilosophicalRelation, RelationType
from lyceum.logging_config import get_logger

logger = get_logger(__name__)


def normalize_relation_types(relation_types: Iterable[str]) -> List[str]:
    """Upper-case, de-duplicate and check relation types against RelationType."""
    normalized: List[str] = []
    unknown: List[str] = []
    for raw in relation_types or []:
        value = str(raw).strip().upper()
        try:
            value = RelationType(value).value
        except ValueError:
            unknown.append(str(raw))
            continue
        if value not in normalized:
            normalized.append(value)

    if unknown:
        raise ValidationError(
            f"Invalid relation type(s): {', '.join(unknown)}",
            invalid_fields={"relation_types": "must be one of " + ", ".join(t.value for t in RelationType)},
        )
    if not normalized:
        raise ValidationError(
            "At least one relation type is required",
            invalid_fields={"relation_types": "required"},
        )
    return normalized


class ConceptGraphService:
    """Learning paths and hierarchical relations between entities."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.store = GraphStore(session)
        self.event_store = EventStore(session)

    async def build_learning_path(self, entity_id: uuid.UUID) -> List[GraphNode]:
        """
        Ordered path of concepts leading to ``entity_id``, target last.

        Raises:
            NotFoundError: If the target concept does not exist
        """
        graph = await self.store.concept_graph()
        if not graph.has_node(str(entity_id)):
            raise NotFoundError("Target concept not found")
        path = build_learning_path(graph, str(entity_id))
        logger.debug(
            "Learning path built",
            extra={"entity_id": str(entity_id), "length": len(path)},
        )
        return path

    async def get_prerequisites(self, entity_id: uuid.UUID) -> List[GraphNode]:
        """Direct HIERARCHICAL prerequisites of an entity."""
        await self.store.require_entity(entity_id)
        graph = await self.store.concept_graph()
        return [
            graph.node(pid)
            for pid in graph.prerequisites_of(str(entity_id))
            if graph.has_node(pid)
        ]

    async def add_relation(
        self,
        source_entity_id: uuid.UUID,
        target_entity_id: uuid.UUID,
        relation_types: Iterable[str],
        importance: int = 3,
        description: Optional[str] = None,
        user_id: Optional[uuid.UUID] = None,
    ) -> PhilosophicalRelation:
        """
        Relate ``source`` to ``target``.

        A relation that includes HIERARCHICAL makes the source a prerequisite
        of the target and is checked for cycles first.

        Raises:
            ValidationError: Bad relation types, importance or self relation
            NotFoundError: Either entity does not exist
            CircularDependencyError: A hierarchical relation would close a cycle
        """
        types = normalize_relation_types(relation_types)
        validate_importance(importance)
        if source_entity_id == target_entity_id:
            raise ValidationError(
                "An entity cannot be related to itself",
                invalid_fields={"target_entity_id": "must differ from source_entity_id"},
            )

        async with graph_write_lock(self.session, CONCEPT_GRAPH):
            source: PhilosophicalEntity = await self.store.require_entity(source_entity_id)
            target: PhilosophicalEntity = await self.store.require_entity(target_entity_id)

            if RelationType.HIERARCHICAL.value in types:
                existing = await self.store.find_hierarchical_relation(source_entity_id, target_entity_id)
                if existing is not None:
                    raise ConflictError(
                        "This hierarchical relationship already exists",
                        existing_id=str(existing.id),
                    )

                graph = await self.store.concept_graph()
                check = would_create_cycle(graph, str(target_entity_id), str(source_entity_id))
                if check.has_cycle:
                    path = label_path(check.path, graph)
                    logger.info(
                        "Relation rejected: circular dependency",
                        extra={"target_entity_id": str(target_entity_id), "cycle_path": path},
                    )
                    raise CircularDependencyError(
                        "Adding this relationship would create a circular dependency",
                        path=path,
                    )

            relation = PhilosophicalRelation(
                id=uuid.uuid4(),
                source_entity_id=source.id,
                target_entity_id=target.id,
                relation_types=types,
                importance=importance,
                description=description,
            )
            async with storage_errors("add_relation"):
                self.session.add(relation)
                await self.event_store.log(
                    event_type=EventType.RELATION_ADDED,
                    entity_type="philosophical_entity",
                    entity_id=target.id,
                    user_id=user_id,
                    payload={
                        "relation_id": relation.id,
                        "source_entity_id": source.id,
                        "relation_types": types,
                    },
                )
                await self.session.commit()

        logger.info(
            "Relation added",
            extra={"relation_id": str(relation.id), "relation_types": types},
        )
        return relation
