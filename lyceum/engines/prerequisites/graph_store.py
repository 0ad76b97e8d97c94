"""
Graph Store - Loads graph snapshots and records from the database.

Every snapshot is built fresh for the computation at hand. Lower-layer
database failures surface as StorageError.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lyceum.engines.graph.model import GraphNode, PrerequisiteEdge, PrerequisiteGraph
from lyceum.kernel.errors import NotFoundError, StorageError
from lyceum.kernel.models.lecture import Lecture, LecturePrerequisite
from lyceum.kernel.models.philosophical_entity import PhilosophicalEntity, PhilosophicalRelation
from lyceum.kernel.models.progress import Progress, WorkflowStatus
from lyceum.kernel.models.user import User
from lyceum.logging_config import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def storage_errors(operation: str) -> AsyncIterator[None]:
    """Wrap SQLAlchemy failures raised inside the block in StorageError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Storage operation failed", extra={"operation": operation})
        raise StorageError(f"Database operation failed: {operation}", cause=exc) from exc


def lecture_node(lecture: Lecture) -> GraphNode:
    return GraphNode(
        id=str(lecture.id),
        label=lecture.title,
        category=lecture.category,
        order=lecture.order,
    )


def lecture_edge(row: LecturePrerequisite, prerequisite_label: str = "") -> PrerequisiteEdge:
    return PrerequisiteEdge(
        id=str(row.id),
        dependent_id=str(row.lecture_id),
        prerequisite_id=str(row.prerequisite_lecture_id),
        required=row.is_required,
        importance=row.importance_level,
        prerequisite_label=prerequisite_label,
    )


def entity_node(entity: PhilosophicalEntity) -> GraphNode:
    return GraphNode(id=str(entity.id), label=entity.name, category=entity.type, order=entity.start_year or 0)


class GraphStore:
    """Read access to lectures, concepts, learners and progress."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ---- lectures ----

    async def get_lecture(self, lecture_id: uuid.UUID) -> Optional[Lecture]:
        async with storage_errors("get_lecture"):
            return await self.session.get(Lecture, lecture_id)

    async def require_lecture(self, lecture_id: uuid.UUID) -> Lecture:
        lecture = await self.get_lecture(lecture_id)
        if lecture is None:
            raise NotFoundError("Lecture not found")
        return lecture

    async def lecture_graph(self) -> PrerequisiteGraph:
        """All lectures and all lecture prerequisite edges."""
        async with storage_errors("lecture_graph"):
            lectures = (await self.session.execute(select(Lecture))).scalars().all()
            rows = (
                await self.session.execute(
                    select(LecturePrerequisite).order_by(
                        LecturePrerequisite.created_at, LecturePrerequisite.id
                    )
                )
            ).scalars().all()
        titles = {lec.id: lec.title for lec in lectures}
        return PrerequisiteGraph(
            nodes=[lecture_node(lec) for lec in lectures],
            edges=[lecture_edge(row, titles.get(row.prerequisite_lecture_id, "")) for row in rows],
        )

    async def find_edge(
        self, lecture_id: uuid.UUID, prerequisite_id: uuid.UUID
    ) -> Optional[LecturePrerequisite]:
        async with storage_errors("find_edge"):
            result = await self.session.execute(
                select(LecturePrerequisite).where(
                    LecturePrerequisite.lecture_id == lecture_id,
                    LecturePrerequisite.prerequisite_lecture_id == prerequisite_id,
                )
            )
            return result.scalar_one_or_none()

    async def require_edge(self, edge_id: uuid.UUID) -> LecturePrerequisite:
        async with storage_errors("get_edge"):
            edge = await self.session.get(LecturePrerequisite, edge_id)
        if edge is None:
            raise NotFoundError("Prerequisite not found")
        return edge

    async def edges_into(self, lecture_id: uuid.UUID) -> List[LecturePrerequisite]:
        """Prerequisite rows of a lecture, required first then importance desc."""
        async with storage_errors("edges_into"):
            result = await self.session.execute(
                select(LecturePrerequisite)
                .where(LecturePrerequisite.lecture_id == lecture_id)
                .order_by(
                    LecturePrerequisite.is_required.desc(),
                    LecturePrerequisite.importance_level.desc(),
                    LecturePrerequisite.created_at,
                )
            )
            return list(result.scalars().all())

    async def edges_from(self, lecture_id: uuid.UUID) -> List[LecturePrerequisite]:
        """Rows in which the lecture is the prerequisite."""
        async with storage_errors("edges_from"):
            result = await self.session.execute(
                select(LecturePrerequisite)
                .where(LecturePrerequisite.prerequisite_lecture_id == lecture_id)
                .order_by(LecturePrerequisite.created_at)
            )
            return list(result.scalars().all())

    # ---- learners ----

    async def require_user(self, user_id: uuid.UUID) -> User:
        async with storage_errors("get_user"):
            user = await self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("Learner not found")
        return user

    async def progress_statuses(self, user_id: uuid.UUID) -> Dict[str, WorkflowStatus]:
        """Learner's workflow status keyed by lecture id (as str)."""
        async with storage_errors("progress_statuses"):
            result = await self.session.execute(
                select(Progress.lecture_id, Progress.status).where(Progress.user_id == user_id)
            )
            return {str(lecture_id): status for lecture_id, status in result.all()}

    # ---- concepts ----

    async def require_entity(self, entity_id: uuid.UUID) -> PhilosophicalEntity:
        async with storage_errors("get_entity"):
            entity = await self.session.get(PhilosophicalEntity, entity_id)
        if entity is None:
            raise NotFoundError("Philosophical entity not found")
        return entity

    async def find_hierarchical_relation(
        self, source_id: uuid.UUID, target_id: uuid.UUID
    ) -> Optional[PhilosophicalRelation]:
        """The HIERARCHICAL relation source -> target, if one is stored."""
        async with storage_errors("find_relation"):
            result = await self.session.execute(
                select(PhilosophicalRelation)
                .where(
                    PhilosophicalRelation.source_entity_id == source_id,
                    PhilosophicalRelation.target_entity_id == target_id,
                )
                .order_by(PhilosophicalRelation.created_at)
            )
            relations = result.scalars().all()
        return next((rel for rel in relations if rel.is_hierarchical), None)

    async def concept_graph(self) -> PrerequisiteGraph:
        """
        Entities plus HIERARCHICAL relations as prerequisite edges.

        A relation source -> target reads "target requires source".
        """
        async with storage_errors("concept_graph"):
            entities = (await self.session.execute(select(PhilosophicalEntity))).scalars().all()
            relations = (
                await self.session.execute(
                    select(PhilosophicalRelation).order_by(
                        PhilosophicalRelation.created_at, PhilosophicalRelation.id
                    )
                )
            ).scalars().all()
        names = {e.id: e.name for e in entities}
        edges = [
            PrerequisiteEdge(
                id=str(rel.id),
                dependent_id=str(rel.target_entity_id),
                prerequisite_id=str(rel.source_entity_id),
                importance=rel.importance,
                prerequisite_label=names.get(rel.source_entity_id, ""),
            )
            for rel in relations
            if rel.is_hierarchical
        ]
        return PrerequisiteGraph(nodes=[entity_node(e) for e in entities], edges=edges)
