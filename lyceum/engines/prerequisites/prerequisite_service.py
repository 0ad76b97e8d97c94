"""
Prerequisite Service - Lecture prerequisite graph operations (DB-backed).

Loads a fresh snapshot per call and delegates every judgment to the pure
graph engine.
"""

import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from lyceum.config import Settings, get_settings
from lyceum.engines.graph.availability import AvailabilityResolver, AvailabilityResult, AvailabilityStatus
from lyceum.engines.graph.cycle_detector import CycleCheckResult, label_path, would_create_cycle
from lyceum.engines.graph.readiness import ReadinessResult, ReadinessScorer
from lyceum.engines.prerequisites.graph_store import GraphStore, storage_errors
from lyceum.engines.prerequisites.write_guard import LECTURE_GRAPH, graph_write_lock
from lyceum.kernel.errors import CircularDependencyError, ConflictError, NotFoundError, ValidationError
from lyceum.kernel.events.event_store import EventStore
from lyceum.kernel.models.event_log import EventType
from lyceum.kernel.models.lecture import LecturePrerequisite
from lyceum.kernel.models.progress import WorkflowStatus
from lyceum.logging_config import get_logger

logger = get_logger(__name__)

MIN_IMPORTANCE = 1
MAX_IMPORTANCE = 5


def validate_importance(importance) -> int:
    """Importance must be an integer in 1..5."""
    if isinstance(importance, bool) or not isinstance(importance, int):
        raise ValidationError(
            "Importance level must be an integer",
            invalid_fields={"importance": "must be an integer between 1 and 5"},
        )
    if importance < MIN_IMPORTANCE or importance > MAX_IMPORTANCE:
        raise ValidationError(
            "Importance level must be between 1 and 5",
            invalid_fields={"importance": "must be an integer between 1 and 5"},
        )
    return importance


class PrerequisiteService:
    """
    Adds, edits and evaluates prerequisite edges between lectures.

    Edge insertion runs validation, existence, duplicate and cycle checks
    and the insert itself inside one serialized write section, committed
    before the section is released. Nothing is written when any check fails.
    """

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or get_settings()
        self.store = GraphStore(session)
        self.event_store = EventStore(session)

    # ---- graph edits ----

    async def check_cycle(self, dependent_id: uuid.UUID, prerequisite_id: uuid.UUID) -> CycleCheckResult:
        """
        Would "dependent requires prerequisite" close a loop?

        Returns:
            CycleCheckResult with the path rendered as "Title (id)" labels

        Raises:
            NotFoundError: Either lecture does not exist
        """
        await self.store.require_lecture(dependent_id)
        await self.store.require_lecture(prerequisite_id)
        graph = await self.store.lecture_graph()
        result = would_create_cycle(graph, str(dependent_id), str(prerequisite_id))
        if not result.has_cycle:
            return result
        return CycleCheckResult(has_cycle=True, path=label_path(result.path, graph))

    async def add_prerequisite(
        self,
        dependent_id: Optional[uuid.UUID],
        prerequisite_id: Optional[uuid.UUID],
        required: bool = True,
        importance: Optional[int] = None,
        user_id: Optional[uuid.UUID] = None,
    ) -> LecturePrerequisite:
        """
        Make ``dependent_id`` require ``prerequisite_id``.

        Raises:
            ValidationError: Missing ids, self reference or bad importance
            NotFoundError: Either lecture does not exist
            ConflictError: The edge exists already (carries its id)
            CircularDependencyError: The edge would close a cycle (carries path)
        """
        if importance is None:
            importance = self.settings.default_importance
        missing = {}
        if dependent_id is None:
            missing["lecture_id"] = "required"
        if prerequisite_id is None:
            missing["prerequisite_lecture_id"] = "required"
        if missing:
            raise ValidationError("Lecture ID and prerequisite lecture ID are required", invalid_fields=missing)
        if dependent_id == prerequisite_id:
            raise ValidationError(
                "A lecture cannot be a prerequisite of itself",
                invalid_fields={"prerequisite_lecture_id": "must differ from lecture_id"},
            )
        validate_importance(importance)

        async with graph_write_lock(self.session, LECTURE_GRAPH):
            lecture = await self.store.get_lecture(dependent_id)
            if lecture is None:
                raise NotFoundError("Lecture not found")
            prerequisite = await self.store.get_lecture(prerequisite_id)
            if prerequisite is None:
                raise NotFoundError("Prerequisite lecture not found")

            existing = await self.store.find_edge(dependent_id, prerequisite_id)
            if existing is not None:
                raise ConflictError(
                    "This prerequisite relationship already exists",
                    existing_id=str(existing.id),
                )

            graph = await self.store.lecture_graph()
            check = would_create_cycle(graph, str(dependent_id), str(prerequisite_id))
            if check.has_cycle:
                path = label_path(check.path, graph)
                logger.info(
                    "Prerequisite rejected: circular dependency",
                    extra={"lecture_id": str(dependent_id), "cycle_path": path},
                )
                raise CircularDependencyError(
                    "Adding this prerequisite would create a circular dependency",
                    path=path,
                )

            edge = LecturePrerequisite(
                id=uuid.uuid4(),
                lecture_id=dependent_id,
                prerequisite_lecture_id=prerequisite_id,
                is_required=bool(required),
                importance_level=importance,
            )
            async with storage_errors("add_prerequisite"):
                self.session.add(edge)
                await self.event_store.log(
                    event_type=EventType.PREREQUISITE_ADDED,
                    entity_type="lecture",
                    entity_id=dependent_id,
                    user_id=user_id,
                    payload={
                        "edge_id": edge.id,
                        "prerequisite_lecture_id": prerequisite_id,
                        "is_required": edge.is_required,
                        "importance_level": importance,
                    },
                )
                await self.session.commit()

        logger.info(
            "Prerequisite added",
            extra={
                "edge_id": str(edge.id),
                "lecture_id": str(dependent_id),
                "prerequisite_lecture_id": str(prerequisite_id),
            },
        )
        return edge

    async def update_prerequisite(
        self,
        edge_id: uuid.UUID,
        required: Optional[bool] = None,
        importance: Optional[int] = None,
        user_id: Optional[uuid.UUID] = None,
    ) -> LecturePrerequisite:
        """Change the required flag and/or importance of an edge."""
        if importance is not None:
            validate_importance(importance)

        edge = await self.store.require_edge(edge_id)
        changes = {}
        if required is not None:
            edge.is_required = bool(required)
            changes["is_required"] = edge.is_required
        if importance is not None:
            edge.importance_level = importance
            changes["importance_level"] = importance

        async with storage_errors("update_prerequisite"):
            await self.event_store.log(
                event_type=EventType.PREREQUISITE_UPDATED,
                entity_type="lecture",
                entity_id=edge.lecture_id,
                user_id=user_id,
                payload={"edge_id": edge.id, **changes},
            )
            await self.session.flush()
        return edge

    async def remove_prerequisite(self, edge_id: uuid.UUID, user_id: Optional[uuid.UUID] = None) -> None:
        """Delete an edge."""
        edge = await self.store.require_edge(edge_id)
        async with storage_errors("remove_prerequisite"):
            await self.event_store.log(
                event_type=EventType.PREREQUISITE_REMOVED,
                entity_type="lecture",
                entity_id=edge.lecture_id,
                user_id=user_id,
                payload={"edge_id": edge.id, "prerequisite_lecture_id": edge.prerequisite_lecture_id},
            )
            await self.session.delete(edge)
            await self.session.flush()
        logger.info("Prerequisite removed", extra={"edge_id": str(edge_id)})

    async def list_prerequisites(self, lecture_id: uuid.UUID) -> List[LecturePrerequisite]:
        """Direct prerequisites, required first then by importance."""
        await self.store.require_lecture(lecture_id)
        return await self.store.edges_into(lecture_id)

    async def list_dependents(self, lecture_id: uuid.UUID) -> List[LecturePrerequisite]:
        """Edges of lectures that require ``lecture_id``."""
        await self.store.require_lecture(lecture_id)
        return await self.store.edges_from(lecture_id)

    # ---- learner views ----

    async def compute_readiness(self, lecture_id: uuid.UUID, user_id: uuid.UUID) -> ReadinessResult:
        """Readiness of a learner for a lecture."""
        await self.store.require_user(user_id)
        await self.store.require_lecture(lecture_id)

        graph = await self.store.lecture_graph()
        statuses = await self.store.progress_statuses(user_id)
        completed = {node_id for node_id, status in statuses.items() if status == WorkflowStatus.MASTERED}

        return ReadinessScorer.score(
            graph.edges_for(str(lecture_id)),
            completed,
            self.settings.readiness_required_weight,
            self.settings.readiness_recommended_weight,
        )

    async def resolve_availability(self, lecture_id: uuid.UUID, user_id: uuid.UUID) -> AvailabilityResult:
        """
        Availability of one lecture for a learner.

        Raises:
            NotFoundError: If the learner or the lecture does not exist
        """
        await self.store.require_user(user_id)
        await self.store.require_lecture(lecture_id)

        graph = await self.store.lecture_graph()
        statuses = await self.store.progress_statuses(user_id)
        completed = {node_id for node_id, status in statuses.items() if status == WorkflowStatus.MASTERED}
        node_id = str(lecture_id)

        return AvailabilityResolver.resolve(
            graph.node(node_id),
            graph.edges_for(node_id),
            statuses.get(node_id),
            completed,
            self.settings.readiness_required_weight,
            self.settings.readiness_recommended_weight,
        )

    async def list_availability(
        self,
        user_id: uuid.UUID,
        category: Optional[str] = None,
        include_in_progress: bool = True,
    ) -> List[AvailabilityResult]:
        """Availability of every lecture (optionally one category) for a learner."""
        await self.store.require_user(user_id)

        graph = await self.store.lecture_graph()
        statuses = await self.store.progress_statuses(user_id)
        results = AvailabilityResolver.resolve_all(
            graph,
            statuses,
            category=category,
            required_weight=self.settings.readiness_required_weight,
            recommended_weight=self.settings.readiness_recommended_weight,
        )
        if not include_in_progress:
            results = [r for r in results if r.status != AvailabilityStatus.IN_PROGRESS]
        return results

    async def suggest_next(
        self,
        user_id: uuid.UUID,
        limit: Optional[int] = None,
        category: Optional[str] = None,
    ) -> List[AvailabilityResult]:
        """Lectures the learner should look at next."""
        if limit is None:
            limit = self.settings.suggestion_limit
        if limit < 0:
            raise ValidationError("Limit must not be negative", invalid_fields={"limit": "must be >= 0"})
        results = await self.list_availability(user_id, category=category)
        return AvailabilityResolver.suggest(results, limit)
