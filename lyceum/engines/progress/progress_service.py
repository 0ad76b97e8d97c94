"""
Progress Service - A learner's workflow through lectures (DB-backed).

Progress rows are created lazily on first interaction and only ever moved
through legal workflow transitions.
"""

import uuid
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lyceum.config import Settings, get_settings
from lyceum.engines.graph.readiness import ReadinessScorer
from lyceum.engines.prerequisites.graph_store import GraphStore, storage_errors
from lyceum.kernel.errors import NotFoundError, ValidationError
from lyceum.kernel.events.event_store import EventStore
from lyceum.kernel.models.event_log import EventType
from lyceum.kernel.models.progress import Progress, WorkflowStatus
from lyceum.logging_config import get_logger
from lyceum.orchestration.workflow import (
    TransitionResult,
    WorkflowStateMachine,
    outcome_for_score,
    parse_status,
)

logger = get_logger(__name__)


class LectureProgress(BaseModel):
    """Progress of one learner on one lecture (Pydantic)."""

    id: uuid.UUID
    user_id: uuid.UUID
    lecture_id: uuid.UUID
    status: WorkflowStatus
    last_viewed: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    last_mastery_score: Optional[float] = None


class ProgressUpdate(BaseModel):
    """Progress after an action, plus the transitions it attempted."""

    progress: LectureProgress
    transitions: List[TransitionResult] = []

    @property
    def applied(self) -> bool:
        return bool(self.transitions) and all(t.applied for t in self.transitions)


class CompletionStatus(BaseModel):
    """Derived completion view of a lecture for a learner."""

    exists: bool
    status: WorkflowStatus
    is_completed: bool
    is_in_progress: bool
    last_viewed: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ProgressService:
    """
    Moves learners through the lecture workflow.

    LOCKED -> READY -> STARTED -> WATCHED -> INITIAL_REFLECTION
    -> MASTERY_TESTING -> MASTERED (or back to INITIAL_REFLECTION)
    """

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or get_settings()
        self.store = GraphStore(session)
        self.event_store = EventStore(session)
        self.machine = WorkflowStateMachine(session)

    def _row_to_progress(self, row: Progress) -> LectureProgress:
        return LectureProgress(
            id=row.id,
            user_id=row.user_id,
            lecture_id=row.lecture_id,
            status=row.status,
            last_viewed=row.last_viewed,
            completed_at=row.completed_at,
            last_mastery_score=row.last_mastery_score,
        )

    async def _find(self, user_id: uuid.UUID, lecture_id: uuid.UUID) -> Optional[Progress]:
        async with storage_errors("find_progress"):
            result = await self.session.execute(
                select(Progress).where(
                    Progress.user_id == user_id,
                    Progress.lecture_id == lecture_id,
                )
            )
            return result.scalar_one_or_none()

    async def get_or_create(self, user_id: uuid.UUID, lecture_id: uuid.UUID) -> Progress:
        """Existing progress row, or a new LOCKED one."""
        await self.store.require_user(user_id)
        await self.store.require_lecture(lecture_id)

        row = await self._find(user_id, lecture_id)
        if row is not None:
            return row

        row = Progress(
            id=uuid.uuid4(),
            user_id=user_id,
            lecture_id=lecture_id,
            status=WorkflowStatus.LOCKED,
            last_viewed=None,
            completed_at=None,
            last_mastery_score=None,
        )
        async with storage_errors("create_progress"):
            self.session.add(row)
            await self.event_store.log(
                event_type=EventType.PROGRESS_CREATED,
                entity_type="progress",
                entity_id=row.id,
                user_id=user_id,
                payload={"lecture_id": lecture_id},
            )
            await self.session.flush()
        logger.debug(
            "Progress created",
            extra={"user_id": str(user_id), "lecture_id": str(lecture_id)},
        )
        return row

    async def _require_satisfied(self, user_id: uuid.UUID, lecture_id: uuid.UUID) -> None:
        graph = await self.store.lecture_graph()
        statuses = await self.store.progress_statuses(user_id)
        completed = {node_id for node_id, status in statuses.items() if status == WorkflowStatus.MASTERED}
        readiness = ReadinessScorer.score(
            graph.edges_for(str(lecture_id)),
            completed,
            self.settings.readiness_required_weight,
            self.settings.readiness_recommended_weight,
        )
        if not readiness.satisfied:
            missing = ", ".join(e.prerequisite_label or e.prerequisite_id for e in readiness.missing_required)
            raise ValidationError(
                "Prerequisites not satisfied",
                invalid_fields={"prerequisites": f"missing: {missing}"},
            )

    async def _step(
        self,
        user_id: uuid.UUID,
        lecture_id: uuid.UUID,
        requested: WorkflowStatus,
    ) -> ProgressUpdate:
        row = await self.get_or_create(user_id, lecture_id)
        result = await self.machine.transition(row, requested, user_id=user_id)
        await self._flush()
        return ProgressUpdate(progress=self._row_to_progress(row), transitions=[result])

    async def _flush(self) -> None:
        async with storage_errors("flush_progress"):
            await self.session.flush()

    async def start_lecture(self, user_id: uuid.UUID, lecture_id: uuid.UUID) -> ProgressUpdate:
        """
        Start a lecture: LOCKED -> READY -> STARTED.

        Progress already past READY is returned unchanged.

        Raises:
            ValidationError: If required prerequisites are not mastered
        """
        row = await self.get_or_create(user_id, lecture_id)
        if row.status not in (WorkflowStatus.LOCKED, WorkflowStatus.READY):
            return ProgressUpdate(progress=self._row_to_progress(row))

        await self._require_satisfied(user_id, lecture_id)

        transitions: List[TransitionResult] = []
        if row.status == WorkflowStatus.LOCKED:
            transitions.append(await self.machine.transition(row, WorkflowStatus.READY, user_id=user_id))
        transitions.append(await self.machine.transition(row, WorkflowStatus.STARTED, user_id=user_id))
        await self._flush()

        logger.info(
            "Lecture started",
            extra={"user_id": str(user_id), "lecture_id": str(lecture_id)},
        )
        return ProgressUpdate(progress=self._row_to_progress(row), transitions=transitions)

    async def mark_viewed(self, user_id: uuid.UUID, lecture_id: uuid.UUID) -> ProgressUpdate:
        """STARTED -> WATCHED."""
        return await self._step(user_id, lecture_id, WorkflowStatus.WATCHED)

    async def submit_initial_reflection(self, user_id: uuid.UUID, lecture_id: uuid.UUID) -> ProgressUpdate:
        """WATCHED -> INITIAL_REFLECTION."""
        return await self._step(user_id, lecture_id, WorkflowStatus.INITIAL_REFLECTION)

    async def begin_mastery_test(self, user_id: uuid.UUID, lecture_id: uuid.UUID) -> ProgressUpdate:
        """INITIAL_REFLECTION -> MASTERY_TESTING."""
        return await self._step(user_id, lecture_id, WorkflowStatus.MASTERY_TESTING)

    async def record_mastery_score(
        self,
        user_id: uuid.UUID,
        lecture_id: uuid.UUID,
        score: float,
    ) -> ProgressUpdate:
        """
        Record a mastery evaluation.

        A score at or above the mastery threshold moves MASTERY_TESTING to
        MASTERED; anything lower sends the learner back to
        INITIAL_REFLECTION.

        Raises:
            ValidationError: If score is outside [0, 100]
            NotFoundError: If the learner never interacted with the lecture
        """
        outcome = outcome_for_score(score, self.settings.mastery_threshold)

        await self.store.require_user(user_id)
        await self.store.require_lecture(lecture_id)
        row = await self._find(user_id, lecture_id)
        if row is None:
            raise NotFoundError("No progress record found for this lecture")

        result = await self.machine.transition(
            row, outcome, user_id=user_id, payload={"score": score}
        )
        if result.applied:
            row.last_mastery_score = score
            await self.event_store.log(
                event_type=EventType.MASTERY_SCORED,
                entity_type="progress",
                entity_id=row.id,
                user_id=user_id,
                payload={
                    "score": score,
                    "threshold": self.settings.mastery_threshold,
                    "outcome": outcome,
                },
            )
        await self._flush()
        return ProgressUpdate(progress=self._row_to_progress(row), transitions=[result])

    async def request_transition(
        self,
        user_id: uuid.UUID,
        lecture_id: uuid.UUID,
        status: Union[str, WorkflowStatus],
    ) -> ProgressUpdate:
        """
        Ask for a specific next status.

        Unlocking (-> READY) still requires satisfied prerequisites.
        """
        requested = parse_status(status)
        if requested == WorkflowStatus.READY:
            await self.store.require_user(user_id)
            await self.store.require_lecture(lecture_id)
            await self._require_satisfied(user_id, lecture_id)
        return await self._step(user_id, lecture_id, requested)

    async def completion_status(self, user_id: uuid.UUID, lecture_id: uuid.UUID) -> CompletionStatus:
        """Completion view; a learner without a row reads as LOCKED."""
        await self.store.require_user(user_id)
        await self.store.require_lecture(lecture_id)

        row = await self._find(user_id, lecture_id)
        if row is None:
            return CompletionStatus(
                exists=False,
                status=WorkflowStatus.LOCKED,
                is_completed=False,
                is_in_progress=False,
            )
        return CompletionStatus(
            exists=True,
            status=row.status,
            is_completed=row.status == WorkflowStatus.MASTERED,
            is_in_progress=row.status not in (WorkflowStatus.LOCKED, WorkflowStatus.MASTERED),
            last_viewed=row.last_viewed,
            completed_at=row.completed_at,
        )

    async def list_progress(self, user_id: uuid.UUID) -> List[LectureProgress]:
        """All progress rows of a learner."""
        await self.store.require_user(user_id)
        async with storage_errors("list_progress"):
            result = await self.session.execute(
                select(Progress).where(Progress.user_id == user_id).order_by(Progress.created_at)
            )
            rows = result.scalars().all()
        return [self._row_to_progress(r) for r in rows]
