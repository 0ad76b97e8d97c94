"""
State machine for a learner's progress through one lecture.

The transition table below is the only source of legal moves. Callers
request the next status; the machine applies it or reports it as invalid.
"""

import math
import uuid
from datetime import datetime, timezone
from typing import Dict, FrozenSet, List, Optional, Union

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from lyceum.kernel.errors import ValidationError
from lyceum.kernel.events.event_store import EventStore
from lyceum.kernel.models.event_log import EventType
from lyceum.kernel.models.progress import Progress, WorkflowStatus
from lyceum.logging_config import get_logger

logger = get_logger(__name__)


# from_status -> statuses it may move to
_TRANSITIONS: Dict[WorkflowStatus, FrozenSet[WorkflowStatus]] = {
    WorkflowStatus.LOCKED: frozenset({WorkflowStatus.READY}),
    WorkflowStatus.READY: frozenset({WorkflowStatus.STARTED}),
    WorkflowStatus.STARTED: frozenset({WorkflowStatus.WATCHED}),
    WorkflowStatus.WATCHED: frozenset({WorkflowStatus.INITIAL_REFLECTION}),
    WorkflowStatus.INITIAL_REFLECTION: frozenset({WorkflowStatus.MASTERY_TESTING}),
    # Failed evaluation loops back to reflection
    WorkflowStatus.MASTERY_TESTING: frozenset(
        {WorkflowStatus.MASTERED, WorkflowStatus.INITIAL_REFLECTION}
    ),
    WorkflowStatus.MASTERED: frozenset(),
}

_ORDER: List[WorkflowStatus] = list(WorkflowStatus)


def parse_status(value: Union[str, WorkflowStatus]) -> WorkflowStatus:
    """Turn a boundary value into a WorkflowStatus, rejecting anything else."""
    if isinstance(value, WorkflowStatus):
        return value
    try:
        return WorkflowStatus(str(value).strip().upper())
    except ValueError:
        raise ValidationError(
            f"Unknown workflow status: {value}",
            invalid_fields={"status": "must be one of " + ", ".join(s.value for s in WorkflowStatus)},
        ) from None


def is_valid_transition(current: WorkflowStatus, requested: WorkflowStatus) -> bool:
    """Pure lookup against the transition table."""
    return requested in _TRANSITIONS.get(current, frozenset())


def next_states(current: WorkflowStatus) -> List[WorkflowStatus]:
    """Legal next statuses, in progression order. Empty for MASTERED."""
    allowed = _TRANSITIONS.get(current, frozenset())
    return [s for s in _ORDER if s in allowed]


def outcome_for_score(score: float, threshold: float = 70.0) -> WorkflowStatus:
    """
    Status a mastery evaluation leads to.

    Args:
        score: Evaluation score in [0, 100]
        threshold: Minimum score for mastery

    Returns:
        MASTERED when score >= threshold, else INITIAL_REFLECTION

    Raises:
        ValidationError: If score is outside [0, 100] or not a finite number
    """
    if not math.isfinite(score) or not 0 <= score <= 100:
        raise ValidationError(
            "Mastery score must be between 0 and 100",
            invalid_fields={"score": "out of range"},
        )
    if score >= threshold:
        return WorkflowStatus.MASTERED
    return WorkflowStatus.INITIAL_REFLECTION


class TransitionResult(BaseModel):
    """What happened to a transition request."""

    applied: bool
    from_status: WorkflowStatus
    to_status: WorkflowStatus
    allowed: List[WorkflowStatus] = []


class WorkflowStateMachine:
    """Applies legal workflow transitions to Progress rows with audit logging."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)

    async def transition(
        self,
        progress: Progress,
        requested: WorkflowStatus,
        user_id: Optional[uuid.UUID] = None,
        payload: Optional[dict] = None,
    ) -> TransitionResult:
        """
        Move progress to ``requested`` if the table allows it.

        An illegal request leaves progress untouched and comes back with
        ``applied=False``; it is not an error.
        """
        from_status = progress.status
        if not is_valid_transition(from_status, requested):
            logger.info(
                "Workflow transition rejected",
                extra={
                    "progress_id": str(progress.id),
                    "from_status": from_status.value,
                    "to_status": requested.value,
                },
            )
            return TransitionResult(
                applied=False,
                from_status=from_status,
                to_status=requested,
                allowed=next_states(from_status),
            )

        now = datetime.now(timezone.utc)
        progress.status = requested
        progress.last_viewed = now
        if requested == WorkflowStatus.MASTERED:
            progress.completed_at = now

        await self.event_store.log(
            event_type=EventType.PROGRESS_STATE_CHANGED,
            entity_type="progress",
            entity_id=progress.id,
            user_id=user_id or progress.user_id,
            payload={
                "from_status": from_status,
                "to_status": requested,
                "lecture_id": progress.lecture_id,
                **(payload or {}),
            },
        )
        logger.debug(
            "Workflow transition applied",
            extra={"progress_id": str(progress.id), "from_status": from_status.value, "to_status": requested.value},
        )
        return TransitionResult(
            applied=True,
            from_status=from_status,
            to_status=requested,
            allowed=next_states(requested),
        )
