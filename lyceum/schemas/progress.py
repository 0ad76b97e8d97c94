"""
Pydantic schemas for learner progress and workflow.
"""

from typing import List

from pydantic import BaseModel

from lyceum.engines.progress.progress_service import LectureProgress, ProgressUpdate
from lyceum.kernel.models.progress import WorkflowStatus
from lyceum.orchestration.workflow import TransitionResult


class MasteryScoreRequest(BaseModel):
    """Mastery evaluation score, 0-100."""

    score: float


class TransitionRequest(BaseModel):
    """Generic request for a next workflow status."""

    status: str


class ProgressUpdateResponse(BaseModel):
    """Progress after an action and whether its transitions were applied."""

    applied: bool
    progress: LectureProgress
    transitions: List[TransitionResult] = []

    @classmethod
    def from_update(cls, update: ProgressUpdate) -> "ProgressUpdateResponse":
        return cls(applied=update.applied, progress=update.progress, transitions=update.transitions)


class WorkflowNextResponse(BaseModel):
    """Legal next statuses from a status."""

    status: WorkflowStatus
    next_states: List[WorkflowStatus]
    is_terminal: bool
