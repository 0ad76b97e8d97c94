"""Orchestration layer - learner workflow state machine."""

from lyceum.kernel.models.progress import WorkflowStatus
from lyceum.orchestration.workflow import TransitionResult, WorkflowStateMachine

__all__ = [
    "TransitionResult",
    "WorkflowStateMachine",
    "WorkflowStatus",
]
