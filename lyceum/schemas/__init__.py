"""
Pydantic schemas for API request/response validation.
"""

from lyceum.schemas.common import ErrorResponse, HealthResponse, SuccessResponse
from lyceum.schemas.entity import (
    ConceptNode,
    LearningPathResponse,
    RelationCreate,
    RelationResponse,
)
from lyceum.schemas.prerequisite import (
    AvailabilityItem,
    AvailabilityResponse,
    CycleCheckResponse,
    EdgeSummary,
    PrerequisiteCreate,
    PrerequisiteResponse,
    PrerequisiteUpdate,
    ReadinessResponse,
)
from lyceum.schemas.progress import (
    MasteryScoreRequest,
    ProgressUpdateResponse,
    TransitionRequest,
    WorkflowNextResponse,
)

__all__ = [
    "AvailabilityItem",
    "AvailabilityResponse",
    "ConceptNode",
    "CycleCheckResponse",
    "EdgeSummary",
    "ErrorResponse",
    "HealthResponse",
    "LearningPathResponse",
    "MasteryScoreRequest",
    "PrerequisiteCreate",
    "PrerequisiteResponse",
    "PrerequisiteUpdate",
    "ProgressUpdateResponse",
    "ReadinessResponse",
    "RelationCreate",
    "RelationResponse",
    "SuccessResponse",
    "TransitionRequest",
    "WorkflowNextResponse",
]
