"""
Pydantic schemas for the lecture prerequisite API.
"""

import uuid
from typing import Dict, List, Optional

from pydantic import BaseModel

from lyceum.engines.graph.availability import AvailabilityResult
from lyceum.engines.graph.model import PrerequisiteEdge
from lyceum.engines.graph.readiness import ReadinessResult
from lyceum.kernel.models.lecture import LecturePrerequisite


class PrerequisiteCreate(BaseModel):
    """Make the path lecture require ``prerequisite_lecture_id``."""

    prerequisite_lecture_id: Optional[uuid.UUID] = None
    is_required: bool = True
    # Range checked by the service so it reports a validation error
    importance_level: Optional[int] = None


class PrerequisiteUpdate(BaseModel):
    """Editable fields of an edge."""

    is_required: Optional[bool] = None
    importance_level: Optional[int] = None


class PrerequisiteResponse(BaseModel):
    """A stored prerequisite edge."""

    id: uuid.UUID
    lecture_id: uuid.UUID
    prerequisite_lecture_id: uuid.UUID
    is_required: bool
    importance_level: int

    @classmethod
    def from_row(cls, row: LecturePrerequisite) -> "PrerequisiteResponse":
        return cls(
            id=row.id,
            lecture_id=row.lecture_id,
            prerequisite_lecture_id=row.prerequisite_lecture_id,
            is_required=row.is_required,
            importance_level=row.importance_level,
        )


class CycleCheckResponse(BaseModel):
    """Result of a dry-run cycle check."""

    has_cycle: bool
    path: List[str] = []
    description: Optional[str] = None


class EdgeSummary(BaseModel):
    """Prerequisite edge as shown inside readiness results."""

    id: Optional[str] = None
    prerequisite_id: str
    title: str
    is_required: bool
    importance_level: int

    @classmethod
    def from_edge(cls, edge: PrerequisiteEdge) -> "EdgeSummary":
        return cls(
            id=edge.id,
            prerequisite_id=edge.prerequisite_id,
            title=edge.prerequisite_label,
            is_required=edge.required,
            importance_level=edge.importance,
        )


class ReadinessResponse(BaseModel):
    """Readiness of a learner for one lecture."""

    lecture_id: uuid.UUID
    user_id: uuid.UUID
    satisfied: bool
    score: float
    required: List[EdgeSummary]
    completed_required: List[EdgeSummary]
    missing_required: List[EdgeSummary]
    recommended: List[EdgeSummary]
    completed_recommended: List[EdgeSummary]
    counts: Dict[str, int]

    @classmethod
    def build(cls, lecture_id: uuid.UUID, user_id: uuid.UUID, result: ReadinessResult) -> "ReadinessResponse":
        def edges(items: List[PrerequisiteEdge]) -> List[EdgeSummary]:
            return [EdgeSummary.from_edge(e) for e in items]

        return cls(
            lecture_id=lecture_id,
            user_id=user_id,
            satisfied=result.satisfied,
            score=result.score,
            required=edges(result.required),
            completed_required=edges(result.completed_required),
            missing_required=edges(result.missing_required),
            recommended=edges(result.recommended),
            completed_recommended=edges(result.completed_recommended),
            counts=result.counts(),
        )


class AvailabilityItem(BaseModel):
    """One lecture in a learner's availability listing."""

    lecture_id: str
    title: str
    category: str
    order: int
    status: str
    score: float
    is_available: bool
    prerequisites_satisfied: bool
    progress_status: Optional[str] = None

    @classmethod
    def from_result(cls, result: AvailabilityResult) -> "AvailabilityItem":
        return cls(
            lecture_id=result.node.id,
            title=result.node.label,
            category=result.node.category,
            order=result.node.order,
            status=result.status.value,
            score=result.score,
            is_available=result.is_available,
            prerequisites_satisfied=result.readiness.satisfied,
            progress_status=result.progress_status.value if result.progress_status else None,
        )


class AvailabilityResponse(BaseModel):
    """Availability listing with per-status counts."""

    items: List[AvailabilityItem]
    counts: Dict[str, int]
