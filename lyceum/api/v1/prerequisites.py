"""
Lecture prerequisite endpoints - list, add, check, edit, remove.
"""

import uuid
from typing import List

from fastapi import APIRouter, Query, status

from lyceum.api.deps import Prerequisites
from lyceum.schemas.common import SuccessResponse
from lyceum.schemas.prerequisite import (
    CycleCheckResponse,
    PrerequisiteCreate,
    PrerequisiteResponse,
    PrerequisiteUpdate,
)

router = APIRouter()


@router.get("/lectures/{lecture_id}/prerequisites", response_model=List[PrerequisiteResponse])
async def list_prerequisites(lecture_id: uuid.UUID, service: Prerequisites):
    """Direct prerequisites of a lecture, required first."""
    rows = await service.list_prerequisites(lecture_id)
    return [PrerequisiteResponse.from_row(r) for r in rows]


@router.post(
    "/lectures/{lecture_id}/prerequisites",
    response_model=PrerequisiteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_prerequisite(lecture_id: uuid.UUID, data: PrerequisiteCreate, service: Prerequisites):
    """Make the lecture require another lecture. 409 on duplicate, 400 on cycle."""
    row = await service.add_prerequisite(
        lecture_id,
        data.prerequisite_lecture_id,
        required=data.is_required,
        importance=data.importance_level,
    )
    return PrerequisiteResponse.from_row(row)


@router.get("/lectures/{lecture_id}/prerequisites/check", response_model=CycleCheckResponse)
async def check_prerequisite(
    lecture_id: uuid.UUID,
    service: Prerequisites,
    prerequisite_id: uuid.UUID = Query(...),
):
    """Dry run: would adding the prerequisite create a cycle?"""
    result = await service.check_cycle(lecture_id, prerequisite_id)
    return CycleCheckResponse(
        has_cycle=result.has_cycle,
        path=result.path,
        description=result.description if result.has_cycle else None,
    )


@router.get("/lectures/{lecture_id}/dependents", response_model=List[PrerequisiteResponse])
async def list_dependents(lecture_id: uuid.UUID, service: Prerequisites):
    """Edges of lectures that require this lecture."""
    rows = await service.list_dependents(lecture_id)
    return [PrerequisiteResponse.from_row(r) for r in rows]


@router.patch("/prerequisites/{edge_id}", response_model=PrerequisiteResponse)
async def update_prerequisite(edge_id: uuid.UUID, data: PrerequisiteUpdate, service: Prerequisites):
    row = await service.update_prerequisite(
        edge_id,
        required=data.is_required,
        importance=data.importance_level,
    )
    return PrerequisiteResponse.from_row(row)


@router.delete("/prerequisites/{edge_id}", response_model=SuccessResponse)
async def remove_prerequisite(edge_id: uuid.UUID, service: Prerequisites):
    await service.remove_prerequisite(edge_id)
    return SuccessResponse(message="Prerequisite removed successfully")
