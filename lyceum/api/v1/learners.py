"""
Learner endpoints - readiness, availability, suggestions and workflow actions.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Query

from lyceum.api.deps import Prerequisites, ProgressFlow
from lyceum.engines.graph.availability import status_counts
from lyceum.engines.progress.progress_service import CompletionStatus, LectureProgress
from lyceum.schemas.prerequisite import AvailabilityItem, AvailabilityResponse, ReadinessResponse
from lyceum.schemas.progress import MasteryScoreRequest, ProgressUpdateResponse, TransitionRequest

router = APIRouter()


@router.get("/{user_id}/lectures/{lecture_id}/readiness", response_model=ReadinessResponse)
async def get_readiness(user_id: uuid.UUID, lecture_id: uuid.UUID, service: Prerequisites):
    """Readiness score and prerequisite breakdown."""
    result = await service.compute_readiness(lecture_id, user_id)
    return ReadinessResponse.build(lecture_id, user_id, result)


@router.get("/{user_id}/lectures/{lecture_id}/availability", response_model=AvailabilityItem)
async def get_availability(user_id: uuid.UUID, lecture_id: uuid.UUID, service: Prerequisites):
    """Availability of a single lecture for the learner."""
    result = await service.resolve_availability(lecture_id, user_id)
    return AvailabilityItem.from_result(result)


@router.get("/{user_id}/availability", response_model=AvailabilityResponse)
async def list_availability(
    user_id: uuid.UUID,
    service: Prerequisites,
    category: Optional[str] = None,
    include_in_progress: bool = True,
):
    """Every lecture with its availability for the learner."""
    results = await service.list_availability(
        user_id, category=category, include_in_progress=include_in_progress
    )
    return AvailabilityResponse(
        items=[AvailabilityItem.from_result(r) for r in results],
        counts=status_counts(results),
    )


@router.get("/{user_id}/suggestions", response_model=List[AvailabilityItem])
async def suggest_next(
    user_id: uuid.UUID,
    service: Prerequisites,
    limit: Optional[int] = Query(None, ge=0),
    category: Optional[str] = None,
):
    """In-progress and available lectures, best first."""
    results = await service.suggest_next(user_id, limit=limit, category=category)
    return [AvailabilityItem.from_result(r) for r in results]


@router.get("/{user_id}/progress", response_model=List[LectureProgress])
async def list_progress(user_id: uuid.UUID, flow: ProgressFlow):
    return await flow.list_progress(user_id)


@router.get("/{user_id}/lectures/{lecture_id}/progress", response_model=CompletionStatus)
async def get_completion_status(user_id: uuid.UUID, lecture_id: uuid.UUID, flow: ProgressFlow):
    return await flow.completion_status(user_id, lecture_id)


@router.post("/{user_id}/lectures/{lecture_id}/start", response_model=ProgressUpdateResponse)
async def start_lecture(user_id: uuid.UUID, lecture_id: uuid.UUID, flow: ProgressFlow):
    """Unlock and start a lecture whose required prerequisites are mastered."""
    return ProgressUpdateResponse.from_update(await flow.start_lecture(user_id, lecture_id))


@router.post("/{user_id}/lectures/{lecture_id}/viewed", response_model=ProgressUpdateResponse)
async def mark_viewed(user_id: uuid.UUID, lecture_id: uuid.UUID, flow: ProgressFlow):
    return ProgressUpdateResponse.from_update(await flow.mark_viewed(user_id, lecture_id))


@router.post("/{user_id}/lectures/{lecture_id}/reflection", response_model=ProgressUpdateResponse)
async def submit_reflection(user_id: uuid.UUID, lecture_id: uuid.UUID, flow: ProgressFlow):
    return ProgressUpdateResponse.from_update(await flow.submit_initial_reflection(user_id, lecture_id))


@router.post("/{user_id}/lectures/{lecture_id}/mastery-test", response_model=ProgressUpdateResponse)
async def begin_mastery_test(user_id: uuid.UUID, lecture_id: uuid.UUID, flow: ProgressFlow):
    return ProgressUpdateResponse.from_update(await flow.begin_mastery_test(user_id, lecture_id))


@router.post("/{user_id}/lectures/{lecture_id}/mastery", response_model=ProgressUpdateResponse)
async def record_mastery(
    user_id: uuid.UUID,
    lecture_id: uuid.UUID,
    data: MasteryScoreRequest,
    flow: ProgressFlow,
):
    """Submit a mastery score; below the threshold loops back to reflection."""
    return ProgressUpdateResponse.from_update(
        await flow.record_mastery_score(user_id, lecture_id, data.score)
    )


@router.post("/{user_id}/lectures/{lecture_id}/transition", response_model=ProgressUpdateResponse)
async def request_transition(
    user_id: uuid.UUID,
    lecture_id: uuid.UUID,
    data: TransitionRequest,
    flow: ProgressFlow,
):
    """Request a specific next status; illegal requests come back with applied=false."""
    return ProgressUpdateResponse.from_update(
        await flow.request_transition(user_id, lecture_id, data.status)
    )
