"""
Workflow table endpoint.
"""

from fastapi import APIRouter

from lyceum.orchestration.workflow import next_states, parse_status
from lyceum.schemas.progress import WorkflowNextResponse

router = APIRouter()


@router.get("/{status}/next", response_model=WorkflowNextResponse)
async def get_next_states(status: str):
    """Legal next statuses; unknown statuses are rejected with 400."""
    current = parse_status(status)
    allowed = next_states(current)
    return WorkflowNextResponse(status=current, next_states=allowed, is_terminal=not allowed)
