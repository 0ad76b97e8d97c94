"""
API v1 routes.
"""

from fastapi import APIRouter

from lyceum.api.v1 import entities, learners, prerequisites, workflow

router = APIRouter()

router.include_router(prerequisites.router, tags=["Prerequisites"])
router.include_router(learners.router, prefix="/learners", tags=["Learners"])
router.include_router(entities.router, tags=["Concepts"])
router.include_router(workflow.router, prefix="/workflow", tags=["Workflow"])
