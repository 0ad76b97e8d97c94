"""
FastAPI dependencies for database sessions and services.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lyceum.database import get_db
from lyceum.engines.prerequisites.concept_service import ConceptGraphService
from lyceum.engines.prerequisites.prerequisite_service import PrerequisiteService
from lyceum.engines.progress.progress_service import ProgressService


DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_prerequisite_service(db: DbSession) -> PrerequisiteService:
    return PrerequisiteService(db)


def get_concept_service(db: DbSession) -> ConceptGraphService:
    return ConceptGraphService(db)


def get_progress_service(db: DbSession) -> ProgressService:
    return ProgressService(db)


Prerequisites = Annotated[PrerequisiteService, Depends(get_prerequisite_service)]
Concepts = Annotated[ConceptGraphService, Depends(get_concept_service)]
ProgressFlow = Annotated[ProgressService, Depends(get_progress_service)]
