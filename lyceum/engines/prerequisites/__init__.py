"""Prerequisite graph services - lecture prerequisites and the concept hierarchy."""

from lyceum.engines.prerequisites.concept_service import ConceptGraphService
from lyceum.engines.prerequisites.graph_store import GraphStore
from lyceum.engines.prerequisites.prerequisite_service import PrerequisiteService

__all__ = [
    "ConceptGraphService",
    "GraphStore",
    "PrerequisiteService",
]
