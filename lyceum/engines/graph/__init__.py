"""
Prerequisite graph engine: snapshot model, cycle detection, learning paths,
readiness scoring and availability classification.

Everything here is pure over its inputs; storage lives in the services.
"""

from lyceum.engines.graph.availability import (
    AvailabilityResolver,
    AvailabilityResult,
    AvailabilityStatus,
)
from lyceum.engines.graph.cycle_detector import CycleCheckResult, label_path, would_create_cycle
from lyceum.engines.graph.learning_path import build_learning_path
from lyceum.engines.graph.model import GraphNode, NodeLookup, PrerequisiteEdge, PrerequisiteGraph
from lyceum.engines.graph.readiness import ReadinessResult, ReadinessScorer, score_readiness

__all__ = [
    "AvailabilityResolver",
    "AvailabilityResult",
    "AvailabilityStatus",
    "CycleCheckResult",
    "GraphNode",
    "NodeLookup",
    "PrerequisiteEdge",
    "PrerequisiteGraph",
    "ReadinessResult",
    "ReadinessScorer",
    "build_learning_path",
    "label_path",
    "score_readiness",
    "would_create_cycle",
]
