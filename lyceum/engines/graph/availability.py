"""
Availability Resolver - Learner-facing classification of nodes.

Combines the learner's workflow status for a node with its readiness to
decide LOCKED / AVAILABLE / IN_PROGRESS / COMPLETED, and ranks candidates
for "what to study next".
"""

from enum import Enum
from typing import Collection, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel

from lyceum.engines.graph.model import GraphNode, PrerequisiteEdge, PrerequisiteGraph
from lyceum.engines.graph.readiness import ReadinessResult, ReadinessScorer
from lyceum.kernel.models.progress import WorkflowStatus


class AvailabilityStatus(str, Enum):
    """Availability of a node for a learner."""
    LOCKED = "LOCKED"
    AVAILABLE = "AVAILABLE"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class AvailabilityResult(BaseModel):
    """Availability of one node for one learner."""

    node: GraphNode
    status: AvailabilityStatus
    readiness: ReadinessResult
    is_available: bool
    progress_status: Optional[WorkflowStatus] = None

    @property
    def score(self) -> float:
        return self.readiness.score


class AvailabilityResolver:
    """
    Classifies nodes for a learner.

    Rules, first match wins:
    1. progress MASTERED -> COMPLETED
    2. progress in any in-between workflow state -> IN_PROGRESS
    3. all required prerequisites completed -> AVAILABLE
    4. otherwise -> LOCKED

    ``is_available`` is true only for AVAILABLE.
    """

    # Workflow states that count as neither untouched nor done
    IN_PROGRESS_STATES = frozenset(
        s for s in WorkflowStatus if s not in (WorkflowStatus.LOCKED, WorkflowStatus.MASTERED)
    )

    @classmethod
    def resolve(
        cls,
        node: GraphNode,
        edges: Iterable[PrerequisiteEdge],
        progress_status: Optional[WorkflowStatus],
        completed_ids: Collection[str],
        required_weight: Optional[float] = None,
        recommended_weight: Optional[float] = None,
    ) -> AvailabilityResult:
        """
        Resolve availability of a single node.

        Args:
            node: The node being classified
            edges: The node's own prerequisite edges
            progress_status: Learner's workflow status, None if never touched
            completed_ids: Node ids the learner has mastered
            required_weight: Readiness weight override for required edges
            recommended_weight: Readiness weight override for recommended edges

        Returns:
            AvailabilityResult
        """
        readiness = ReadinessScorer.score(edges, completed_ids, required_weight, recommended_weight)

        if progress_status == WorkflowStatus.MASTERED:
            status = AvailabilityStatus.COMPLETED
        elif progress_status in cls.IN_PROGRESS_STATES:
            status = AvailabilityStatus.IN_PROGRESS
        elif readiness.satisfied:
            status = AvailabilityStatus.AVAILABLE
        else:
            status = AvailabilityStatus.LOCKED

        return AvailabilityResult(
            node=node,
            status=status,
            readiness=readiness,
            is_available=status == AvailabilityStatus.AVAILABLE,
            progress_status=progress_status,
        )

    @classmethod
    def resolve_all(
        cls,
        graph: PrerequisiteGraph,
        status_by_node: Mapping[str, WorkflowStatus],
        category: Optional[str] = None,
        required_weight: Optional[float] = None,
        recommended_weight: Optional[float] = None,
    ) -> List[AvailabilityResult]:
        """
        Resolve every node of the graph for one learner.

        Each node is computed independently from the shared snapshot. Results
        come back in catalogue order (category, order, id).
        """
        completed_ids = {
            node_id for node_id, status in status_by_node.items()
            if status == WorkflowStatus.MASTERED
        }
        nodes = [n for n in graph.nodes if category is None or n.category == category]
        nodes.sort(key=lambda n: (n.category, n.order, n.id))

        return [
            cls.resolve(
                node,
                graph.edges_for(node.id),
                status_by_node.get(node.id),
                completed_ids,
                required_weight,
                recommended_weight,
            )
            for node in nodes
        ]

    @staticmethod
    def suggestion_sort_key(result: AvailabilityResult) -> Tuple[int, float, str, int, str]:
        """In-progress first, then readiness desc, category, order, id."""
        return (
            0 if result.status == AvailabilityStatus.IN_PROGRESS else 1,
            -result.readiness.score,
            result.node.category,
            result.node.order,
            result.node.id,
        )

    @classmethod
    def suggest(cls, results: Iterable[AvailabilityResult], limit: int = 5) -> List[AvailabilityResult]:
        """Top ``limit`` AVAILABLE or IN_PROGRESS nodes, deterministically ranked."""
        candidates = [
            r for r in results
            if r.status in (AvailabilityStatus.AVAILABLE, AvailabilityStatus.IN_PROGRESS)
        ]
        candidates.sort(key=cls.suggestion_sort_key)
        return candidates[:max(limit, 0)]


def status_counts(results: Iterable[AvailabilityResult]) -> Dict[str, int]:
    """How many results fall in each availability status."""
    counts = {s.value: 0 for s in AvailabilityStatus}
    for r in results:
        counts[r.status.value] += 1
    return counts
