"""
Cycle Detector - Decides whether a proposed prerequisite edge closes a loop.

The search starts at the proposed prerequisite and follows each node's own
prerequisite list looking for the proposed dependent. Reaching it means the
dependent is already (transitively) a prerequisite of the prerequisite.
"""

from typing import List

from pydantic import BaseModel

from lyceum.engines.graph.model import NodeLookup, PrerequisiteGraph
from lyceum.logging_config import get_logger

logger = get_logger(__name__)

_EXHAUSTED = object()


class CycleCheckResult(BaseModel):
    """Outcome of a cycle check; ``path`` is empty when there is no cycle."""

    has_cycle: bool
    path: List[str] = []

    @property
    def description(self) -> str:
        return " -> ".join(self.path)


def would_create_cycle(
    graph: PrerequisiteGraph,
    dependent_id: str,
    prerequisite_id: str,
) -> CycleCheckResult:
    """
    Check whether "dependent requires prerequisite" would create a cycle.

    Depth-first from ``prerequisite_id`` with an explicit frame stack; each
    frame iterates one node's prerequisites in edge order, the same order a
    recursive walk would take.

    A node already on the current path that is met again belongs to a cycle
    that exists independently of the proposed edge. The existing graph is not
    assumed acyclic, so that is reported as cycle-positive too.

    Args:
        graph: Snapshot of the existing edges
        dependent_id: Node that would gain the prerequisite
        prerequisite_id: Node that would become required

    Returns:
        CycleCheckResult whose path is the DFS stack at discovery followed by
        the dependent, closing the loop
    """
    if dependent_id == prerequisite_id:
        return CycleCheckResult(has_cycle=True, path=[dependent_id, dependent_id])

    visited = {prerequisite_id}
    path: List[str] = [prerequisite_id]
    on_path = {prerequisite_id}
    frames = [iter(graph.prerequisites_of(prerequisite_id))]

    while frames:
        next_id = next(frames[-1], _EXHAUSTED)
        if next_id is _EXHAUSTED:
            frames.pop()
            on_path.discard(path.pop())
            continue

        if next_id == dependent_id:
            return CycleCheckResult(has_cycle=True, path=path + [dependent_id])

        if next_id not in visited:
            visited.add(next_id)
            path.append(next_id)
            on_path.add(next_id)
            frames.append(iter(graph.prerequisites_of(next_id)))
        elif next_id in on_path:
            logger.warning(
                "Existing prerequisite cycle found during check",
                extra={"node_id": next_id, "dependent_id": dependent_id},
            )
            return CycleCheckResult(has_cycle=True, path=path + [dependent_id])

    return CycleCheckResult(has_cycle=False, path=[])


def label_path(path: List[str], lookup: NodeLookup) -> List[str]:
    """Render ids as ``"Label (id)"`` for display."""
    return [f"{lookup.label_for(node_id)} ({node_id})" for node_id in path]
