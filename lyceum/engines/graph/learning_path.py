"""
Learning Path Builder - Orders the prerequisite closure of a target node.

Cycles in stored data are tolerated here: the order is best-effort and every
node still appears exactly once. Strict rejection of cycles belongs to the
cycle detector at edge-insertion time, not to this module.
"""

from typing import Callable, Iterable, List, Set

from lyceum.engines.graph.model import GraphNode, PrerequisiteGraph
from lyceum.kernel.errors import NotFoundError
from lyceum.logging_config import get_logger

logger = get_logger(__name__)

PrerequisitesOf = Callable[[str], Iterable[str]]


def collect_prerequisite_closure(target_id: str, prerequisites_of: PrerequisitesOf) -> List[str]:
    """
    Every node reachable from the target through prerequisite links.

    Returned in preorder (target first). A node already visited is not
    expanded again.
    """
    visited: Set[str] = set()
    closure: List[str] = []
    stack = [target_id]

    while stack:
        node_id = stack.pop()
        if node_id in visited:
            continue
        visited.add(node_id)
        closure.append(node_id)
        # Reversed so the first prerequisite is expanded first
        stack.extend(reversed(list(prerequisites_of(node_id))))

    return closure


def topological_order(closure: List[str], prerequisites_of: PrerequisitesOf) -> List[str]:
    """
    Depth-first topological sort with temporary/permanent marks.

    A node met again while temporarily marked sits on a cycle; it is skipped
    and the sort continues.
    """
    permanent: Set[str] = set()
    temporary: Set[str] = set()
    ordered: List[str] = []
    cycles_skipped = 0

    for root in closure:
        if root in permanent:
            continue
        temporary.add(root)
        frames = [(root, iter(list(prerequisites_of(root))))]

        while frames:
            node_id, children = frames[-1]
            advanced = False
            for child in children:
                if child in permanent:
                    continue
                if child in temporary:
                    cycles_skipped += 1
                    continue
                temporary.add(child)
                frames.append((child, iter(list(prerequisites_of(child)))))
                advanced = True
                break
            if advanced:
                continue
            frames.pop()
            temporary.discard(node_id)
            permanent.add(node_id)
            ordered.append(node_id)

    if cycles_skipped:
        logger.warning(
            "Learning path built over cyclic prerequisites",
            extra={"back_edges_skipped": cycles_skipped},
        )
    return ordered


def build_learning_path(graph: PrerequisiteGraph, target_id: str) -> List[GraphNode]:
    """
    Ordered learning path ending at ``target_id``.

    Args:
        graph: Snapshot containing the target and its prerequisites
        target_id: Node the learner wants to reach

    Returns:
        Nodes leaves-first; each prerequisite precedes its dependents when the
        data is acyclic, and the target is last

    Raises:
        NotFoundError: If the target is not in the graph
    """
    if not graph.has_node(target_id):
        raise NotFoundError("Target concept not found")

    closure = collect_prerequisite_closure(target_id, graph.prerequisites_of)
    ordered = topological_order(closure, graph.prerequisites_of)

    # Dangling references to nodes missing from the snapshot are dropped
    return [graph.node(node_id) for node_id in ordered if graph.has_node(node_id)]
