"""
Graph Model - In-memory snapshot of nodes and prerequisite edges.

Built fresh from storage for every computation and discarded afterwards.
Holds records only; all judgments live in the sibling modules.
"""

from typing import Dict, Iterable, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict


class GraphNode(BaseModel):
    """A lecture or philosophical entity taking part in the graph."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    category: str = ""
    order: int = 0


class PrerequisiteEdge(BaseModel):
    """``dependent_id`` requires ``prerequisite_id``."""

    model_config = ConfigDict(frozen=True)

    dependent_id: str
    prerequisite_id: str
    required: bool = True
    importance: int = 3
    id: Optional[str] = None
    # Display name of the prerequisite, filled by loaders when known
    prerequisite_label: str = ""


class NodeLookup(Protocol):
    """Read-only label resolution used when naming cycle paths."""

    def label_for(self, node_id: str) -> str:
        ...


class PrerequisiteGraph:
    """
    Nodes plus directed prerequisite edges.

    Edge order is preserved per dependent so traversals are reproducible.
    Edges whose endpoints are not nodes are kept; callers decide what an
    unknown endpoint means.
    """

    def __init__(self, nodes: Iterable[GraphNode] = (), edges: Iterable[PrerequisiteEdge] = ()):
        self._nodes: Dict[str, GraphNode] = {}
        self._edges: List[PrerequisiteEdge] = []
        self._edges_by_dependent: Dict[str, List[PrerequisiteEdge]] = {}
        for node in nodes:
            self._nodes[node.id] = node
        for edge in edges:
            self._edges.append(edge)
            self._edges_by_dependent.setdefault(edge.dependent_id, []).append(edge)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple], nodes: Iterable[GraphNode] = ()) -> "PrerequisiteGraph":
        """Build from ``(dependent, prerequisite)`` pairs, all edges required."""
        edges = [PrerequisiteEdge(dependent_id=d, prerequisite_id=p) for d, p in pairs]
        node_list = list(nodes)
        if not node_list:
            ids: Dict[str, None] = {}
            for e in edges:
                ids.setdefault(e.dependent_id)
                ids.setdefault(e.prerequisite_id)
            node_list = [GraphNode(id=i, label=i) for i in ids]
        return cls(nodes=node_list, edges=edges)

    @property
    def nodes(self) -> List[GraphNode]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[PrerequisiteEdge]:
        return list(self._edges)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def node(self, node_id: str) -> Optional[GraphNode]:
        return self._nodes.get(node_id)

    def edges_for(self, node_id: str) -> List[PrerequisiteEdge]:
        """The node's own prerequisite edges."""
        return list(self._edges_by_dependent.get(node_id, ()))

    def prerequisites_of(self, node_id: str) -> List[str]:
        """Ids the node directly requires, in edge order."""
        return [e.prerequisite_id for e in self._edges_by_dependent.get(node_id, ())]

    def label_for(self, node_id: str) -> str:
        node = self._nodes.get(node_id)
        return node.label if node is not None else "Unknown"

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes
