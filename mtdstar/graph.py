"""
Weighted directed graph used by the moving target planners.

Nodes are arbitrary hashable values (grid cells are (row, col) tuples).
Every edge is stored twice, once in the successor list of its source and
once in the predecessor list of its target, so planners can walk the
graph in both directions without scanning all edges.
"""

from typing import Dict, Hashable, Iterator, List, NamedTuple


class Edge(NamedTuple):
    """Directed edge from ``source`` to ``target`` with a non-negative weight."""
    source: Hashable
    target: Hashable
    weight: float


class Graph:
    """
    Static weighted graph.

    Planners never mutate the graph; it must not change structurally or in
    its weights while a search session is using it.
    """

    def __init__(self):
        self._successors: Dict[Hashable, List[Edge]] = {}
        self._predecessors: Dict[Hashable, List[Edge]] = {}

    def add_node(self, node: Hashable):
        """Add a node (no-op if it already exists)."""
        if node not in self._successors:
            self._successors[node] = []
            self._predecessors[node] = []

    def add_edge(self, source: Hashable, target: Hashable, weight: float,
                 bidirectional: bool = True):
        """
        Connect two nodes.

        Args:
            source: Start node of the edge
            target: End node of the edge
            weight: Non-negative traversal cost
            bidirectional: Also add the reverse edge with the same weight
        """
        if weight < 0:
            raise ValueError(f"Negative edge weight {weight} from {source} to {target}")

        self.add_node(source)
        self.add_node(target)

        edge = Edge(source, target, float(weight))
        self._successors[source].append(edge)
        self._predecessors[target].append(edge)

        if bidirectional:
            reverse = Edge(target, source, float(weight))
            self._successors[target].append(reverse)
            self._predecessors[source].append(reverse)

    @property
    def nodes(self) -> List[Hashable]:
        """All nodes in insertion order."""
        return list(self._successors)

    def successors(self, node: Hashable) -> List[Edge]:
        """Outgoing edges of a node."""
        return self._successors[node]

    def predecessors(self, node: Hashable) -> List[Edge]:
        """Incoming edges of a node."""
        return self._predecessors[node]

    def has_node(self, node: Hashable) -> bool:
        return node in self._successors

    def edge_count(self) -> int:
        return sum(len(edges) for edges in self._successors.values())

    def __contains__(self, node) -> bool:
        return self.has_node(node)

    def __len__(self) -> int:
        return len(self._successors)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._successors)
