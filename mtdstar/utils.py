"""
Utility functions for the moving target search planners.
Contains distance helpers, a batch shortest-path routine, path helpers,
the expansion counter and the search failure exception.
"""

import math
import heapq
from typing import Dict, Hashable, List, Optional, Sequence, Tuple

from .graph import Edge, Graph


INF = float('inf')


class PathNotFoundError(Exception):
    """Raised when the target cannot be reached from the agent."""

    def __init__(self, message: str = "No path found",
                 target: Optional[Hashable] = None,
                 agent: Optional[Hashable] = None):
        super().__init__(message)
        self.target = target
        self.agent = agent


class ExpandCounter:
    """Counts node expansions for instrumentation."""

    def __init__(self):
        self.count = 0

    def count_node_expand(self):
        """Record one expansion."""
        self.count += 1

    def reset(self):
        """Reset the counter to zero."""
        self.count = 0

    def __repr__(self):
        return f"ExpandCounter(count={self.count})"


def euclidean_distance(p1: Tuple[float, float], p2: Tuple[float, float]) -> float:
    """
    Calculate Euclidean distance between two points.

    Args:
        p1: First point (x, y)
        p2: Second point (x, y)

    Returns:
        Distance between points
    """
    return math.sqrt((p1[0] - p2[0])**2 + (p1[1] - p2[1])**2)


def manhattan_distance(p1: Tuple[int, int], p2: Tuple[int, int]) -> float:
    """Manhattan (4-connected) distance between two cells."""
    return float(abs(p1[0] - p2[0]) + abs(p1[1] - p2[1]))


def octile_distance(p1: Tuple[int, int], p2: Tuple[int, int]) -> float:
    """
    Octile distance between two cells.

    Exact step cost on an empty 8-connected grid with unit straight moves
    and sqrt(2) diagonal moves.

    Args:
        p1: First cell (row, col)
        p2: Second cell (row, col)

    Returns:
        Octile distance
    """
    dr = abs(p1[0] - p2[0])
    dc = abs(p1[1] - p2[1])
    return (math.sqrt(2.0) - 1.0) * min(dr, dc) + max(dr, dc)


def dijkstra(graph: Graph, source: Hashable) -> Dict[Hashable, float]:
    """
    Batch single-source shortest path costs.

    Args:
        graph: Graph to search
        source: Start node

    Returns:
        Cost of the cheapest path from ``source`` to every reachable node
    """
    dist = {source: 0.0}
    heap = [(0.0, 0, source)]
    counter = 1  # tie-breaker so nodes never get compared

    while heap:
        d, _, u = heapq.heappop(heap)
        if d > dist.get(u, INF):
            continue
        for edge in graph.successors(u):
            nd = d + edge.weight
            if nd < dist.get(edge.target, INF):
                dist[edge.target] = nd
                heapq.heappush(heap, (nd, counter, edge.target))
                counter += 1

    return dist


def path_cost(path: Sequence[Edge]) -> float:
    """Sum of the edge weights along a path."""
    return sum(edge.weight for edge in path)


def path_nodes(path: Sequence[Edge], start: Hashable) -> List[Hashable]:
    """
    Convert an edge path into the sequence of visited nodes.

    Args:
        path: Edges in travel order
        start: Node the path starts at (returned alone for an empty path)

    Returns:
        Nodes from ``start`` to the last edge's target
    """
    nodes = [start]
    for edge in path:
        nodes.append(edge.target)
    return nodes
