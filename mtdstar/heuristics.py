"""
Precomputed heuristic tables for moving target search.

The planners only ever look values up; a table is built once per graph
and then shared by every relocation. Values are stored in a dense numpy
matrix where entry [i, j] estimates the cost from node i to node j.
"""

import logging
from typing import Callable, Dict, Hashable, Iterable, List

import numpy as np

from .graph import Graph
from .utils import dijkstra


logger = logging.getLogger(__name__)


class HeuristicTable:
    """
    All-pairs heuristic lookup.

    Estimates must be non-negative and admissible for the planners to
    return optimal paths; ``from_graph`` gives exact (perfect) values.
    """

    def __init__(self, nodes: Iterable[Hashable], values: np.ndarray):
        """
        Initialize the table.

        Args:
            nodes: Node order used for the rows and columns of ``values``
            values: Square matrix of estimates
        """
        self.nodes: List[Hashable] = list(nodes)
        self.index: Dict[Hashable, int] = {n: i for i, n in enumerate(self.nodes)}
        self.values = np.asarray(values, dtype=np.float64)

        n = len(self.nodes)
        if self.values.shape != (n, n):
            raise ValueError(
                f"Heuristic matrix shape {self.values.shape} does not match {n} nodes")
        if np.any(self.values < 0):
            raise ValueError("Heuristic values must be non-negative")

    @classmethod
    def zeros(cls, graph: Graph) -> "HeuristicTable":
        """Uninformed table (turns the planners into Dijkstra-like searches)."""
        nodes = graph.nodes
        return cls(nodes, np.zeros((len(nodes), len(nodes))))

    @classmethod
    def from_function(cls, graph: Graph,
                      func: Callable[[Hashable, Hashable], float]) -> "HeuristicTable":
        """
        Build a table by evaluating ``func(node, target)`` for every pair.

        Args:
            graph: Graph whose nodes index the table
            func: Estimate function, e.g. ``octile_distance`` on grid cells
        """
        nodes = graph.nodes
        values = np.array([[func(a, b) for b in nodes] for a in nodes], dtype=np.float64)
        return cls(nodes, values.reshape(len(nodes), len(nodes)))

    @classmethod
    def from_graph(cls, graph: Graph) -> "HeuristicTable":
        """
        Build an exact table from shortest path costs between all pairs.

        Unreachable pairs are stored as +inf.
        """
        nodes = graph.nodes
        index = {n: i for i, n in enumerate(nodes)}
        values = np.full((len(nodes), len(nodes)), np.inf)

        for i, source in enumerate(nodes):
            for node, cost in dijkstra(graph, source).items():
                values[i, index[node]] = cost

        logger.debug("Built exact heuristic table for %d nodes", len(nodes))
        return cls(nodes, values)

    def get(self, node: Hashable, target: Hashable) -> float:
        """Estimated cost from ``node`` to ``target``."""
        return float(self.values[self.index[node], self.index[target]])

    def __call__(self, node: Hashable, target: Hashable) -> float:
        return self.get(node, target)

    def __contains__(self, node) -> bool:
        return node in self.index

    def __len__(self) -> int:
        return len(self.nodes)
