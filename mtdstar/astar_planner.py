"""
Repeated A* baseline for moving target search.

Plans from scratch on every relocation. It answers the same queries as
the MT-D* planner and counts its expansions the same way, which makes it
a reference point for how much work incremental replanning saves.
"""

import heapq
import itertools
import logging
from typing import Dict, Hashable, List, Optional

from .graph import Edge, Graph
from .heuristics import HeuristicTable
from .solver import MovingTargetSearchSolver
from .utils import ExpandCounter, PathNotFoundError


logger = logging.getLogger(__name__)


class RepeatedAStarPlanner(MovingTargetSearchSolver):

    def __init__(self):
        self.graph: Optional[Graph] = None
        self.heuristic: Optional[HeuristicTable] = None
        self.counter: Optional[ExpandCounter] = None
        self.target: Optional[Hashable] = None
        self.agent: Optional[Hashable] = None

    def initialize(self, graph: Graph, target: Hashable, agent: Hashable,
                   counter: Optional[ExpandCounter] = None,
                   heuristic: Optional[HeuristicTable] = None):
        for node in (target, agent):
            if node not in graph:
                raise ValueError(f"Node {node!r} is not in the graph")

        self.graph = graph
        self.heuristic = heuristic if heuristic is not None else HeuristicTable.from_graph(graph)
        self.counter = counter if counter is not None else ExpandCounter()
        self.target = target
        self.agent = agent

    def relocate(self, target: Hashable, agent: Hashable) -> List[Edge]:
        if self.graph is None:
            raise RuntimeError("Planner must be initialized before relocating")
        for node in (target, agent):
            if node not in self.graph:
                raise ValueError(f"Node {node!r} is not in the graph")

        self.target = target
        self.agent = agent
        return self.plan(agent, target)

    def plan(self, start: Hashable, goal: Hashable) -> List[Edge]:
        """
        A* search from start to goal.

        Args:
            start: Start node
            goal: Goal node

        Returns:
            Edges from start to goal

        Raises:
            PathNotFoundError: If goal is unreachable
        """
        tie = itertools.count()
        open_set = [(self.heuristic.get(start, goal), next(tie), start)]
        came_from: Dict[Hashable, Edge] = {}
        g_score = {start: 0.0}
        closed = set()

        while open_set:
            _, _, current = heapq.heappop(open_set)
            if current in closed:
                continue

            if current == goal:
                path = []
                while current in came_from:
                    edge = came_from[current]
                    path.append(edge)
                    current = edge.source
                path.reverse()
                logger.debug("A* reached %r after %d expansions", goal, len(closed))
                return path

            closed.add(current)
            self.counter.count_node_expand()

            for edge in self.graph.successors(current):
                nb = edge.target
                if nb in closed:
                    continue
                tentative_g = g_score[current] + edge.weight
                if nb not in g_score or tentative_g < g_score[nb]:
                    came_from[nb] = edge
                    g_score[nb] = tentative_g
                    f_score = tentative_g + self.heuristic.get(nb, goal)
                    heapq.heappush(open_set, (f_score, next(tie), nb))

        raise PathNotFoundError(f"No path from {start!r} to {goal!r}",
                                target=goal, agent=start)
