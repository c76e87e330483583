"""
Common interface of the moving target search solvers.
"""

from abc import ABC, abstractmethod
from typing import Hashable, List, Optional

from .graph import Edge, Graph
from .heuristics import HeuristicTable
from .utils import ExpandCounter


class MovingTargetSearchSolver(ABC):
    """
    A solver keeps a search session open on one graph and answers
    repeated queries while the target (and possibly the agent) moves.
    """

    @abstractmethod
    def initialize(self, graph: Graph, target: Hashable, agent: Hashable,
                   counter: Optional[ExpandCounter] = None,
                   heuristic: Optional[HeuristicTable] = None):
        """
        Start a new search session.

        Args:
            graph: Static graph to search on
            target: Initial target node
            agent: Initial agent node
            counter: Sink notified once per node expansion
            heuristic: Precomputed heuristic table (exact table if omitted)
        """

    @abstractmethod
    def relocate(self, target: Hashable, agent: Hashable) -> List[Edge]:
        """
        Move the target and/or the agent and return the new path.

        Returns:
            Edges from the agent to the target, in travel order

        Raises:
            PathNotFoundError: If the target is unreachable from the agent
        """
