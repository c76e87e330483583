"""
Moving target search on static weighted graphs.
"""

from .graph import Edge, Graph
from .heuristics import HeuristicTable
from .mtdstar_planner import MTDStarPlanner
from .astar_planner import RepeatedAStarPlanner
from .occupancy_grid import OccupancyGrid
from .solver import MovingTargetSearchSolver
from .utils import ExpandCounter, PathNotFoundError

__all__ = [
    "Edge",
    "Graph",
    "HeuristicTable",
    "MTDStarPlanner",
    "RepeatedAStarPlanner",
    "OccupancyGrid",
    "MovingTargetSearchSolver",
    "ExpandCounter",
    "PathNotFoundError",
]
