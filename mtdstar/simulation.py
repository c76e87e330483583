"""
Moving target chase simulation.

An agent follows the path returned by a moving target solver one edge
per step while the target wanders over the free cells of an occupancy
grid. Every step the solver is relocated to the new target and agent
positions, so the simulation exercises exactly the repeated-query
pattern the incremental planner is designed for.
"""

import logging
from typing import Hashable, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .astar_planner import RepeatedAStarPlanner
from .graph import Graph
from .heuristics import HeuristicTable
from .mtdstar_planner import MTDStarPlanner
from .occupancy_grid import OccupancyGrid
from .solver import MovingTargetSearchSolver
from .utils import ExpandCounter, PathNotFoundError


logger = logging.getLogger(__name__)

show_animation = True

DEFAULT_MAX_STEPS = 500
# The target moves once every DEFAULT_TARGET_SPEED agent steps
DEFAULT_TARGET_SPEED = 2

TARGET_POLICIES = ("random", "waypoints", "static")

DEMO_MAP = [
    "....................",
    "....................",
    "...#######..........",
    ".........#..........",
    ".........#....####..",
    ".........#.......#..",
    "..####...........#..",
    ".................#..",
    "......######.....#..",
    "....................",
    "..............#.....",
    "..#...........#.....",
    "..#....########.....",
    "..#.................",
    "....................",
]


class ChaseResult:
    """Outcome of one chase."""

    def __init__(self, captured: bool, steps: int,
                 agent_trajectory: List[Hashable],
                 target_trajectory: List[Hashable],
                 expansions: int, failed_relocations: int):
        self.captured = captured
        self.steps = steps
        self.agent_trajectory = agent_trajectory
        self.target_trajectory = target_trajectory
        self.expansions = expansions
        self.failed_relocations = failed_relocations

    def __repr__(self):
        return (f"ChaseResult(captured={self.captured}, steps={self.steps}, "
                f"expansions={self.expansions}, "
                f"failed_relocations={self.failed_relocations})")


class MovingTargetSimulation:
    """
    Chase a moving target over an occupancy grid.
    """

    def __init__(self,
                 grid: OccupancyGrid,
                 agent_start: Tuple[int, int],
                 target_start: Tuple[int, int],
                 solver: Optional[MovingTargetSearchSolver] = None,
                 target_policy: str = "random",
                 waypoints: Optional[Sequence[Tuple[int, int]]] = None,
                 target_speed: int = DEFAULT_TARGET_SPEED,
                 max_steps: int = DEFAULT_MAX_STEPS,
                 include_diagonal: bool = True,
                 seed: Optional[int] = None):
        """
        Initialize the simulation.

        Args:
            grid: Map to chase on
            agent_start: Initial agent cell (moved to the nearest free cell)
            target_start: Initial target cell (moved to the nearest free cell)
            solver: Planner to use (MT-D* if omitted)
            target_policy: "random" walk, scripted "waypoints" or "static"
            waypoints: Cells visited in order by the "waypoints" policy
            target_speed: Agent steps per target move (>= 1)
            max_steps: Give up after this many agent steps
            include_diagonal: Use 8-connectivity
            seed: Seed for the random target walk
        """
        if target_policy not in TARGET_POLICIES:
            raise ValueError(f"Unknown target policy {target_policy!r}, "
                             f"expected one of {TARGET_POLICIES}")
        if target_policy == "waypoints" and not waypoints:
            raise ValueError("The waypoints policy needs at least one waypoint")
        if target_speed < 1:
            raise ValueError("target_speed must be at least 1")

        self.grid = grid
        self.include_diagonal = include_diagonal
        self.graph: Graph = grid.to_graph(include_diagonal)
        self.heuristic = HeuristicTable.from_graph(self.graph)

        self.agent_start = self._free_cell(agent_start)
        self.target_start = self._free_cell(target_start)

        self.solver = solver if solver is not None else MTDStarPlanner()
        self.target_policy = target_policy
        self.waypoints = [self._free_cell(w) for w in (waypoints or [])]
        self.target_speed = target_speed
        self.max_steps = max_steps
        self.rng = np.random.default_rng(seed)

        self.counter = ExpandCounter()
        self._waypoint_index = 0

    def _free_cell(self, cell: Tuple[int, int]) -> Tuple[int, int]:
        free = self.grid.get_nearest_free_cell(cell[0], cell[1])
        if free is None:
            raise ValueError(f"No free cell near {cell}")
        return free

    def _move_target(self, target: Tuple[int, int]) -> Tuple[int, int]:
        """Next target cell according to the target policy."""
        if self.target_policy == "static":
            return target

        if self.target_policy == "waypoints":
            waypoint = self.waypoints[self._waypoint_index % len(self.waypoints)]
            self._waypoint_index += 1
            return waypoint

        neighbors = self.grid.get_neighbors(target[0], target[1], self.include_diagonal)
        if not neighbors:
            return target
        return neighbors[int(self.rng.integers(len(neighbors)))]

    def run(self) -> ChaseResult:
        """
        Run the chase until the target is captured or the step limit is hit.

        Returns:
            The chase outcome
        """
        agent = self.agent_start
        target = self.target_start
        self.counter.reset()
        self._waypoint_index = 0
        self.solver.initialize(self.graph, target, agent, self.counter, self.heuristic)

        agent_trajectory = [agent]
        target_trajectory = [target]
        failed = 0
        steps = 0

        while agent != target and steps < self.max_steps:
            steps += 1
            try:
                path = self.solver.relocate(target, agent)
            except PathNotFoundError as e:
                logger.warning("Step %d: %s", steps, e)
                failed += 1
                path = []

            if path:
                agent = path[0].target
            agent_trajectory.append(agent)

            if agent != target and steps % self.target_speed == 0:
                target = self._move_target(target)
            target_trajectory.append(target)

        captured = agent == target
        if captured:
            logger.info("Target captured at %r after %d steps (%d expansions)",
                        target, steps, self.counter.count)
        else:
            logger.info("Target not captured within %d steps", self.max_steps)

        return ChaseResult(captured, steps, agent_trajectory, target_trajectory,
                           self.counter.count, failed)


def plot_chase(grid: OccupancyGrid, result: ChaseResult, ax=None):
    """
    Draw the grid and both trajectories.

    Args:
        grid: Map the chase ran on
        result: Chase outcome
        ax: Matplotlib axes to draw on (a new figure if omitted)

    Returns:
        The axes
    """
    if ax is None:
        _, ax = plt.subplots()

    ax.imshow(grid.cells, cmap="Greys", origin="upper")

    agent_rows, agent_cols = zip(*result.agent_trajectory)
    target_rows, target_cols = zip(*result.target_trajectory)

    ax.plot(agent_cols, agent_rows, "-b", label="agent")
    ax.plot(target_cols, target_rows, "-r", label="target")
    ax.plot(agent_cols[0], agent_rows[0], "og")
    ax.plot(target_cols[0], target_rows[0], "xr")
    ax.plot(agent_cols[-1], agent_rows[-1], "*k")
    ax.set_title(f"steps={result.steps}, expansions={result.expansions}")
    ax.legend(loc="upper right")
    return ax


def main():
    print(__file__ + " start!!")
    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    grid = OccupancyGrid.from_strings(DEMO_MAP)
    agent_start = (0, 0)
    target_start = (14, 19)

    results = {}
    for name, solver in [("MT-D*", MTDStarPlanner()),
                         ("Repeated A*", RepeatedAStarPlanner())]:
        sim = MovingTargetSimulation(grid, agent_start, target_start,
                                     solver=solver, seed=42)
        results[name] = sim.run()

    for name, result in results.items():
        print(f"{name}: captured={result.captured} steps={result.steps} "
              f"expansions={result.expansions}")

    if show_animation:  # pragma: no cover
        plot_chase(grid, results["MT-D*"])
        plt.show()


if __name__ == '__main__':
    main()
