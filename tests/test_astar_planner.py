"""Tests for the repeated A* baseline."""

import numpy as np
import pytest

from mtdstar.astar_planner import RepeatedAStarPlanner
from mtdstar.heuristics import HeuristicTable
from mtdstar.mtdstar_planner import MTDStarPlanner
from mtdstar.utils import (
    ExpandCounter,
    PathNotFoundError,
    dijkstra,
    octile_distance,
    path_cost,
    path_nodes,
)


class TestRepeatedAStarPlanner:
    """Test the from-scratch planner."""

    def test_line_scenario(self, line_graph):
        planner = RepeatedAStarPlanner()
        planner.initialize(line_graph, "D", "A")

        assert path_nodes(planner.relocate("D", "A"), "A") == ["A", "B", "C", "D"]
        assert path_nodes(planner.relocate("B", "A"), "A") == ["A", "B"]

    def test_counts_expansions(self, line_graph):
        counter = ExpandCounter()
        planner = RepeatedAStarPlanner()
        planner.initialize(line_graph, "D", "A", counter)

        planner.relocate("D", "A")
        first = counter.count
        planner.relocate("D", "A")

        assert first == 3
        assert counter.count == 2 * first

    def test_unreachable(self, split_graph):
        planner = RepeatedAStarPlanner()
        planner.initialize(split_graph, "C", "A")

        with pytest.raises(PathNotFoundError):
            planner.relocate("X", "A")

    def test_relocate_before_initialize(self):
        with pytest.raises(RuntimeError):
            RepeatedAStarPlanner().relocate("A", "B")

    def test_unknown_node_rejected(self, line_graph):
        planner = RepeatedAStarPlanner()
        planner.initialize(line_graph, "D", "A")
        with pytest.raises(ValueError):
            planner.relocate("Z", "A")

    def test_agrees_with_mtdstar(self, maze_grid):
        """Both solvers return equally cheap paths on the same queries."""
        graph = maze_grid.to_graph()
        heuristic = HeuristicTable.from_function(graph, octile_distance)
        astar = RepeatedAStarPlanner()
        mtdstar = MTDStarPlanner()
        astar.initialize(graph, (8, 9), (0, 0), heuristic=heuristic)
        mtdstar.initialize(graph, (8, 9), (0, 0), heuristic=heuristic)

        rng = np.random.default_rng(7)
        cells = graph.nodes
        agent = (0, 0)
        for _ in range(20):
            target = cells[int(rng.integers(len(cells)))]
            expected = dijkstra(graph, agent)[target]

            a_path = astar.relocate(target, agent)
            m_path = mtdstar.relocate(target, agent)

            assert path_cost(a_path) == pytest.approx(expected)
            assert path_cost(m_path) == pytest.approx(expected)
            if m_path:
                agent = m_path[0].target
