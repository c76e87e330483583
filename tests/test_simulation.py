"""Tests for the chase simulation."""

import matplotlib.pyplot as plt
import pytest

from mtdstar import simulation
from mtdstar.astar_planner import RepeatedAStarPlanner
from mtdstar.occupancy_grid import OccupancyGrid
from mtdstar.simulation import ChaseResult, MovingTargetSimulation, plot_chase


class TestMovingTargetSimulation:
    """Test chasing a target over a grid."""

    def test_static_target_is_captured_on_shortest_route(self, maze_grid):
        sim = MovingTargetSimulation(maze_grid, (0, 0), (0, 9), target_policy="static")
        result = sim.run()

        assert result.captured
        assert result.steps == 9
        assert result.agent_trajectory[0] == (0, 0)
        assert result.agent_trajectory[-1] == (0, 9)
        assert result.failed_relocations == 0

    def test_random_target_is_captured(self, maze_grid):
        sim = MovingTargetSimulation(maze_grid, (0, 0), (8, 9), seed=3)
        result = sim.run()

        assert result.captured
        assert result.agent_trajectory[-1] == result.target_trajectory[-1]
        assert len(result.agent_trajectory) == result.steps + 1
        assert len(result.target_trajectory) == result.steps + 1
        assert result.expansions > 0

    def test_trajectories_follow_free_neighbors(self, maze_grid):
        sim = MovingTargetSimulation(maze_grid, (0, 0), (8, 9), seed=5)
        result = sim.run()

        for a, b in zip(result.agent_trajectory, result.agent_trajectory[1:]):
            assert a == b or b in maze_grid.get_neighbors(*a)
        for a, b in zip(result.target_trajectory, result.target_trajectory[1:]):
            assert a == b or b in maze_grid.get_neighbors(*a)

    def test_same_seed_same_chase(self, maze_grid):
        first = MovingTargetSimulation(maze_grid, (0, 0), (8, 9), seed=9).run()
        second = MovingTargetSimulation(maze_grid, (0, 0), (8, 9), seed=9).run()

        assert first.target_trajectory == second.target_trajectory
        assert first.agent_trajectory == second.agent_trajectory

    def test_waypoint_target(self, maze_grid):
        sim = MovingTargetSimulation(maze_grid, (0, 0), (8, 9),
                                     target_policy="waypoints",
                                     waypoints=[(8, 8), (8, 7), (8, 6)],
                                     target_speed=1)
        result = sim.run()

        assert result.target_trajectory[:4] == [(8, 9), (8, 8), (8, 7), (8, 6)]
        assert result.captured

    def test_solvers_capture_static_target_equally_fast(self, maze_grid):
        mtd = MovingTargetSimulation(maze_grid, (0, 0), (6, 9),
                                     target_policy="static").run()
        astar = MovingTargetSimulation(maze_grid, (0, 0), (6, 9),
                                       solver=RepeatedAStarPlanner(),
                                       target_policy="static").run()

        assert mtd.captured and astar.captured
        assert mtd.steps == astar.steps

    def test_unreachable_target_not_captured(self):
        grid = OccupancyGrid.from_strings(["..#..", "..#..", "..#.."])
        sim = MovingTargetSimulation(grid, (0, 0), (0, 4), target_policy="static",
                                     max_steps=5)
        result = sim.run()

        assert not result.captured
        assert result.steps == 5
        assert result.failed_relocations == 5
        assert set(result.agent_trajectory) == {(0, 0)}

    def test_start_moved_to_free_cell(self, maze_grid):
        sim = MovingTargetSimulation(maze_grid, (1, 1), (8, 9))
        assert maze_grid.is_free(*sim.agent_start)

    def test_invalid_arguments(self, maze_grid):
        with pytest.raises(ValueError):
            MovingTargetSimulation(maze_grid, (0, 0), (8, 9), target_policy="teleport")
        with pytest.raises(ValueError):
            MovingTargetSimulation(maze_grid, (0, 0), (8, 9), target_policy="waypoints")
        with pytest.raises(ValueError):
            MovingTargetSimulation(maze_grid, (0, 0), (8, 9), target_speed=0)


class TestPlotChase:

    def test_plot(self, maze_grid):
        result = MovingTargetSimulation(maze_grid, (0, 0), (8, 9), seed=1).run()
        ax = plot_chase(maze_grid, result)

        assert len(ax.lines) == 5
        assert "expansions" in ax.get_title()
        plt.close("all")

    def test_demo_main(self, monkeypatch, capsys):
        monkeypatch.setattr(simulation, "show_animation", False)
        simulation.main()

        out = capsys.readouterr().out
        assert "MT-D*" in out
        assert "Repeated A*" in out


def test_chase_result_repr():
    result = ChaseResult(True, 3, [(0, 0)], [(0, 1)], 12, 0)
    assert "captured=True" in repr(result)
