"""Shared fixtures for the planner tests."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from mtdstar.graph import Graph
from mtdstar.occupancy_grid import OccupancyGrid


def make_random_graph(seed, n_nodes=30, n_edges=70, bidirectional=True,
                      max_weight=9):
    """Random connected-ish graph with integer weights."""
    rng = np.random.default_rng(seed)
    graph = Graph()
    for node in range(n_nodes):
        graph.add_node(node)

    # Spanning chain in shuffled order so most nodes are connected
    order = [int(i) for i in rng.permutation(n_nodes)]
    for a, b in zip(order, order[1:]):
        graph.add_edge(a, b, int(rng.integers(1, max_weight + 1)), bidirectional)

    for _ in range(n_edges - (n_nodes - 1)):
        a, b = (int(x) for x in rng.integers(0, n_nodes, size=2))
        if a != b:
            graph.add_edge(a, b, int(rng.integers(1, max_weight + 1)), bidirectional)

    return graph


@pytest.fixture
def line_graph():
    """A - B - C - D with unit weights."""
    graph = Graph()
    graph.add_edge("A", "B", 1)
    graph.add_edge("B", "C", 1)
    graph.add_edge("C", "D", 1)
    return graph


@pytest.fixture
def split_graph():
    """Two components: A - B - C and X - Y."""
    graph = Graph()
    graph.add_edge("A", "B", 1)
    graph.add_edge("B", "C", 2)
    graph.add_edge("X", "Y", 1)
    return graph


@pytest.fixture
def maze_grid():
    return OccupancyGrid.from_strings([
        "..........",
        ".####.###.",
        ".#......#.",
        ".#.####.#.",
        "...#..#...",
        ".#.#..###.",
        ".#........",
        ".######.#.",
        "..........",
    ])


@pytest.fixture
def random_graph():
    """Factory for seeded random graphs."""
    return make_random_graph
