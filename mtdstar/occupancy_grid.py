"""
Occupancy Grid Module for moving target search.

This module implements a binary 2D occupancy grid and converts its free
cells into the weighted graph searched by the planners. Straight moves
cost 1, diagonal moves cost sqrt(2).
"""

import math
import logging
from collections import deque
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .graph import Graph


logger = logging.getLogger(__name__)

# Occupancy grid cell states
FREE = 0
OCCUPIED = 1

# Characters accepted by OccupancyGrid.from_strings
FREE_CHARS = ".0 "
OCCUPIED_CHARS = "#1X"

STRAIGHT_COST = 1.0
DIAGONAL_COST = math.sqrt(2.0)


class OccupancyGrid:
    """
    2D binary occupancy grid.

    Cells are addressed as (row, col); row 0 is the top row of a map given
    as strings.
    """

    def __init__(self, rows: int, cols: int, cells: Optional[np.ndarray] = None):
        """
        Initialize the occupancy grid.

        Args:
            rows: Number of rows
            cols: Number of columns
            cells: Optional initial cell states (FREE / OCCUPIED)
        """
        self.rows = rows
        self.cols = cols

        if cells is None:
            self.cells = np.full((rows, cols), FREE, dtype=np.uint8)
        else:
            self.cells = np.asarray(cells, dtype=np.uint8).copy()
            if self.cells.shape != (rows, cols):
                raise ValueError(
                    f"Cell array shape {self.cells.shape} does not match {rows}x{cols}")

    @classmethod
    def from_strings(cls, lines: Iterable[str]) -> "OccupancyGrid":
        """
        Build a grid from a text map, e.g. ``["..#", "..."]``.

        Args:
            lines: One string per row; '#', '1' or 'X' mark occupied cells

        Returns:
            The parsed grid
        """
        lines = [line for line in lines]
        if not lines:
            raise ValueError("Map must contain at least one row")

        cols = len(lines[0])
        cells = np.full((len(lines), cols), FREE, dtype=np.uint8)

        for row, line in enumerate(lines):
            if len(line) != cols:
                raise ValueError(f"Row {row} has length {len(line)}, expected {cols}")
            for col, char in enumerate(line):
                if char in OCCUPIED_CHARS:
                    cells[row, col] = OCCUPIED
                elif char not in FREE_CHARS:
                    raise ValueError(f"Unknown map character {char!r} at ({row}, {col})")

        return cls(len(lines), cols, cells)

    def _is_valid_cell(self, row: int, col: int) -> bool:
        """Check if a cell index is within grid bounds."""
        return 0 <= row < self.rows and 0 <= col < self.cols

    def is_occupied(self, row: int, col: int) -> bool:
        """Check if a cell is occupied (out of bounds counts as occupied)."""
        if not self._is_valid_cell(row, col):
            return True
        return bool(self.cells[row, col] == OCCUPIED)

    def is_free(self, row: int, col: int) -> bool:
        return not self.is_occupied(row, col)

    def set_occupied(self, row: int, col: int, occupied: bool = True):
        """Mark a cell occupied or free."""
        if not self._is_valid_cell(row, col):
            raise ValueError(f"Cell ({row}, {col}) is outside the grid")
        self.cells[row, col] = OCCUPIED if occupied else FREE

    def free_cells(self) -> List[Tuple[int, int]]:
        """All free cells in row-major order."""
        return [(int(r), int(c)) for r, c in np.argwhere(self.cells == FREE)]

    def get_neighbors(self, row: int, col: int,
                      include_diagonal: bool = True) -> List[Tuple[int, int]]:
        """
        Get free neighbouring cells.

        Diagonal neighbours are skipped when either adjacent straight cell
        is occupied, so paths never cut obstacle corners.
        """
        neighbors = []

        if include_diagonal:
            directions = [(-1, -1), (-1, 0), (-1, 1),
                          (0, -1),           (0, 1),
                          (1, -1),  (1, 0),  (1, 1)]
        else:
            directions = [(-1, 0), (0, -1), (0, 1), (1, 0)]

        for dr, dc in directions:
            nr, nc = row + dr, col + dc
            if self.is_occupied(nr, nc):
                continue
            if dr != 0 and dc != 0:
                if self.is_occupied(row + dr, col) or self.is_occupied(row, col + dc):
                    continue
            neighbors.append((nr, nc))

        return neighbors

    def to_graph(self, include_diagonal: bool = True) -> Graph:
        """
        Convert the free cells into a graph.

        Args:
            include_diagonal: Use 8-connectivity instead of 4-connectivity

        Returns:
            Graph whose nodes are (row, col) cells
        """
        graph = Graph()
        for cell in self.free_cells():
            graph.add_node(cell)

        for row, col in self.free_cells():
            for nr, nc in self.get_neighbors(row, col, include_diagonal):
                cost = DIAGONAL_COST if (nr != row and nc != col) else STRAIGHT_COST
                graph.add_edge((row, col), (nr, nc), cost, bidirectional=False)

        logger.debug("Grid %dx%d converted to graph with %d nodes and %d edges",
                     self.rows, self.cols, len(graph), graph.edge_count())
        return graph

    def get_nearest_free_cell(self, row: int, col: int) -> Optional[Tuple[int, int]]:
        """Find the nearest free cell to a given cell using BFS."""
        if self.is_free(row, col):
            return (row, col)

        visited = set()
        queue = deque([(row, col)])

        while queue:
            r, c = queue.popleft()

            if (r, c) in visited or not self._is_valid_cell(r, c):
                continue
            visited.add((r, c))

            if self.is_free(r, c):
                return (r, c)

            for dr, dc in [(-1, 0), (0, -1), (0, 1), (1, 0)]:
                if (r + dr, c + dc) not in visited:
                    queue.append((r + dr, c + dc))

        return None

    def to_strings(self) -> List[str]:
        """Render the grid as text ('#' occupied, '.' free)."""
        return ["".join("#" if v == OCCUPIED else "." for v in row) for row in self.cells]

    def clear(self):
        """Reset every cell to free."""
        self.cells.fill(FREE)
