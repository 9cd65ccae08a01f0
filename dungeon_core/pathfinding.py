"""
Pathfinding over the navigation grid.

PathPlanner runs an 8-connected A* with integer octile costs. Every search
allocates its own cost and parent arrays indexed by flat cell index, so the
planner holds no state between calls and any number of agents can share one.
"""

import logging
from collections import deque
from typing import Deque, List, Optional, Set

import numpy as np

from .context import CoreContext
from .geometry import Vec2
from .nav_grid import Cell, NavigationGrid

logger = logging.getLogger(__name__)

# A path is a list of world-space waypoints, ordered from start to goal
Path = List[Vec2]
CellPath = List[Cell]

STRAIGHT_COST = 10
DIAGONAL_COST = 14


def octile_distance(a: Cell, b: Cell) -> int:
    """Cost of the cheapest 8-connected route between two cells on an open grid."""
    dx = abs(a[0] - b[0])
    dy = abs(a[1] - b[1])
    if dx > dy:
        return DIAGONAL_COST * dy + STRAIGHT_COST * (dx - dy)
    return DIAGONAL_COST * dx + STRAIGHT_COST * (dy - dx)


def find_nearest_walkable(grid: NavigationGrid, origin: Cell, max_expansions: int) -> Optional[Cell]:
    """
    Breadth-first search outward from `origin` for the closest walkable cell.

    Args:
        grid: The navigation grid to search
        origin: Cell to start from (returned as-is if walkable)
        max_expansions: Maximum number of cells to dequeue (bounds the search)

    Returns:
        The first walkable cell found, or None if none is found within the cap.
    """
    queue: Deque[Cell] = deque([origin])
    visited: Set[Cell] = {origin}

    expansions = 0
    while queue and expansions < max_expansions:
        current = queue.popleft()
        expansions += 1

        if grid.is_walkable(*current):
            return current

        for neighbor in grid.neighbors(*current):
            if neighbor not in visited:
                visited.add(neighbor)
                queue.append(neighbor)

    return None


class PathPlanner:
    """A* path queries against a shared navigation grid."""

    def __init__(self, context: CoreContext, grid: NavigationGrid) -> None:
        self.grid = grid
        cfg = context.config.planner
        self.max_expansions: int = cfg.max_expansions
        self.max_retrace_steps: int = cfg.max_retrace_steps
        self.nearest_walkable_cap: int = cfg.nearest_walkable_cap

    def find_path(self, start: Vec2, goal: Vec2) -> Optional[Path]:
        """
        Find a route between two world positions.

        Returns:
            Waypoints (cell centers) from the first step to the goal, excluding
            the start cell. Empty if start and goal share a cell. None if there
            is no path, the grid is not built, or a search bound was hit.
        """
        start_cell = self.grid.cell_from_world(start)
        goal_cell = self.grid.cell_from_world(goal)
        if start_cell is None or goal_cell is None:
            return None

        cells = self.find_cell_path(start_cell, goal_cell)
        if cells is None:
            return None
        return [self.grid.world_point(x, y) for x, y in cells]

    def find_cell_path(self, start: Cell, goal: Cell) -> Optional[CellPath]:
        """A* between two grid cells. Same result conventions as find_path()."""
        grid = self.grid
        if not grid.is_built:
            return None
        if not (grid.in_bounds(*start) and grid.in_bounds(*goal)):
            logger.warning("Path query outside the %dx%d grid: %s -> %s", grid.width, grid.height, start, goal)
            return None

        if not grid.is_walkable(*goal):
            substitute = find_nearest_walkable(grid, goal, self.nearest_walkable_cap)
            if substitute is None:
                logger.warning("No walkable cell within %d steps of goal %s", self.nearest_walkable_cap, goal)
            else:
                goal = substitute

        if start == goal:
            return []

        count = grid.cell_count
        g_cost = np.zeros(count, dtype=np.int64)
        h_cost = np.zeros(count, dtype=np.int64)
        parent = np.full(count, -1, dtype=np.int64)

        start_index = grid.index(*start)
        goal_index = grid.index(*goal)
        h_cost[start_index] = octile_distance(start, goal)

        open_list: List[int] = [start_index]
        open_set: Set[int] = {start_index}
        closed: Set[int] = set()

        expansions = 0
        while open_list:
            expansions += 1
            if expansions > self.max_expansions:
                logger.warning(
                    "A* safety break: search exceeded %d expansions between %s and %s",
                    self.max_expansions, start, goal,
                )
                return None

            # Lowest f-cost wins, ties go to the lower h-cost
            current = open_list[0]
            current_f = g_cost[current] + h_cost[current]
            for candidate in open_list[1:]:
                f = g_cost[candidate] + h_cost[candidate]
                if f < current_f or (f == current_f and h_cost[candidate] < h_cost[current]):
                    current, current_f = candidate, f

            open_list.remove(current)
            open_set.discard(current)
            closed.add(current)

            if current == goal_index:
                return self._retrace(start_index, goal_index, parent)

            cx, cy = grid.coords(current)
            for nx, ny in grid.neighbors(cx, cy):
                if not grid.is_walkable(nx, ny):
                    continue
                diagonal = nx != cx and ny != cy
                # No cutting corners: both orthogonal cells must be open
                if diagonal and not (grid.is_walkable(nx, cy) and grid.is_walkable(cx, ny)):
                    continue

                neighbor = grid.index(nx, ny)
                if neighbor in closed:
                    continue

                step = DIAGONAL_COST if diagonal else STRAIGHT_COST
                new_cost = g_cost[current] + step
                if neighbor not in open_set or new_cost < g_cost[neighbor]:
                    g_cost[neighbor] = new_cost
                    h_cost[neighbor] = octile_distance((nx, ny), goal)
                    parent[neighbor] = current
                    if neighbor not in open_set:
                        open_list.append(neighbor)
                        open_set.add(neighbor)

        logger.debug("Open set exhausted; no path from %s to %s", start, goal)
        return None

    def _retrace(self, start_index: int, goal_index: int, parent: np.ndarray) -> Optional[CellPath]:
        """Walk parent links back from the goal. None if the chain is broken or too long."""
        indices: List[int] = []
        current = goal_index
        steps = 0
        while current != start_index:
            indices.append(current)
            current = int(parent[current])
            steps += 1
            if current < 0:
                logger.warning("Broken parent chain while retracing path to cell %d", goal_index)
                return None
            if steps > self.max_retrace_steps:
                logger.warning("Retrace exceeded %d steps; discarding path", self.max_retrace_steps)
                return None

        indices.reverse()
        return [self.grid.coords(i) for i in indices]
