"""
Uniform-cell navigation grid over world space.

Each cell is marked walkable or blocked by probing the collision layer with a
disc at the cell center. Cells are addressed by (x, y) grid coordinates with
x growing east and y growing north, and by a flat index (y * width + x) that
the planner uses for its per-search arrays.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .context import CoreContext
from .event_system import Event
from .geometry import Vec2

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]

# 8-connected neighborhood, orthogonal steps first
NEIGHBOR_OFFSETS = [
    (0, 1), (0, -1), (1, 0), (-1, 0),
    (1, 1), (1, -1), (-1, 1), (-1, -1),
]


@dataclass(frozen=True)
class NavCell:
    """A snapshot of one grid cell."""

    grid_x: int
    grid_y: int
    world_position: Vec2
    walkable: bool


class NavigationGrid:
    def __init__(self, context: CoreContext) -> None:
        self.context = context
        cfg = context.config.grid
        self.cell_diameter: float = cfg.cell_diameter
        self.cell_radius: float = cfg.cell_diameter / 2
        self.sample_buffer: float = cfg.sample_buffer
        self.unwalkable_mask: int = cfg.unwalkable_mask

        self.width: int = 0
        self.height: int = 0
        self.center: Vec2 = Vec2(0.0, 0.0)
        self.size: Vec2 = Vec2(0.0, 0.0)
        self.bottom_left: Vec2 = Vec2(0.0, 0.0)
        # walkable[x, y]; None until build() succeeds
        self._walkable: Optional[np.ndarray] = None

    @property
    def is_built(self) -> bool:
        return self._walkable is not None

    @property
    def cell_count(self) -> int:
        return self.width * self.height

    def build(self, center: Vec2, size: Vec2) -> bool:
        """
        Sample every cell of a grid covering `size` world units around `center`.

        Returns False, leaving the grid exactly as it was, if the size rounds
        to zero cells along either axis.
        """
        d = self.cell_diameter
        width = round(size.x / d)
        height = round(size.y / d)
        logger.debug(
            "Creating grid. Size: %s, cell diameter: %s, dimensions: %dx%d", size, d, width, height
        )
        if width <= 0 or height <= 0:
            logger.error("Invalid grid size calculated: %dx%d for world size %s", width, height, size)
            return False

        bottom_left = Vec2(center.x - size.x / 2, center.y - size.y / 2)
        walkable = np.zeros((width, height), dtype=bool)
        for x in range(width):
            for y in range(height):
                point = Vec2(bottom_left.x + x * d + self.cell_radius, bottom_left.y + y * d + self.cell_radius)
                walkable[x, y] = self._sample(point)

        self.width, self.height = width, height
        self.center, self.size, self.bottom_left = center, size, bottom_left
        self._walkable = walkable

        self.context.event_bus.emit(Event.GRID_BUILT, width=width, height=height)
        return True

    def _sample(self, point: Vec2) -> bool:
        radius = self.cell_radius + self.sample_buffer
        return not self.context.collision.overlap_disc(point, radius, self.unwalkable_mask)

    def world_point(self, x: int, y: int) -> Vec2:
        """World-space center of cell (x, y)."""
        d = self.cell_diameter
        return Vec2(self.bottom_left.x + x * d + self.cell_radius, self.bottom_left.y + y * d + self.cell_radius)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell_from_world(self, position: Vec2) -> Optional[Cell]:
        """
        The cell containing `position`, clamped onto the grid.

        Returns None only when the grid has not been built.
        """
        if self._walkable is None:
            return None
        local = position - self.bottom_left
        x = math.floor(local.x / self.cell_diameter)
        y = math.floor(local.y / self.cell_diameter)
        x = min(max(x, 0), self.width - 1)
        y = min(max(y, 0), self.height - 1)
        return (x, y)

    def is_walkable(self, x: int, y: int) -> bool:
        if self._walkable is None or not self.in_bounds(x, y):
            return False
        return bool(self._walkable[x, y])

    def cell(self, x: int, y: int) -> NavCell:
        return NavCell(grid_x=x, grid_y=y, world_position=self.world_point(x, y), walkable=self.is_walkable(x, y))

    def index(self, x: int, y: int) -> int:
        return y * self.width + x

    def coords(self, index: int) -> Cell:
        return (index % self.width, index // self.width)

    def neighbors(self, x: int, y: int) -> List[Cell]:
        """In-bounds 8-connected neighbors of (x, y)."""
        result: List[Cell] = []
        for dx, dy in NEIGHBOR_OFFSETS:
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny):
                result.append((nx, ny))
        return result

    def walkable_mask(self) -> np.ndarray:
        """Copy of the walkable flags indexed [x, y]."""
        if self._walkable is None:
            return np.zeros((0, 0), dtype=bool)
        return self._walkable.copy()

    def update_single(self, position: Vec2) -> bool:
        """Re-sample the cell nearest `position`. Returns True if its flag changed."""
        cell = self.cell_from_world(position)
        if cell is None:
            return False
        x, y = cell
        before = bool(self._walkable[x, y])
        self._walkable[x, y] = self._sample(self.world_point(x, y))
        self.context.event_bus.emit(Event.GRID_UPDATED, cells_resampled=1)
        return before != bool(self._walkable[x, y])

    def update_region(self, position: Vec2, radius: float) -> int:
        """
        Re-sample every cell whose sampling disc can touch a disc of `radius`
        around `position`. Returns the number of cells re-sampled.
        """
        if self._walkable is None:
            return 0
        # Must cover the full sampling radius used by _sample()
        reach = radius + self.cell_radius + self.sample_buffer
        lo = self.cell_from_world(Vec2(position.x - reach, position.y - reach))
        hi = self.cell_from_world(Vec2(position.x + reach, position.y + reach))

        resampled = 0
        for x in range(lo[0], hi[0] + 1):
            for y in range(lo[1], hi[1] + 1):
                point = self.world_point(x, y)
                if point.distance_to(position) <= reach:
                    self._walkable[x, y] = self._sample(point)
                    resampled += 1

        self.context.event_bus.emit(Event.GRID_UPDATED, cells_resampled=resampled)
        return resampled

    def notify_obstacle_placed(self, position: Vec2, radius: float) -> int:
        """Mark cells around a newly placed obstacle as blocked."""
        if not self.is_built:
            logger.debug("Obstacle placed at %s before the grid was built; ignoring", position)
            return 0
        return self.update_region(position, radius)

    def notify_obstacle_removed(self, position: Vec2, radius: float) -> int:
        """
        Re-open cells around a removed obstacle.

        The obstacle's collider must already be disabled or removed from the
        collision world, otherwise the cells sample as blocked again.
        """
        if not self.is_built:
            logger.debug("Obstacle removed at %s before the grid was built; ignoring", position)
            return 0
        return self.update_region(position, radius)
