"""
Positions, directions and rectangles shared by the lattice, the rooms and the
navigation grid.

World space is y-up: NORTH increases y, EAST increases x. Lattice coordinates
use the same orientation, so a room's northern neighbor sits at (x, y + 1).
"""

import math
from dataclasses import dataclass
from enum import Enum, auto


@dataclass(frozen=True)
class Vec2:
    """A position (or offset) in world space."""

    x: float
    y: float

    def __add__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x - other.x, self.y - other.y)

    def distance_to(self, other: "Vec2") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class LatticePos:
    """A slot on the room lattice."""

    x: int
    y: int

    def offset(self, direction: "Direction") -> "LatticePos":
        """Returns the neighboring slot one step in the given direction."""
        step = direction.step()
        return LatticePos(self.x + step.x, self.y + step.y)


class Direction(Enum):
    """Cardinal directions for door placement and room connections."""

    NORTH = auto()
    SOUTH = auto()
    EAST = auto()
    WEST = auto()

    def opposite(self) -> "Direction":
        """Returns the opposite direction."""
        opposites = {
            Direction.NORTH: Direction.SOUTH,
            Direction.SOUTH: Direction.NORTH,
            Direction.EAST: Direction.WEST,
            Direction.WEST: Direction.EAST,
        }
        return opposites[self]

    def step(self) -> LatticePos:
        """Returns the lattice offset for moving one step in this direction."""
        steps = {
            Direction.NORTH: LatticePos(x=0, y=1),
            Direction.SOUTH: LatticePos(x=0, y=-1),
            Direction.EAST: LatticePos(x=1, y=0),
            Direction.WEST: LatticePos(x=-1, y=0),
        }
        return steps[self]


# Iteration order used wherever all four directions are visited
CARDINALS = (Direction.NORTH, Direction.SOUTH, Direction.EAST, Direction.WEST)


@dataclass(frozen=True)
class Bounds:
    """An axis-aligned rectangle given by its center and full size."""

    center: Vec2
    size: Vec2

    @property
    def min(self) -> Vec2:
        return Vec2(self.center.x - self.size.x / 2, self.center.y - self.size.y / 2)

    @property
    def max(self) -> Vec2:
        return Vec2(self.center.x + self.size.x / 2, self.center.y + self.size.y / 2)

    def contains(self, point: Vec2) -> bool:
        """Inclusive containment test (points on the edge are inside)."""
        lo, hi = self.min, self.max
        return lo.x <= point.x <= hi.x and lo.y <= point.y <= hi.y

    @staticmethod
    def from_corners(lo: Vec2, hi: Vec2) -> "Bounds":
        center = Vec2((lo.x + hi.x) / 2, (lo.y + hi.y) / 2)
        return Bounds(center=center, size=Vec2(hi.x - lo.x, hi.y - lo.y))

    def union(self, other: "Bounds") -> "Bounds":
        """Smallest rectangle containing both rectangles."""
        a_lo, a_hi = self.min, self.max
        b_lo, b_hi = other.min, other.max
        return Bounds.from_corners(
            Vec2(min(a_lo.x, b_lo.x), min(a_lo.y, b_lo.y)),
            Vec2(max(a_hi.x, b_hi.x), max(a_hi.y, b_hi.y)),
        )
