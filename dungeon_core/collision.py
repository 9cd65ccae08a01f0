"""
A minimal collision layer for the navigation grid to sample.

Colliders are circles or axis-aligned boxes tagged with a layer bitmask.
Obstacle scripts own their colliders and flip `enabled` off before telling
the grid an obstacle was removed.
"""

from dataclasses import dataclass
from typing import List, Union

from .geometry import Vec2


@dataclass(eq=False)
class CircleCollider:
    center: Vec2
    radius: float
    layer: int = 1
    enabled: bool = True

    def overlaps_disc(self, point: Vec2, radius: float) -> bool:
        return self.center.distance_to(point) < self.radius + radius


@dataclass(eq=False)
class BoxCollider:
    center: Vec2
    size: Vec2
    layer: int = 1
    enabled: bool = True

    def overlaps_disc(self, point: Vec2, radius: float) -> bool:
        # Distance from the disc center to the closest point of the box
        half_w, half_h = self.size.x / 2, self.size.y / 2
        nearest_x = min(max(point.x, self.center.x - half_w), self.center.x + half_w)
        nearest_y = min(max(point.y, self.center.y - half_h), self.center.y + half_h)
        return point.distance_to(Vec2(nearest_x, nearest_y)) < radius


Collider = Union[CircleCollider, BoxCollider]


class CollisionWorld:
    """The set of colliders in a level."""

    def __init__(self) -> None:
        self.colliders: List[Collider] = []

    def add(self, collider: Collider) -> Collider:
        self.colliders.append(collider)
        return collider

    def remove(self, collider: Collider) -> bool:
        """Remove a collider. Returns False if it was not present."""
        if collider in self.colliders:
            self.colliders.remove(collider)
            return True
        return False

    def overlap_disc(self, point: Vec2, radius: float, mask: int) -> bool:
        """True if any enabled collider on a layer in `mask` overlaps the disc."""
        for collider in self.colliders:
            if not collider.enabled or not (collider.layer & mask):
                continue
            if collider.overlaps_disc(point, radius):
                return True
        return False
