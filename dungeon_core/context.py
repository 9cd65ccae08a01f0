"""
The explicit context shared by every component of one level.

Generator, rooms, pressure gates, grid and planner all take a CoreContext
instead of reaching for global managers, so tests can run isolated levels
side by side.
"""

import random
from dataclasses import dataclass, field
from typing import Optional

from .collision import CollisionWorld
from .config import CoreConfig
from .event_system import EventBus


@dataclass
class CoreContext:
    config: CoreConfig = field(default_factory=CoreConfig)
    event_bus: EventBus = field(default_factory=EventBus)
    collision: CollisionWorld = field(default_factory=CollisionWorld)
    rng: random.Random = field(default_factory=random.Random)

    @classmethod
    def create(cls, seed: Optional[int] = None, config: Optional[CoreConfig] = None) -> "CoreContext":
        """Build a context with a seeded random source."""
        return cls(config=config or CoreConfig(), rng=random.Random(seed))
