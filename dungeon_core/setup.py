"""
Level setup: the generate -> link -> grid -> activate sequence that must finish
before the first gameplay tick.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .context import CoreContext
from .errors import ConfigurationError, LevelBuildError
from .level_gen import LevelGraphGenerator, LevelLayout
from .nav_grid import NavigationGrid
from .pathfinding import PathPlanner
from .room_graph import RoomGraph
from .rooms import Archetype

logger = logging.getLogger(__name__)


@dataclass
class Level:
    """Everything a running level needs, built by build_level()."""

    context: CoreContext
    layout: LevelLayout
    graph: RoomGraph
    grid: NavigationGrid
    planner: PathPlanner

    def update(self, dt: float, agent_idle: bool = False) -> None:
        """Advance every room's pressure by one tick."""
        for room in self.layout.rooms:
            room.update(dt, agent_idle)


def build_level(
    context: Optional[CoreContext] = None,
    deck: Optional[Sequence[Archetype]] = None,
    activate: bool = True,
) -> Level:
    """
    Build a complete level.

    Colliders that should block navigation must already be in
    `context.collision`; the grid samples them once here and afterwards only
    through obstacle notifications.

    Parameters:
        context: Shared context; a fresh unseeded one is created when omitted
        deck: Explicit archetype order for the generator
        activate: Enter the start room once everything is built

    Raises:
        LevelBuildError: if the configuration is invalid or the grid cannot be built
    """
    if context is None:
        context = CoreContext()

    try:
        layout = LevelGraphGenerator(context).generate(deck)
    except ConfigurationError as e:
        raise LevelBuildError(f"Level generation failed: {e}") from e

    graph = RoomGraph(context, layout)
    graph.link()

    grid = NavigationGrid(context)
    bounds = layout.world_bounds
    if not grid.build(bounds.center, bounds.size):
        raise LevelBuildError(f"Navigation grid could not be built over {bounds}")

    planner = PathPlanner(context, grid)
    level = Level(context=context, layout=layout, graph=graph, grid=grid, planner=planner)

    if activate and not graph.activate():
        raise LevelBuildError("Start room could not be entered")

    return level
