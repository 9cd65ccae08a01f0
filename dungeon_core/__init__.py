"""Room-based dungeon core: level generation, room/door state and navigation."""

from dungeon_core.geometry import Vec2, Bounds, LatticePos, Direction
from dungeon_core.errors import DungeonCoreError, ConfigurationError, LevelBuildError
from dungeon_core.config import (
    CoreConfig,
    GenerationConfig,
    RoomConfig,
    PressureConfig,
    GridConfig,
    PlannerConfig,
)
from dungeon_core.event_system import EventBus, Event, EventData
from dungeon_core.context import CoreContext
from dungeon_core.collision import CollisionWorld, CircleCollider, BoxCollider
from dungeon_core.pressure import PressureGate, PressureState
from dungeon_core.rooms import Archetype, RoomState, RoomNode, Door, Occupant, SpawnSource
from dungeon_core.level_gen import LevelGraphGenerator, LevelLayout, RoomSlot, build_deck
from dungeon_core.room_graph import RoomGraph
from dungeon_core.nav_grid import NavigationGrid, NavCell
from dungeon_core.pathfinding import PathPlanner, Path, find_nearest_walkable
from dungeon_core.setup import Level, build_level
