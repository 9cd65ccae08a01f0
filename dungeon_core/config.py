"""
Configuration for level generation, rooms, pressure and navigation.

Defaults match the tuning the game shipped with. Everything is a plain
dataclass; CoreConfig.validate() rejects settings no build step could use.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .errors import ConfigurationError


@dataclass
class GenerationConfig:
    """Lattice layout and room-count range for the level generator."""

    lattice_width: int = 10
    lattice_height: int = 10
    # Defaults to the lattice center when unset
    start: Optional[Tuple[int, int]] = None
    min_generic_rooms: int = 8
    max_generic_rooms: int = 13
    # Number of distinct generic room prefabs available; caps the generic count
    generic_pool_size: Optional[int] = None
    include_shop: bool = True
    include_boss: bool = True
    # World size of one room, used to place rooms and derive level bounds
    room_width: float = 20.0
    room_height: float = 12.0

    def start_slot(self) -> Tuple[int, int]:
        if self.start is not None:
            return self.start
        return (self.lattice_width // 2, self.lattice_height // 2)


@dataclass
class RoomConfig:
    """Room behavior that is not tied to pressure."""

    # How far inside the entry door a player is placed after a room transition
    door_exit_offset: float = 2.0
    # Start room doors stay shut until unlock_tutorial() is called
    tutorial_start_room: bool = False
    always_open_start: bool = True
    always_open_shop: bool = True


@dataclass
class PressureConfig:
    """Escalation tuning for the per-room pressure gate."""

    max_pressure: float = 100.0
    passive_rate: float = 4.0  # per second
    kill_reduction: float = 8.0
    damage_increase: float = 12.0
    idle_multiplier: float = 1.5
    low_threshold: float = 30.0
    mid_threshold: float = 60.0
    high_threshold: float = 85.0
    # Time pressure must be held below the mid threshold
    stabilization_time: float = 5.0
    # Minimum time the room must have been active before it can stabilize
    minimum_survival_time: float = 15.0


@dataclass
class GridConfig:
    """Navigation grid sampling."""

    cell_diameter: float = 1.0
    # Added to the cell radius when probing for colliders
    sample_buffer: float = 0.05
    # Collision layers that make a cell unwalkable
    unwalkable_mask: int = 1


@dataclass
class PlannerConfig:
    """Safety bounds for the A* planner."""

    max_expansions: int = 10_000
    max_retrace_steps: int = 5_000
    # Breadth-first expansions allowed when substituting an unwalkable goal
    nearest_walkable_cap: int = 100


@dataclass
class CoreConfig:
    """All configuration for one level."""

    generation: GenerationConfig = field(default_factory=GenerationConfig)
    rooms: RoomConfig = field(default_factory=RoomConfig)
    pressure: PressureConfig = field(default_factory=PressureConfig)
    grid: GridConfig = field(default_factory=GridConfig)
    planner: PlannerConfig = field(default_factory=PlannerConfig)

    def validate(self) -> None:
        """
        Check the settings for values no build step can work with.

        Raises:
            ConfigurationError: describing the first invalid setting found
        """
        gen = self.generation
        if gen.lattice_width <= 0 or gen.lattice_height <= 0:
            raise ConfigurationError(
                f"Lattice must be at least 1x1, got {gen.lattice_width}x{gen.lattice_height}"
            )
        sx, sy = gen.start_slot()
        if not (0 <= sx < gen.lattice_width and 0 <= sy < gen.lattice_height):
            raise ConfigurationError(f"Start slot ({sx}, {sy}) is outside the lattice")
        if gen.min_generic_rooms < 0 or gen.min_generic_rooms > gen.max_generic_rooms:
            raise ConfigurationError(
                f"Invalid generic room range [{gen.min_generic_rooms}, {gen.max_generic_rooms}]"
            )
        if gen.room_width <= 0 or gen.room_height <= 0:
            raise ConfigurationError("Room size must be positive")

        p = self.pressure
        if p.max_pressure <= 0:
            raise ConfigurationError("max_pressure must be positive")
        if not (p.low_threshold <= p.mid_threshold <= p.high_threshold):
            raise ConfigurationError(
                f"Pressure thresholds must be ordered low <= mid <= high, got "
                f"{p.low_threshold}, {p.mid_threshold}, {p.high_threshold}"
            )

        if self.grid.cell_diameter <= 0:
            raise ConfigurationError("cell_diameter must be positive")

        planner = self.planner
        if min(planner.max_expansions, planner.max_retrace_steps, planner.nearest_walkable_cap) <= 0:
            raise ConfigurationError("Planner limits must be positive")
