"""
Level Generation Algorithm
==========================

We grow the level outward from the start room on a fixed lattice.

1. Place the Start room at the configured slot
2. Keep a "frontier": every vacant slot next to an occupied one
3. Build a deck: one Shop, one Boss and a random number of generic rooms,
   shuffled
4. For each archetype in the deck:
   a. If the frontier is empty, stop (fewer rooms, not an error)
   b. Pick a uniformly random frontier slot and place the room there
   c. Add the new room's vacant neighbors to the frontier
5. Every room is placed next to an existing one, so the layout is connected

Doors are not created here. RoomGraph.link() does that once the whole layout
exists.
"""

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set

import numpy as np

from .config import CoreConfig, GenerationConfig
from .context import CoreContext
from .event_system import Event
from .geometry import Bounds, LatticePos, Vec2, CARDINALS
from .rooms import Archetype, RoomNode

logger = logging.getLogger(__name__)

EMPTY = -1


@dataclass(frozen=True)
class RoomSlot:
    """One lattice slot as generation left it."""

    pos: LatticePos
    occupied: bool
    archetype: Optional[Archetype] = None


@dataclass
class LevelLayout:
    """
    Result of generation.

    `lattice[x, y]` holds the id of the room in slot (x, y), or EMPTY. Room ids
    are indices into `rooms`, which is in placement order with Start first.
    """

    lattice: np.ndarray
    rooms: List[RoomNode]
    world_bounds: Bounds

    @property
    def width(self) -> int:
        return self.lattice.shape[0]

    @property
    def height(self) -> int:
        return self.lattice.shape[1]

    @property
    def start_room(self) -> RoomNode:
        return self.rooms[0]

    @property
    def room_count(self) -> int:
        return len(self.rooms)

    def in_bounds(self, pos: LatticePos) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def room_at_slot(self, pos: LatticePos) -> Optional[RoomNode]:
        if not self.in_bounds(pos):
            return None
        room_id = int(self.lattice[pos.x, pos.y])
        if room_id == EMPTY:
            return None
        return self.rooms[room_id]

    def grid(self) -> List[List[Optional[RoomNode]]]:
        """The lattice as nested lists, grid()[x][y] -> room or None."""
        return [
            [self.room_at_slot(LatticePos(x, y)) for y in range(self.height)]
            for x in range(self.width)
        ]

    def slots(self) -> List[RoomSlot]:
        result: List[RoomSlot] = []
        for x in range(self.width):
            for y in range(self.height):
                room = self.room_at_slot(LatticePos(x, y))
                result.append(
                    RoomSlot(pos=LatticePos(x, y), occupied=room is not None,
                             archetype=room.archetype if room is not None else None)
                )
        return result


def room_center(config: GenerationConfig, pos: LatticePos) -> Vec2:
    """World center of the room in lattice slot `pos`; the lattice center maps to the origin."""
    return Vec2(
        config.room_width * (pos.x - config.lattice_width // 2),
        config.room_height * (pos.y - config.lattice_height // 2),
    )


def room_bounds(config: GenerationConfig, pos: LatticePos) -> Bounds:
    return Bounds(center=room_center(config, pos), size=Vec2(config.room_width, config.room_height))


def build_deck(config: GenerationConfig, rng: random.Random) -> List[Archetype]:
    """
    Shuffled list of archetypes to place after the Start room.

    The generic count is drawn from [min_generic_rooms, max_generic_rooms]
    and capped by the generic prefab pool.
    """
    generic_count = rng.randint(config.min_generic_rooms, config.max_generic_rooms)
    if config.generic_pool_size is not None and generic_count > config.generic_pool_size:
        logger.debug("Capping generic rooms at %d (pool size)", config.generic_pool_size)
        generic_count = config.generic_pool_size

    deck: List[Archetype] = []
    if config.include_shop:
        deck.append(Archetype.SHOP)
    if config.include_boss:
        deck.append(Archetype.BOSS)
    deck.extend([Archetype.GENERIC] * generic_count)
    rng.shuffle(deck)
    return deck


class LevelGraphGenerator:
    def __init__(self, context: CoreContext) -> None:
        self.context = context

    @property
    def config(self) -> CoreConfig:
        return self.context.config

    def generate(self, deck: Optional[Sequence[Archetype]] = None) -> LevelLayout:
        """
        Grow a level from the start slot.

        Parameters:
            deck: Archetypes to place, in order. Built with build_deck() when
                  omitted.

        Raises:
            ConfigurationError: if the lattice or room-count settings are invalid
        """
        self.config.validate()
        gen = self.config.generation
        rng = self.context.rng

        if deck is None:
            deck = build_deck(gen, rng)

        lattice = np.full((gen.lattice_width, gen.lattice_height), EMPTY, dtype=int)
        rooms: List[RoomNode] = []

        # Vacant slots adjacent to the layout. The list keeps draws reproducible
        # for a given seed; the set deduplicates.
        frontier: List[LatticePos] = []
        in_frontier: Set[LatticePos] = set()

        def place(pos: LatticePos, archetype: Archetype) -> None:
            room = self._create_room(len(rooms), pos, archetype)
            lattice[pos.x, pos.y] = room.room_id
            rooms.append(room)

            for direction in CARDINALS:
                neighbor = pos.offset(direction)
                if not (0 <= neighbor.x < gen.lattice_width and 0 <= neighbor.y < gen.lattice_height):
                    continue
                if lattice[neighbor.x, neighbor.y] != EMPTY or neighbor in in_frontier:
                    continue
                frontier.append(neighbor)
                in_frontier.add(neighbor)

        start_x, start_y = gen.start_slot()
        place(LatticePos(start_x, start_y), Archetype.START)

        for placed, archetype in enumerate(deck):
            if not frontier:
                remaining = [a.name for a in deck[placed:]]
                logger.warning(
                    "Frontier exhausted after %d rooms; %d archetypes left unplaced: %s",
                    len(rooms), len(remaining), remaining,
                )
                break
            slot = frontier.pop(rng.randrange(len(frontier)))
            in_frontier.discard(slot)
            place(slot, archetype)

        world_bounds = rooms[0].bounds
        for room in rooms[1:]:
            world_bounds = world_bounds.union(room.bounds)

        logger.info("Generation complete, %d rooms created", len(rooms))
        self.context.event_bus.emit(Event.LEVEL_GENERATED, room_count=len(rooms))
        return LevelLayout(lattice=lattice, rooms=rooms, world_bounds=world_bounds)

    def _create_room(self, room_id: int, pos: LatticePos, archetype: Archetype) -> RoomNode:
        room_cfg = self.config.rooms
        always_open = (
            (archetype == Archetype.START and room_cfg.always_open_start)
            or (archetype == Archetype.SHOP and room_cfg.always_open_shop)
        )
        tutorial_locked = archetype == Archetype.START and room_cfg.tutorial_start_room
        return RoomNode(
            self.context,
            room_id,
            pos,
            room_bounds(self.config.generation, pos),
            archetype=archetype,
            always_open=always_open,
            tutorial_locked=tutorial_locked,
        )
