"""
Adjacency between generated rooms, and moving the player between them.

Linking is the second phase of level construction: generation places every
room first, then link() installs all four doors of every room in one pass and
only then marks the rooms as linked. Rooms refuse player entry until that
has happened, so no door logic ever sees a half-linked neighbor.
"""

import logging
from collections import deque
from typing import Deque, Dict, List, Optional, Set, Tuple

from .context import CoreContext
from .event_system import Event
from .geometry import Direction, LatticePos, Vec2, CARDINALS
from .level_gen import LevelLayout
from .rooms import RoomNode

logger = logging.getLogger(__name__)

Edge = Tuple[RoomNode, Direction, RoomNode]


class RoomGraph:
    def __init__(self, context: CoreContext, layout: LevelLayout) -> None:
        self.context = context
        self.layout = layout
        self.linked: bool = False
        self.current_room: Optional[RoomNode] = None

    @property
    def rooms(self) -> List[RoomNode]:
        return self.layout.rooms

    @property
    def start_room(self) -> RoomNode:
        return self.layout.start_room

    def link(self) -> int:
        """
        Install doors between every pair of lattice-adjacent rooms.

        Safe to call twice; the second call does nothing. Returns the number
        of undirected edges in the graph.
        """
        if self.linked:
            return len(self.edges()) // 2

        for room in self.rooms:
            for direction in CARDINALS:
                neighbor = self.layout.room_at_slot(room.lattice_pos.offset(direction))
                room.set_neighbor(direction, neighbor)

        for room in self.rooms:
            room.mark_linked()
        self.linked = True

        edge_count = len(self.edges()) // 2
        logger.info("Rooms linked: %d rooms, %d connections", len(self.rooms), edge_count)
        self.context.event_bus.emit(Event.ROOMS_LINKED, edge_count=edge_count)
        return edge_count

    def edges(self) -> List[Edge]:
        """Every (room, direction, neighbor) triple; each connection appears once per side."""
        result: List[Edge] = []
        for room in self.rooms:
            for direction in CARDINALS:
                neighbor = room.neighbor(direction)
                if neighbor is not None:
                    result.append((room, direction, neighbor))
        return result

    def neighbors(self, room: RoomNode) -> Dict[Direction, RoomNode]:
        result: Dict[Direction, RoomNode] = {}
        for direction in CARDINALS:
            neighbor = room.neighbor(direction)
            if neighbor is not None:
                result[direction] = neighbor
        return result

    def reachable_from(self, room: RoomNode) -> Set[int]:
        """Ids of every room connected to `room` through door adjacency, ignoring locks."""
        visited: Set[int] = {room.room_id}
        queue: Deque[RoomNode] = deque([room])
        while queue:
            current = queue.popleft()
            for neighbor in self.neighbors(current).values():
                if neighbor.room_id not in visited:
                    visited.add(neighbor.room_id)
                    queue.append(neighbor)
        return visited

    def is_connected(self) -> bool:
        return len(self.reachable_from(self.start_room)) == len(self.rooms)

    def room_at(self, position: Vec2) -> Optional[RoomNode]:
        """The room whose lattice slot is nearest to a world position, if one was placed there."""
        gen = self.context.config.generation
        slot = LatticePos(
            round(position.x / gen.room_width) + gen.lattice_width // 2,
            round(position.y / gen.room_height) + gen.lattice_height // 2,
        )
        return self.layout.room_at_slot(slot)

    def activate(self) -> bool:
        """Put the player in the start room. Requires link() to have run."""
        if not self.linked:
            logger.error("Cannot activate level before rooms are linked")
            return False
        if not self.start_room.on_player_enter():
            return False
        self.current_room = self.start_room
        self.context.event_bus.emit(Event.LEVEL_READY, start_room_id=self.start_room.room_id)
        return True

    def enter_through(self, room: RoomNode, direction: Direction) -> Optional[Vec2]:
        """
        Walk the player through `room`'s door facing `direction`.

        Returns the player's new position just inside the neighbor, or None if
        the door is locked (walls are always locked).
        """
        door = room.doors.get(direction)
        if door is None:
            return None
        target = door.traverse()
        if target is None:
            return None

        logger.debug("Entering room %d from room %d heading %s", target.room_id, room.room_id, direction.name)
        if not target.on_player_enter():
            return None
        self.current_room = target
        return self.entry_point(target, direction)

    def entry_point(self, room: RoomNode, heading: Direction) -> Vec2:
        """
        Where a player arrives in `room` after walking in `heading` direction:
        just inside the door on the opposite wall.
        """
        offset = self.context.config.rooms.door_exit_offset
        half_w = room.bounds.size.x / 2
        half_h = room.bounds.size.y / 2
        center = room.bounds.center
        spawn_offsets = {
            Direction.NORTH: Vec2(0.0, -half_h + offset),
            Direction.SOUTH: Vec2(0.0, half_h - offset),
            Direction.EAST: Vec2(-half_w + offset, 0.0),
            Direction.WEST: Vec2(half_w - offset, 0.0),
        }
        return center + spawn_offsets[heading]
