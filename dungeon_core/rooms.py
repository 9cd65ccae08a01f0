"""
Rooms, doors and the things that live in rooms.

A RoomNode starts DORMANT with every door shut. On the player's first entry it
either clears straight away (nothing to fight, or flagged always-open) or
locks and starts its pressure gate. It clears once every occupant that counts
toward clearance is gone and no spawn source is still running; the pressure
gate can force the second half of that by stabilizing the room.

Doors only open while the room is CLEARED and not held by the tutorial lock.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .context import CoreContext
from .event_system import Event, EventBus
from .geometry import Bounds, Direction, LatticePos, CARDINALS
from .pressure import PressureGate

logger = logging.getLogger(__name__)


class Archetype(Enum):
    START = "start"
    SHOP = "shop"
    BOSS = "boss"
    GENERIC = "generic"


class RoomState(Enum):
    DORMANT = "dormant"
    LOCKED = "locked"
    CLEARED = "cleared"
    STABILIZED = "stabilized"


@dataclass(eq=False)
class Occupant:
    """
    An entity registered against a room, typically an enemy.

    Only occupants with `counts_toward_clearance` keep a room locked; others
    (summoned minions, ghosts) are activated with the room but never block it.
    """

    occupant_id: str
    counts_toward_clearance: bool = True
    active: bool = False

    def set_active(self, active: bool) -> None:
        self.active = active


@dataclass(eq=False)
class SpawnSource:
    """
    Something that keeps producing occupants while enabled.

    The room forwards pressure to it: at zero pressure it spawns every
    `max_spawn_interval` seconds, at full pressure every `min_spawn_interval`.
    """

    source_id: str
    min_spawn_interval: float = 1.0
    max_spawn_interval: float = 3.0
    enabled: bool = True
    spawn_interval: float = field(init=False)

    def __post_init__(self) -> None:
        self.spawn_interval = self.max_spawn_interval

    def adjust_spawn_rate(self, pressure_fraction: float) -> None:
        t = min(max(pressure_fraction, 0.0), 1.0)
        self.spawn_interval = self.max_spawn_interval + (self.min_spawn_interval - self.max_spawn_interval) * t

    def disable(self) -> None:
        self.enabled = False


@dataclass(eq=False)
class Door:
    """
    One side of a room. A door without a neighbor is a wall and never unlocks.

    `visible` and `solid` describe the barrier: a locked door shows a solid
    barrier, an unlocked door hides it and becomes a passable trigger. Both
    change together in set_locked().
    """

    direction: Direction
    room_id: int
    neighbor: Optional["RoomNode"] = None
    locked: bool = True
    visible: bool = True
    solid: bool = True
    event_bus: Optional[EventBus] = field(default=None, repr=False)

    @property
    def is_wall(self) -> bool:
        return self.neighbor is None

    def set_locked(self, locked: bool) -> None:
        if not locked and self.neighbor is None:
            locked = True

        changed = locked != self.locked
        self.locked = locked
        self.visible = locked
        self.solid = locked

        if changed and self.event_bus is not None:
            self.event_bus.emit(
                Event.DOOR_LOCK_CHANGED, room_id=self.room_id, direction=self.direction, locked=locked
            )

    def traverse(self) -> Optional["RoomNode"]:
        """The room on the other side, or None while locked."""
        if self.locked:
            return None
        return self.neighbor


class RoomNode:
    def __init__(
        self,
        context: CoreContext,
        room_id: int,
        lattice_pos: LatticePos,
        bounds: Bounds,
        archetype: Archetype = Archetype.GENERIC,
        always_open: bool = False,
        tutorial_locked: bool = False,
    ) -> None:
        self.context = context
        self.room_id = room_id
        self.lattice_pos = lattice_pos
        self.bounds = bounds
        self.archetype = archetype
        self.always_open = always_open
        self.tutorial_locked = tutorial_locked

        self.state: RoomState = RoomState.DORMANT
        self.player_has_entered: bool = False
        self.doors: Dict[Direction, Door] = {}
        self.occupants: List[Occupant] = []
        self.spawn_sources: List[SpawnSource] = []
        # Queued by add_pending_occupant(), registered on the next entry
        self.pending_occupants: List[Occupant] = []
        self._linked: bool = False

        self.pressure = PressureGate(
            context,
            room_id,
            on_stabilized=self.stabilize,
            on_pressure_changed=self._on_pressure_changed,
        )

    def __repr__(self) -> str:
        return (
            f"RoomNode(id={self.room_id}, pos=({self.lattice_pos.x}, {self.lattice_pos.y}), "
            f"{self.archetype.name}, {self.state.name})"
        )

    @property
    def is_cleared(self) -> bool:
        return self.state == RoomState.CLEARED

    @property
    def is_linked(self) -> bool:
        return self._linked

    @property
    def locking_occupant_count(self) -> int:
        return sum(1 for occupant in self.occupants if occupant.counts_toward_clearance)

    @property
    def has_active_spawn_sources(self) -> bool:
        return any(source.enabled for source in self.spawn_sources)

    def _emit(self, event: Event, **kwargs) -> None:
        self.context.event_bus.emit(event, room_id=self.room_id, **kwargs)

    # Linking

    def set_neighbor(self, direction: Direction, neighbor: Optional["RoomNode"]) -> Door:
        """Install the door on one side. Called by RoomGraph.link() only."""
        door = Door(direction=direction, room_id=self.room_id, neighbor=neighbor, event_bus=self.context.event_bus)
        door.set_locked(True)
        self.doors[direction] = door
        return door

    def neighbor(self, direction: Direction) -> Optional["RoomNode"]:
        door = self.doors.get(direction)
        return door.neighbor if door is not None else None

    def mark_linked(self) -> None:
        """Called once the whole graph is linked; door transitions are refused before this."""
        missing = [d for d in CARDINALS if d not in self.doors]
        if missing:
            raise RuntimeError(f"Room {self.room_id} is missing doors for {missing}")
        self._linked = True

    # Registration

    def register_occupant(self, occupant: Occupant) -> None:
        if occupant in self.occupants:
            return
        self.occupants.append(occupant)
        logger.debug("Room %d: registered occupant %s. Total: %d", self.room_id, occupant.occupant_id, len(self.occupants))
        self._emit(Event.OCCUPANT_REGISTERED, occupant_id=occupant.occupant_id)

        # Combat already running: join it
        if self.player_has_entered and not self.is_cleared:
            occupant.set_active(True)

    def add_pending_occupant(self, occupant: Occupant) -> None:
        """
        Queue an occupant (a ghost left behind elsewhere) to appear the next
        time the player walks in. Pending occupants never block clearance.
        """
        occupant.counts_toward_clearance = False
        self.pending_occupants.append(occupant)
        logger.debug("Room %d: occupant %s pending. Pending: %d",
                     self.room_id, occupant.occupant_id, len(self.pending_occupants))

    def _spawn_pending_occupants(self) -> None:
        if not self.pending_occupants:
            return
        logger.debug("Room %d: spawning %d pending occupants", self.room_id, len(self.pending_occupants))
        pending, self.pending_occupants = self.pending_occupants, []
        for occupant in pending:
            self.register_occupant(occupant)
            occupant.set_active(True)

    def register_spawn_source(self, source: SpawnSource) -> None:
        if source not in self.spawn_sources:
            self.spawn_sources.append(source)
            logger.debug("Room %d: registered spawn source %s", self.room_id, source.source_id)

    # Player and combat signals

    def on_player_enter(self) -> bool:
        """
        Handle the player walking in.

        Returns False (and changes nothing) if the room graph has not been
        linked yet.
        """
        if not self._linked:
            logger.error("Room %d entered before the room graph was linked; ignoring", self.room_id)
            return False

        self.player_has_entered = True
        logger.debug("Room %d entered. Occupants: %d", self.room_id, len(self.occupants))
        self._emit(Event.ROOM_ENTERED)
        self._spawn_pending_occupants()

        if self.state == RoomState.CLEARED:
            self._apply_door_state()
        elif self.state == RoomState.DORMANT:
            if self.always_open:
                self._mark_cleared()
            elif self.locking_occupant_count > 0 or self.has_active_spawn_sources:
                self._lock()
            else:
                logger.debug("Room %d: nothing to fight, clearing on entry", self.room_id)
                self._mark_cleared()
        return True

    def occupant_removed(self, occupant: Occupant) -> None:
        if occupant in self.occupants:
            self.occupants.remove(occupant)
            logger.debug("Room %d: occupant removed. Remaining: %d", self.room_id, len(self.occupants))
            self._emit(Event.OCCUPANT_REMOVED, occupant_id=occupant.occupant_id)
        else:
            logger.warning("Room %d: occupant %s removed but was never registered", self.room_id, occupant.occupant_id)

        self.pressure.on_occupant_removed()
        self._check_clear_condition()

    def notify_damaged(self) -> None:
        self.pressure.on_agent_damaged()

    def notify_missed(self, amount: float) -> None:
        self.pressure.on_missed(amount)

    def update(self, dt: float, agent_idle: bool = False) -> None:
        """Per-tick update; only the pressure gate is time-driven."""
        self.pressure.update(dt, agent_idle)

    def stabilize(self) -> None:
        """Shut every spawn source down and clear the room if nothing is left to fight."""
        if self.state != RoomState.LOCKED:
            logger.debug("Room %d: stabilize ignored in state %s", self.room_id, self.state.name)
            return

        logger.info("Room %d stabilized, disabling %d spawn sources", self.room_id, len(self.spawn_sources))
        self.state = RoomState.STABILIZED
        for source in self.spawn_sources:
            source.disable()
        self.pressure.deactivate()
        self._emit(Event.ROOM_STABILIZED)

        self._check_clear_condition()

    def unlock_tutorial(self) -> None:
        """Release the tutorial hold; the doors fall back to normal rules."""
        if not self.tutorial_locked:
            return
        self.tutorial_locked = False
        self._emit(Event.TUTORIAL_UNLOCKED)
        self._apply_door_state()

    # Transitions

    def _lock(self) -> None:
        self.state = RoomState.LOCKED
        self._apply_door_state()
        for occupant in self.occupants:
            occupant.set_active(True)
        self.pressure.activate()
        self._emit(Event.ROOM_LOCKED)

    def _check_clear_condition(self) -> None:
        if self.state not in (RoomState.LOCKED, RoomState.STABILIZED):
            return
        if self.locking_occupant_count == 0 and not self.has_active_spawn_sources:
            self._mark_cleared()

    def _mark_cleared(self) -> None:
        self.state = RoomState.CLEARED
        self.pressure.deactivate()
        logger.info("Room %d cleared, unlocking exits", self.room_id)
        self._apply_door_state()
        self._emit(Event.ROOM_CLEARED)

    def _apply_door_state(self) -> None:
        open_doors = self.is_cleared and not self.tutorial_locked
        for direction in CARDINALS:
            door = self.doors.get(direction)
            if door is not None:
                door.set_locked(not open_doors)

    def _on_pressure_changed(self, fraction: float) -> None:
        for source in self.spawn_sources:
            if source.enabled:
                source.adjust_spawn_rate(fraction)
