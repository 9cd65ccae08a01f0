"""
Per-room pressure: an escalation scalar that replaces "kill everything"
clearance in rooms with continuous spawn sources.

Pressure climbs passively while the room is active (faster while the player
idles), drops on kills and rises on damage or missed opportunities. Holding it
below the mid threshold for long enough, once the room has been survived for a
minimum time, stabilizes the room.
"""

import logging
from enum import Enum
from typing import Callable, Optional

from .config import PressureConfig
from .context import CoreContext
from .event_system import Event

logger = logging.getLogger(__name__)


class PressureState(Enum):
    LOW = "low"
    MID = "mid"
    HIGH = "high"


class PressureGate:
    """
    Escalation resource for one room.

    The owning room registers two callbacks: `on_stabilized`, fired exactly
    once, and `on_pressure_changed`, fired with the pressure fraction (0..1)
    after every change.
    """

    def __init__(
        self,
        context: CoreContext,
        room_id: int,
        on_stabilized: Optional[Callable[[], None]] = None,
        on_pressure_changed: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.context = context
        self.config: PressureConfig = context.config.pressure
        self.room_id = room_id
        self.on_stabilized = on_stabilized
        self.on_pressure_changed = on_pressure_changed

        self.current_pressure: float = 0.0
        self.time_active: float = 0.0
        self.stable_time: float = 0.0
        self.state: PressureState = PressureState.LOW
        self.active: bool = False
        self.stabilized: bool = False

    @property
    def fraction(self) -> float:
        return self.current_pressure / self.config.max_pressure

    @property
    def is_calm(self) -> bool:
        """True while pressure sits at or under the low threshold."""
        return self.current_pressure <= self.config.low_threshold

    def activate(self) -> None:
        logger.debug("Pressure activated for room %d", self.room_id)
        self.active = True
        self.current_pressure = 0.0
        self.stable_time = 0.0
        self.time_active = 0.0
        self._evaluate_state()

    def deactivate(self) -> None:
        logger.debug("Pressure deactivated for room %d", self.room_id)
        self.active = False

    def update(self, dt: float, agent_idle: bool = False) -> None:
        """Advance pressure by one tick of `dt` seconds."""
        if not self.active or self.stabilized:
            return

        rate = self.config.passive_rate
        if agent_idle:
            rate *= self.config.idle_multiplier

        self._set_pressure(self.current_pressure + rate * dt)
        self._check_stabilization(dt)

    def on_occupant_removed(self) -> None:
        self._adjust(-self.config.kill_reduction)

    def on_agent_damaged(self) -> None:
        self._adjust(self.config.damage_increase)

    def on_missed(self, amount: float) -> None:
        self._adjust(amount)

    def _adjust(self, delta: float) -> None:
        if self.stabilized:
            return
        self._set_pressure(self.current_pressure + delta)

    def _set_pressure(self, value: float) -> None:
        self.current_pressure = min(max(value, 0.0), self.config.max_pressure)
        self._evaluate_state()

        self.context.event_bus.emit(
            Event.PRESSURE_CHANGED,
            room_id=self.room_id,
            pressure=self.current_pressure,
            fraction=self.fraction,
        )
        if self.on_pressure_changed is not None:
            self.on_pressure_changed(self.fraction)

    def _evaluate_state(self) -> None:
        old_state = self.state
        if self.current_pressure >= self.config.high_threshold:
            self.state = PressureState.HIGH
        elif self.current_pressure >= self.config.mid_threshold:
            self.state = PressureState.MID
        else:
            self.state = PressureState.LOW

        if old_state != self.state:
            self.context.event_bus.emit(Event.PRESSURE_STATE_CHANGED, room_id=self.room_id, state=self.state)

    def _check_stabilization(self, dt: float) -> None:
        self.time_active += dt

        if self.current_pressure < self.config.mid_threshold:
            self.stable_time += dt
        else:
            self.stable_time = 0.0

        if (
            self.stable_time >= self.config.stabilization_time
            and self.time_active >= self.config.minimum_survival_time
        ):
            self._stabilize()

    def _stabilize(self) -> None:
        self.stabilized = True
        self.active = False
        logger.info("Room %d stabilized after %.1fs", self.room_id, self.time_active)
        if self.on_stabilized is not None:
            self.on_stabilized()
