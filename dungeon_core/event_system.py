"""
Level events and the bus that carries them.

Rooms, doors, pressure gates, the generator and the navigation grid emit;
outside collaborators (UI, audio, enemy scripts) subscribe. Delivery is
synchronous, on the emitting thread.
"""

import logging
from enum import Enum, auto
from typing import Callable, Any, Dict, List, Optional
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class Event(Enum):
    """Event types that can occur while a level is running."""

    # Level lifecycle
    LEVEL_GENERATED = auto()  # kwargs: room_count
    ROOMS_LINKED = auto()  # kwargs: edge_count
    LEVEL_READY = auto()  # kwargs: start_room_id

    # Room lifecycle
    ROOM_ENTERED = auto()  # kwargs: room_id
    ROOM_LOCKED = auto()  # kwargs: room_id
    ROOM_CLEARED = auto()  # kwargs: room_id
    ROOM_STABILIZED = auto()  # kwargs: room_id
    TUTORIAL_UNLOCKED = auto()  # kwargs: room_id

    # Doors
    DOOR_LOCK_CHANGED = auto()  # kwargs: room_id, direction, locked

    # Occupants
    OCCUPANT_REGISTERED = auto()  # kwargs: room_id, occupant_id
    OCCUPANT_REMOVED = auto()  # kwargs: room_id, occupant_id

    # Pressure
    PRESSURE_CHANGED = auto()  # kwargs: room_id, pressure, fraction
    PRESSURE_STATE_CHANGED = auto()  # kwargs: room_id, state

    # Navigation grid
    GRID_BUILT = auto()  # kwargs: width, height
    GRID_UPDATED = auto()  # kwargs: cells_resampled


@dataclass
class EventData:
    """What a handler receives: the event and the keyword arguments it was emitted with."""

    event: Event
    kwargs: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        if not self.kwargs:
            return f"EventData({self.event.name})"
        args = ", ".join(f"{k}={v}" for k, v in self.kwargs.items())
        return f"EventData({self.event.name}, {args})"


EventHandler = Callable[[EventData], None]


class EventBus:
    """
    One bus per level, shared through CoreContext.

    emit() calls handlers synchronously in subscription order. A handler that
    raises is logged with its traceback and the rest still run; in debug mode
    the exception propagates instead and every emission is logged.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Event, List[EventHandler]] = {}
        self._debug: bool = False

    def set_debug(self, debug: bool) -> None:
        self._debug = debug

    def subscribe(self, event: Event, handler: EventHandler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def unsubscribe(self, event: Event, handler: EventHandler) -> None:
        """
        Raises:
            ValueError: if `handler` is not subscribed to `event`
        """
        handlers = self._handlers.get(event)
        if not handlers or handler not in handlers:
            raise ValueError(f"Handler not subscribed to event {event.name}")
        handlers.remove(handler)

    def emit(self, event: Event, **kwargs: Any) -> None:
        event_data = EventData(event=event, kwargs=kwargs)
        if self._debug:
            logger.debug("Emitting: %r", event_data)

        # Copy so handlers may subscribe or unsubscribe while we iterate
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(event_data)
            except Exception:
                logger.exception("Handler error for %s", event.name)
                if self._debug:
                    raise

    def clear(self) -> None:
        self._handlers.clear()

    def handler_count(self, event: Optional[Event] = None) -> int:
        """Handlers for `event`, or across all events when it is None."""
        if event is not None:
            return len(self._handlers.get(event, []))
        return sum(len(handlers) for handlers in self._handlers.values())
