"""Event definitions and the event bus for the wine simulation."""

import logging
from enum import Enum
from typing import Dict, Any, Callable, List, Optional
from dataclasses import dataclass, field


class EventType(str, Enum):
    """Types of simulation events."""
    # Vineyard events
    HARVEST = "harvest"
    WHOLESALE = "wholesale"

    # Production events
    BOTTLED = "bottled"

    # Inventory and market events
    SALE = "sale"
    REVIEW = "review"

    # Time events
    DAY_CHANGED = "day_changed"


@dataclass
class Event:
    """Base event class."""
    type: EventType
    day: int
    details: Dict[str, Any] = field(default_factory=dict)


class EventBus:
    """Typed event subscribers plus the zero-argument day-changed observers.

    Subscriber failures are logged and never reach the publisher.
    """

    def __init__(self):
        self._subscribers: Dict[EventType, List[Callable[[Event], None]]] = {
            event_type: [] for event_type in EventType
        }
        self._day_observers: List[Callable[[], None]] = []
        self.logger = logging.getLogger("winesim.events")

    def subscribe(self, event_type: EventType, callback: Callable[[Event], None]) -> None:
        self._subscribers[event_type].append(callback)

    def unsubscribe(self, event_type: EventType, callback: Callable[[Event], None]) -> None:
        if callback in self._subscribers[event_type]:
            self._subscribers[event_type].remove(callback)

    def publish(self, event: Event) -> None:
        for callback in list(self._subscribers[event.type]):
            try:
                callback(event)
            except Exception as e:
                self.logger.error(f"Subscriber for {event.type.value} failed: {e}")

    def emit(self, event_type: EventType, day: int, details: Optional[Dict[str, Any]] = None) -> Event:
        event = Event(type=event_type, day=day, details=details or {})
        self.publish(event)
        return event

    # Day changed

    def on_day_changed(self, callback: Callable[[], None]) -> None:
        self._day_observers.append(callback)

    def off_day_changed(self, callback: Callable[[], None]) -> None:
        if callback in self._day_observers:
            self._day_observers.remove(callback)

    def notify_day_changed(self, day: int) -> None:
        """Run zero-argument observers, then typed DAY_CHANGED subscribers."""
        for callback in list(self._day_observers):
            try:
                callback()
            except Exception as e:
                self.logger.error(f"Day-changed observer failed on day {day}: {e}")
        self.emit(EventType.DAY_CHANGED, day)
