from .bus import ANY_EVENT, Event, EventBus, get_event_bus
from .types import EventType

__all__ = [
    "ANY_EVENT",
    "Event",
    "EventBus",
    "EventType",
    "get_event_bus",
]
