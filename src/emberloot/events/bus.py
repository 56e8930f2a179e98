import logging
from collections import defaultdict
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, DefaultDict, Dict, List

logger = logging.getLogger(__name__)

# Subscribing to this name receives every published event.
ANY_EVENT = "*"


@dataclass(frozen=True)
class Event:
    """A published loot event.

    Attributes:
        name: Event name, usually one of the ``EventType`` values.
        payload: Event data. Item payloads carry the finished item itself.
    """
    name: str
    payload: Dict[str, Any]


Handler = Callable[[Event], None]


class EventBus:
    """Thread-safe publish/subscribe hub between the loot service and its observers.

    Handlers run synchronously in registration order. Handlers bound to
    ``ANY_EVENT`` run after the handlers for the specific name.
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)
        self._lock = RLock()

    def subscribe(self, event_name: str, handler: Handler) -> Callable[[], None]:
        """Register ``handler`` for ``event_name`` and return a callable that removes it."""
        if not callable(handler):
            raise TypeError("handler must be callable")
        with self._lock:
            self._handlers[event_name].append(handler)
        logger.debug("Subscribed %s to '%s'", getattr(handler, "__name__", repr(handler)), event_name)

        def _unsubscribe() -> None:
            self.unsubscribe(event_name, handler)

        return _unsubscribe

    def unsubscribe(self, event_name: str, handler: Handler) -> None:
        with self._lock:
            handlers = self._handlers.get(event_name)
            if handlers and handler in handlers:
                handlers.remove(handler)
                logger.debug("Unsubscribed %s from '%s'", getattr(handler, "__name__", repr(handler)), event_name)

    def subscriber_count(self, event_name: str) -> int:
        with self._lock:
            return len(self._handlers.get(event_name, ()))

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()

    def publish(self, event_name: str, payload: Dict[str, Any]) -> Event:
        """Deliver an event to its handlers. Handler errors are logged, never raised."""
        event = Event(name=event_name, payload=payload)
        with self._lock:
            handlers = list(self._handlers.get(event_name, ()))
            if event_name != ANY_EVENT:
                handlers.extend(self._handlers.get(ANY_EVENT, ()))
        logger.debug("Publishing '%s' to %d handler(s); keys=%s", event_name, len(handlers), sorted(payload))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Unhandled exception in event handler for '%s'", event_name)
        return event


_DEFAULT_BUS = EventBus()


def get_event_bus() -> EventBus:
    """Process-wide bus used when a service is not given one explicitly."""
    return _DEFAULT_BUS


__all__ = ["ANY_EVENT", "Event", "EventBus", "Handler", "get_event_bus"]
