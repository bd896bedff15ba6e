"""
In-memory event bus carrying lifecycle events.

The controller publishes one event per (transition, recipient) after the
notification for that recipient has been dispatched. Subscribers use them for
the audit trail, metrics or anything else that wants to follow requests; the
bus keeps its own log of every event published.

Design decisions:
- Synchronous delivery in publish order
- Type-based subscriptions plus a "*" wildcard
- A failing subscriber is logged and never affects the publisher
- Thread-safe: the controller publishes from the fan-out worker pool
"""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable
from uuid import uuid4

logger = logging.getLogger("event_bus")


@dataclass(frozen=True)
class Event:
    """
    An immutable record of something that happened to a fuel request.

    Attributes:
        event_id: Unique identifier for this event instance
        event_type: String name of the event type (used for routing)
        timestamp: When the event occurred
        source: Which component published the event
        payload: The event-specific data
    """
    event_type: str
    payload: dict[str, Any]
    source: str
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def __str__(self) -> str:
        return f"Event({self.event_type}, id={self.event_id[:8]}, source={self.source})"


# Type alias for event handler functions
EventHandler = Callable[[Event], None]


class EventBus:
    """
    Simple in-memory pub/sub bus with an event log.

    Example usage:
        bus = EventBus()

        def audit(event):
            print(f"Lifecycle event: {event}")
        bus.subscribe_all(audit)

        bus.publish(request_decided(request_id=4, driver_id=7,
                                    recipient_id=7, status="Approved"))
    """

    def __init__(self, keep_log: bool = True):
        self._subscribers: dict[str, list[EventHandler]] = defaultdict(list)
        self._event_log: list[Event] = []
        self._keep_log = keep_log
        self._lock = threading.Lock()

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe ``handler`` to events of ``event_type``."""
        with self._lock:
            self._subscribers[event_type].append(handler)
        logger.debug(f"Subscribed handler to '{event_type}' events")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to every event (audit, debugging)."""
        self.subscribe("*", handler)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> bool:
        """
        Remove a handler.

        Returns:
            True if the handler was found and removed, False otherwise
        """
        with self._lock:
            try:
                self._subscribers[event_type].remove(handler)
            except ValueError:
                return False
        logger.debug(f"Unsubscribed handler from '{event_type}' events")
        return True

    def publish(self, event: Event) -> int:
        """
        Publish an event to all subscribers.

        Returns:
            Number of handlers that received the event
        """
        with self._lock:
            if self._keep_log:
                self._event_log.append(event)
            handlers = list(self._subscribers.get(event.event_type, []))
            handlers += self._subscribers.get("*", [])

        logger.info(f"Publishing: {event}")

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Handler raised exception for {event}: {e}")

        return len(handlers)

    def get_subscriber_count(self, event_type: str) -> int:
        with self._lock:
            return len(self._subscribers.get(event_type, []))

    def get_event_log(self) -> list[Event]:
        """Copy of every event published so far."""
        with self._lock:
            return self._event_log.copy()

    def get_events_for_request(self, request_id: int) -> list[Event]:
        """Audit trail of one request, in publish order."""
        return [e for e in self.get_event_log() if e.payload.get("request_id") == request_id]

    def clear_event_log(self) -> None:
        with self._lock:
            self._event_log.clear()
