"""
Service event publisher.

Each service instance owns a ServiceEvents hub. Listeners are plain
callables invoked synchronously, in subscription order, when the service
creates, updates or deletes a document. A failing listener is logged and
skipped; it never breaks the operation that emitted the event.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class ServiceEventType(str, Enum):
    """Event types fired by model services."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass
class ServiceEvent:
    """
    Event data structure handed to listeners.

    Attributes:
        type: Event type (see ServiceEventType enum)
        service: Name of the emitting service
        data: Event payload; a document for created/deleted, an
            UpdateResult for updated
        timestamp: Event creation timestamp
    """
    type: ServiceEventType
    service: str
    data: Any
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc)


Listener = Callable[[ServiceEvent], None]


class ServiceEvents:
    """
    Synchronous observer list for one service.

    Not shared between services; the registry builds one per service
    instance and attaches the registered listeners to it.
    """

    def __init__(self, service_name: str, log: Optional[logging.Logger] = None):
        self.service_name = service_name
        self.logger = log or logger
        self._listeners: Dict[ServiceEventType, List[Listener]] = {
            event_type: [] for event_type in ServiceEventType
        }

    def subscribe(self, event_type: ServiceEventType, listener: Listener) -> None:
        """Register ``listener`` for ``event_type``."""
        self._listeners[ServiceEventType(event_type)].append(listener)

    def unsubscribe(self, event_type: ServiceEventType, listener: Listener) -> None:
        """Remove ``listener``; unknown listeners are ignored."""
        listeners = self._listeners[ServiceEventType(event_type)]
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event_type: ServiceEventType) -> int:
        return len(self._listeners[ServiceEventType(event_type)])

    def emit(self, event_type: ServiceEventType, data: Any) -> ServiceEvent:
        """
        Invoke every listener registered for ``event_type``.

        Args:
            event_type: Event to fire
            data: Payload passed to listeners inside a ServiceEvent

        Returns:
            The emitted event
        """
        event = ServiceEvent(type=ServiceEventType(event_type), service=self.service_name, data=data)

        for listener in list(self._listeners[event.type]):
            try:
                listener(event)
            except Exception:
                self.logger.exception(
                    f"Listener failed for {event.type.value} event",
                    extra={"event": event.type.value, "service": self.service_name}
                )

        return event
