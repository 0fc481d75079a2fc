"""
Event System Module

Publish/subscribe dispatcher for account lifecycle events. The registry
publishes an event for every creation, copy, update attempt and release so
that observers such as the structured logger never need a hidden hook into
the account class.
"""

from enum import Enum
from typing import Callable, Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime, timezone
import uuid
import logging

from .logging_config import log_action


class DomainEvent(Enum):
    """Account lifecycle events"""
    ACCOUNT_CREATED = "account.created"
    ACCOUNT_DEFAULTED = "account.defaulted"
    ACCOUNT_COPIED = "account.copied"
    ACCOUNT_UPDATED = "account.updated"
    ACCOUNT_UPDATE_REJECTED = "account.update_rejected"
    ACCOUNT_RELEASED = "account.released"


@dataclass
class EventPayload:
    """Payload for domain events"""
    event_type: DomainEvent
    entity_type: str
    entity_id: str
    data: Dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'event_type': self.event_type.value,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'data': self.data,
            'timestamp': self.timestamp.isoformat(),
            'event_id': self.event_id
        }


def _handler_name(handler: Callable) -> str:
    return getattr(handler, '__name__', repr(handler))


class EventDispatcher:
    """Central event dispatcher, single-threaded publish/subscribe"""

    def __init__(self):
        self._handlers: Dict[DomainEvent, List[Callable]] = {}
        self._global_handlers: List[Callable] = []  # catch-all handlers
        self.logger = logging.getLogger("account_demo.events")

    def subscribe(self, event_type: DomainEvent, handler: Callable) -> None:
        """Subscribe to a specific event type"""
        self._handlers.setdefault(event_type, []).append(handler)
        self.logger.debug(f"Subscribed handler {_handler_name(handler)} to {event_type.value}")

    def subscribe_all(self, handler: Callable) -> None:
        """Subscribe to ALL events"""
        self._global_handlers.append(handler)
        self.logger.debug(f"Subscribed global handler {_handler_name(handler)}")

    def unsubscribe(self, event_type: DomainEvent, handler: Callable) -> None:
        """Unsubscribe from a specific event type"""
        try:
            self._handlers.get(event_type, []).remove(handler)
            self.logger.debug(f"Unsubscribed handler {_handler_name(handler)} from {event_type.value}")
        except ValueError:
            self.logger.warning(f"Handler {_handler_name(handler)} was not subscribed to {event_type.value}")

    def unsubscribe_all(self, handler: Callable) -> None:
        """Unsubscribe a global handler"""
        try:
            self._global_handlers.remove(handler)
            self.logger.debug(f"Unsubscribed global handler {_handler_name(handler)}")
        except ValueError:
            self.logger.warning(f"Global handler {_handler_name(handler)} was not subscribed")

    def publish(self, event: EventPayload) -> None:
        """Publish event to all subscribers"""
        self.logger.debug(f"Publishing event {event.event_type.value} for {event.entity_type}:{event.entity_id}")

        handlers = self._handlers.get(event.event_type, []) + self._global_handlers
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                # A failing observer must not abort the account operation
                self.logger.error(f"Error in event handler {_handler_name(handler)} for {event.event_type.value}: {e}")

    def clear(self) -> None:
        """Clear all handlers"""
        self._handlers.clear()
        self._global_handlers.clear()
        self.logger.info("All event handlers cleared")

    def get_handler_count(self, event_type: Optional[DomainEvent] = None) -> int:
        """Get count of handlers for a specific event type or all"""
        if event_type:
            return len(self._handlers.get(event_type, []))
        total = sum(len(handlers) for handlers in self._handlers.values())
        return total + len(self._global_handlers)


def create_account_event(event_type: DomainEvent, account, **extra: Any) -> EventPayload:
    """Create an account-related event"""
    data: Dict[str, Any] = account.as_dict()
    data.update(extra)
    return EventPayload(
        event_type=event_type,
        entity_type="account",
        entity_id=account.id,
        data=data
    )


def log_event_handler(logger: logging.Logger) -> Callable[[EventPayload], None]:
    """
    Build a handler that writes each event as a structured log record.

    Rejected updates and defaulted creations are logged at warning level,
    everything else at info.
    """
    warning_events = {DomainEvent.ACCOUNT_DEFAULTED, DomainEvent.ACCOUNT_UPDATE_REJECTED}

    def handle(event: EventPayload) -> None:
        level = "warning" if event.event_type in warning_events else "info"
        log_action(
            logger, level, f"{event.event_type.value} {event.entity_id}",
            action=event.event_type.value,
            resource=f"{event.entity_type}:{event.entity_id}",
            correlation_id=event.event_id,
            extra=event.to_dict()
        )

    handle.__name__ = "log_event"
    return handle
