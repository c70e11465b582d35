"""
Message Bus

In-process publish/subscribe registry for domain events.
Booking lifecycle events reach notifications (and any other interested
subsystem) through here.

Delivery is fire-and-forget: at most once per handler per publish,
no durability across restarts. A handler that raises is logged and
skipped, it never affects other handlers or the publisher.
"""

from typing import Callable, Dict, Iterable, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    """
    Message bus for domain events

    Events: Multiple handlers per event type (1:N)
    """

    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        """
        Register an event handler

        Multiple handlers can be registered for the same event type.
        Registering the same handler twice is a no-op.
        """
        handlers = self._event_handlers.setdefault(event_type, [])
        if handler in handlers:
            return
        handlers.append(handler)
        logger.debug(f"Registered event handler {_handler_name(handler)} for {event_type.__name__}")

    def unregister_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        handlers = self._event_handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def handlers_for(self, event_type: Type[DomainEvent]) -> List[EventHandler]:
        return list(self._event_handlers.get(event_type, []))

    def publish(self, event: DomainEvent):
        """
        Publish a single domain event

        All registered handlers for the event type are called.
        Errors in handlers are logged but don't stop other handlers.
        """
        event_type = type(event)
        handlers = self.handlers_for(event_type)

        if not handlers:
            logger.debug(f"No handlers registered for event {event_type.__name__}")
            return

        logger.info(f"Publishing event: {event_type.__name__} (ID: {event.event_id})")

        for handler in handlers:
            try:
                handler(event)
                logger.debug(f"Event {event_type.__name__} handled by {_handler_name(handler)}")
            except Exception as e:
                logger.error(
                    f"Error in event handler {_handler_name(handler)} "
                    f"for event {event_type.__name__}: {e}",
                    exc_info=True
                )

    def publish_events(self, events: Iterable[DomainEvent]):
        for event in events:
            self.publish(event)

    def clear(self):
        self._event_handlers.clear()


def _handler_name(handler) -> str:
    return getattr(handler, '__qualname__', None) or getattr(handler, '__name__', repr(handler))


# Global message bus instance
message_bus = MessageBus()
