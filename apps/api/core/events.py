"""
Lightweight Event System

In-process emitter used to fan training events out to side effects
(realtime broadcast, AI core feed) without coupling services to them.
"""
import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

# Event registry: event_name -> list of handlers
_event_handlers: Dict[str, List[Callable]] = {}


def subscribe(event_name: str, handler: Callable):
    """
    Subscribe a handler function to an event.

    Example:
        subscribe(EVENT_SET_LOGGED, on_set_logged)
    """
    handlers = _event_handlers.setdefault(event_name, [])
    if handler not in handlers:
        handlers.append(handler)
    logger.debug(f"Subscribed handler to event: {event_name}")


def unsubscribe(event_name: str, handler: Callable):
    handlers = _event_handlers.get(event_name, [])
    if handler in handlers:
        handlers.remove(handler)


def emit(event_name: str, **kwargs):
    """
    Emit an event, calling all subscribed handlers.

    Handler failures are logged and never reach the emitter.
    """
    for handler in list(_event_handlers.get(event_name, [])):
        try:
            handler(**kwargs)
        except Exception as e:
            logger.error(f"Error in event handler for {event_name}: {e}", exc_info=True)


# Training event names
EVENT_SESSION_STARTED = 'session.started'
EVENT_SET_LOGGED = 'session.set_logged'
EVENT_SESSION_COMPLETED = 'session.completed'
EVENT_RECOMMENDATIONS_GENERATED = 'recommendations.generated'
EVENT_DELOAD_STARTED = 'plan.deload_started'
