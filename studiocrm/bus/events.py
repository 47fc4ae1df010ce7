"""
Event Bus - Decoupled Module Communication
Engine modules emit events after each committed mutation; listeners
(CLI hooks, future sync jobs) register handlers without importing the engine.
"""

from typing import Callable, Dict, List, Any
import logging

logger = logging.getLogger(__name__)


class EventBus:
    """
    Simple synchronous event bus.
    A failing handler is logged and never aborts the emitting mutation.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = {}

    def on(self, event_name: str, handler: Callable):
        """Register a handler that receives the event_data dict."""
        self._handlers.setdefault(event_name, []).append(handler)
        logger.debug(f"Registered handler for event '{event_name}': {handler.__name__}")

    def off(self, event_name: str, handler: Callable):
        """Unregister a handler. Unknown handlers are ignored."""
        handlers = self._handlers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event_name: str, event_data: Dict[str, Any] = None):
        """Emit an event to all registered handlers, in registration order."""
        if event_data is None:
            event_data = {}

        logger.debug(f"Emitting event '{event_name}' with data: {event_data}")

        for handler in list(self._handlers.get(event_name, [])):
            try:
                handler(event_data)
            except Exception as e:
                logger.error(f"Error in handler {handler.__name__} for event '{event_name}': {e}")

    def clear(self):
        """Clear all handlers (useful for testing)."""
        self._handlers.clear()


# Singleton instance
bus = EventBus()


# =============================================================================
# STANDARD EVENTS
# =============================================================================

# Entity store
EVENT_VENUE_CREATED = 'venue_created'
EVENT_VENUE_UPDATED = 'venue_updated'
EVENT_VENUE_DELETED = 'venue_deleted'
EVENT_VENUE_REORDERED = 'venue_reordered'
EVENT_COLLABORATOR_CREATED = 'collaborator_created'
EVENT_COLLABORATOR_UPDATED = 'collaborator_updated'
EVENT_COLLABORATOR_DELETED = 'collaborator_deleted'
EVENT_CONTACT_CREATED = 'contact_created'
EVENT_CONTACT_UPDATED = 'contact_updated'
EVENT_CONTACT_DELETED = 'contact_deleted'
EVENT_PROJECT_CREATED = 'project_created'
EVENT_PROJECT_UPDATED = 'project_updated'
EVENT_PROJECT_DELETED = 'project_deleted'
EVENT_TASK_CREATED = 'task_created'
EVENT_TASK_UPDATED = 'task_updated'
EVENT_TASK_DELETED = 'task_deleted'
EVENT_OUTREACH_LOGGED = 'outreach_logged'
EVENT_OUTREACH_UPDATED = 'outreach_updated'
EVENT_OUTREACH_DELETED = 'outreach_deleted'

# Relations
EVENT_LINK_ADDED = 'link_added'
EVENT_LINK_REMOVED = 'link_removed'

# Venue Scout
EVENT_SCOUT_STARTED = 'scout_started'
EVENT_SCOUT_COMPLETE = 'scout_complete'
EVENT_VENUE_DISCOVERED = 'venue_discovered'

# Integrations
EVENT_CARD_CREATED = 'card_created'
