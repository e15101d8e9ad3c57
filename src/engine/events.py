"""
Semantic game events and the bus that delivers them.

The round engine emits a GameEvent for each round start, solve, miss, bonus
entry and game end. Match clients, the runner and any outside listener
subscribe here.
"""

import logging
from typing import Callable, Dict, List, Optional

from .models import GameEvent


logger = logging.getLogger(__name__)

EventHandler = Callable[[GameEvent], None]


class EventBus:
    """
    Fan-out of engine events to outside subscribers (analytics, achievements,
    leaderboards, multiplayer clients).

    The engine never depends on a subscriber: a handler that raises is logged
    and the remaining handlers still run.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Optional[str], List[EventHandler]] = {}
        self.history: List[GameEvent] = []

    def subscribe(self, handler: EventHandler, event_type: Optional[str] = None) -> None:
        """Register `handler` for one event type, or for every event when None."""
        self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, handler: EventHandler, event_type: Optional[str] = None) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: GameEvent) -> None:
        self.history.append(event)
        for handler in self._handlers.get(event.type, []) + self._handlers.get(None, []):
            try:
                handler(event)
            except Exception:
                logger.warning("Event handler %r failed on %s", handler, event.type, exc_info=True)

    def clear(self) -> None:
        """Forget recorded history (subscriptions are kept)."""
        self.history = []
