"""Named lifecycle events consumed by presentation and audio collaborators."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

DRAW_STARTED = "draw_started"
DRAW_FINISHED = "draw_finished"
DIGIT_STOPPED = "digit_stopped"
SPIN_GROUP_STARTED = "spin_group_started"
SPIN_GROUP_STOPPED = "spin_group_stopped"
START_REQUESTED = "start_requested"
PRIZE_CHANGED = "prize_changed"
ALL_PRIZES_COMPLETE = "all_prizes_complete"
ERROR = "error"

EVENT_NAMES = frozenset(
    {
        DRAW_STARTED,
        DRAW_FINISHED,
        DIGIT_STOPPED,
        SPIN_GROUP_STARTED,
        SPIN_GROUP_STOPPED,
        START_REQUESTED,
        PRIZE_CHANGED,
        ALL_PRIZES_COMPLETE,
        ERROR,
    }
)

Listener = Callable[[Any], None]


class EventHub:
    """Dispatches named events to subscribed listeners.

    Listeners run synchronously in subscription order. A listener that raises
    is logged and skipped; it never interrupts the engine that emitted the
    event.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)
        self.history: List[tuple[str, Any]] = []
        self.keep_history = False

    def subscribe(self, name: str, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for ``name`` and return an unsubscribe callable."""
        if name not in EVENT_NAMES:
            raise ValueError(f"Unknown event '{name}'")
        self._listeners[name].append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners[name]:
                self._listeners[name].remove(listener)

        return _unsubscribe

    def emit(self, name: str, payload: Any = None) -> None:
        if self.keep_history:
            self.history.append((name, payload))
        for listener in list(self._listeners.get(name, ())):
            try:
                listener(payload)
            except Exception:
                logger.exception(f"Listener for '{name}' failed")

    def names(self) -> List[str]:
        """Names of recorded events, in emission order."""
        return [name for name, _ in self.history]


__all__ = [
    "ALL_PRIZES_COMPLETE",
    "DIGIT_STOPPED",
    "DRAW_FINISHED",
    "DRAW_STARTED",
    "ERROR",
    "EVENT_NAMES",
    "EventHub",
    "PRIZE_CHANGED",
    "SPIN_GROUP_STARTED",
    "SPIN_GROUP_STOPPED",
    "START_REQUESTED",
]
