"""Typed event channel of the reasoning loop."""

from collections.abc import Callable
from enum import Enum
from typing import Any

from agentcore.logging import get_logger

logger = get_logger("agentcore.agent.events")

EventCallback = Callable[[dict[str, Any]], Any]


class EventKind(str, Enum):
    """Lifecycle events emitted by a reasoning loop."""

    START = "loop:start"
    OBSERVE = "loop:observe"
    THINK = "loop:think"
    ACT = "loop:act"
    RESULT = "loop:result"
    ITERATION = "loop:iteration"
    COMPLETE = "loop:complete"
    ERROR = "loop:error"
    PAUSE = "loop:pause"
    RESUME = "loop:resume"
    ABORT = "loop:abort"

    def __str__(self) -> str:
        """String representation of event kind."""
        return self.value


class EventChannel:
    """Publish/subscribe channel keyed by EventKind.

    Callbacks are invoked synchronously in subscription order. A callback
    that raises is logged and skipped; it never affects the emitter or the
    other subscribers.
    """

    def __init__(self):
        """Initialize a channel with no subscribers."""
        self._listeners: dict[EventKind, list[EventCallback]] = {kind: [] for kind in EventKind}

    def on(self, kind: EventKind, callback: EventCallback) -> None:
        """Subscribe callback to kind."""
        self._listeners[EventKind(kind)].append(callback)

    def off(self, kind: EventKind, callback: EventCallback) -> None:
        """Unsubscribe callback from kind (no-op if not subscribed)."""
        listeners = self._listeners[EventKind(kind)]
        self._listeners[EventKind(kind)] = [cb for cb in listeners if cb != callback]

    def emit(self, kind: EventKind, data: dict[str, Any]) -> None:
        """Deliver data to every subscriber of kind."""
        for callback in list(self._listeners[EventKind(kind)]):
            try:
                callback(data)
            except Exception as e:
                logger.error("Event handler failed", event_kind=str(kind), error=str(e))

    def listener_count(self, kind: EventKind | None = None) -> int:
        """Number of subscribers of kind, or of all kinds."""
        if kind is not None:
            return len(self._listeners[EventKind(kind)])
        return sum(len(listeners) for listeners in self._listeners.values())
