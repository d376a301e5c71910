"""
DecoExt - Event Sources

The boundary between the runtime and whatever produces notifications.

An event source only needs ``subscribe(callback)``. Each event category
subscribes exactly once; the callback returns an awaitable.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Protocol, runtime_checkable

from core.async_utils import maybe_await

logger = logging.getLogger("decoext.events.source")

EventCallback = Callable[..., Awaitable[Any]]


@runtime_checkable
class EventSource(Protocol):
    """Anything that can deliver notifications to a subscriber."""

    def subscribe(self, callback: EventCallback) -> None:
        ...


class LocalEventSource:
    """
    In-process event source.

    Usage:
        alarms_source = LocalEventSource("alarms")
        alarms = AlarmEvents(container, alarms_source)
        ...
        await alarms_source.emit(Alarm(name="poll", scheduled_time=0.0))
    """

    def __init__(self, name: str):
        self.name = name
        self._subscribers: List[EventCallback] = []

    def subscribe(self, callback: EventCallback) -> None:
        self._subscribers.append(callback)
        logger.debug("Subscribed to event source %s", self.name)

    @property
    def has_subscribers(self) -> bool:
        return bool(self._subscribers)

    async def emit(self, *args: Any) -> List[Any]:
        """Deliver one notification to every subscriber, in order."""
        results = []
        for callback in list(self._subscribers):
            results.append(await maybe_await(callback(*args)))
        return results

    def __repr__(self) -> str:
        return f"LocalEventSource({self.name!r}, subscribers={len(self._subscribers)})"
