"""
DecoExt - Alarm Events

Listeners for elapsed alarms. A listener registered with a name only fires
for that alarm; one registered without a name fires for every alarm.

Usage:
    alarms = AlarmEvents(container, source)

    @container.service
    class Poller:
        @alarms.on_alarm(name="poll")
        async def poll(self, name: Annotated[str, alarms.alarm_details("name")]):
            ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from di.container import Container
from dispatch.factory import ListenerHandler, ListenerMethod
from events.base import EventCategory
from events.source import EventSource


@dataclass(frozen=True)
class Alarm:
    """An elapsed alarm."""

    name: str
    scheduled_time: float
    period_in_minutes: Optional[float] = None


class AlarmEvents(EventCategory):
    namespace = "alarm_info"

    def __init__(self, container: Container, source: EventSource):
        super().__init__(container, source)
        self.named_listeners: Dict[str, ListenerHandler] = {}
        self.listeners: List[ListenerHandler] = []
        self.alarm_details = self.dispatcher.parameter_annotation

    def on_alarm(self, name: Optional[str] = None) -> Callable[[Any], ListenerMethod]:
        """
        Call the decorated method when an alarm elapses.

        Without parameter bindings the method receives the Alarm.
        A second listener for the same name replaces the first.
        """
        self._ensure_subscribed()

        def register(handler: ListenerHandler) -> None:
            if name:
                self.named_listeners[name] = handler
            else:
                self.listeners.append(handler)

        return self.dispatcher.listener(register)

    async def _on_event(self, alarm: Alarm) -> List[Any]:
        handlers: List[ListenerHandler] = []
        named = self.named_listeners.get(alarm.name)
        if named is not None:
            handlers.append(named)
        handlers.extend(self.listeners)
        return await self._dispatch(handlers, alarm)
