"""
DecoExt - Command Events

Keyboard command listeners. The payload is the command name.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Optional, Union

from di.container import Container
from dispatch.factory import ListenerHandler, ListenerMethod
from events.base import EventCategory
from events.source import EventSource

CommandFilter = Callable[[str], Union[bool, Awaitable[bool]]]


class CommandEvents(EventCategory):
    namespace = "command"

    def __init__(self, container: Container, source: EventSource):
        super().__init__(container, source)
        self.listeners: List[ListenerHandler] = []

    def on_command(self, filter: Optional[CommandFilter] = None) -> Callable[[Any], ListenerMethod]:
        self._ensure_subscribed()
        return self.dispatcher.listener(self.listeners.append, filter)

    async def _on_event(self, command: str) -> List[Any]:
        return await self._dispatch(self.listeners, command)
