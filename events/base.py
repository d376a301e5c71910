"""
DecoExt - Event Category Base

Shared plumbing for event categories: one dispatcher, one lazily created
subscription to the category's event source, and ordered fan-out to the
registered handlers.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from core.async_utils import call_once, gather_in_order
from di.container import Container
from dispatch.factory import EventDispatcher, ListenerHandler
from dispatch.parameters import ArgumentBuilder
from events.source import EventSource
from observability.logging import get_logger


class EventCategory:
    """
    Base class for event categories.

    Subclasses implement ``_on_event`` (the single callback handed to the
    event source) and decorator methods that call ``_ensure_subscribed()``.
    """

    namespace: str = "event"

    def __init__(
        self,
        container: Container,
        source: EventSource,
        namespace: Optional[str] = None,
        argument_builder: Optional[ArgumentBuilder] = None,
    ):
        self.container = container
        self.source = source
        self.dispatcher: EventDispatcher = container.create_dispatcher(
            namespace or self.namespace, argument_builder
        )
        self.logger = get_logger(f"events.{self.dispatcher.name}")
        self._ensure_subscribed = call_once(self._subscribe)

    def _subscribe(self) -> None:
        self.source.subscribe(self._on_event)
        self.logger.debug("Subscribed to event source", category=type(self).__name__)

    async def _on_event(self, *args: Any) -> Any:
        raise NotImplementedError

    async def _dispatch(self, handlers: Iterable[ListenerHandler], payload: Any) -> List[Any]:
        """Start handlers in order, await them together, return results in order."""
        return await gather_in_order(handler(payload) for handler in list(handlers))
