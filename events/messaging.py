"""
DecoExt - Messaging

Request/response message listeners keyed by message name.

An incoming message is a mapping (or object) with ``name`` and ``data``.
The listener registered for that name is called and its return value is
sent back as the response. Messages without a name, or with a name nobody
listens to, get no response (None).

Two parameter namespaces feed one argument list:
- message_data: the message's ``data`` (or a field of it)
- message_sender: the sender (or a field of it)

Without bindings the listener receives a MessageEnvelope.

Usage:
    messages = MessageEvents(container, source)

    @container.service
    class Settings:
        @messages.on_message("get-setting")
        def get_setting(self, key: Annotated[str, messages.message_data("key")]):
            return self.values.get(key)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from core.async_utils import maybe_await
from core.errors import DuplicateListenerError, InvalidListenerError
from di.container import Container
from dispatch.factory import ListenerHandler, ListenerMethod
from dispatch.parameters import build_composite_arguments, extract
from events.base import EventCategory
from events.source import EventSource


@dataclass(frozen=True)
class MessageSender:
    """Where a message came from."""

    id: Optional[str] = None
    url: Optional[str] = None
    tab_id: Optional[int] = None
    frame_id: Optional[int] = None
    origin: Optional[str] = None


@dataclass(frozen=True)
class MessageEnvelope:
    """Payload handed to message listeners and filters."""

    data: Any
    sender: Any = None


MessageListener = Callable[[MessageEnvelope], Any]
MessageFilter = Callable[[MessageEnvelope], Union[bool, Awaitable[bool]]]


class MessageEvents(EventCategory):
    namespace = "message"

    def __init__(self, container: Container, source: EventSource):
        data_namespace = container.create_namespace("message_data")
        sender_namespace = container.create_namespace("message_sender")
        builder = build_composite_arguments(
            container.metadata,
            {
                data_namespace.key: lambda envelope: envelope.data,
                sender_namespace.key: lambda envelope: envelope.sender,
            },
        )
        super().__init__(container, source, argument_builder=builder)
        self.message_data = data_namespace.annotate
        self.message_sender = sender_namespace.annotate
        self.listeners: Dict[str, MessageListener] = {}

    def on_message(
        self,
        key: str,
        filter: Optional[MessageFilter] = None,
    ) -> Callable[[Any], ListenerMethod]:
        """
        Answer messages named ``key`` with the decorated method.

        Args:
            key: Message name
            filter: Optional predicate on the MessageEnvelope; a rejected
                message gets no response

        Raises:
            InvalidListenerError: If ``key`` is not a non-empty string
            DuplicateListenerError: If ``key`` already has a listener
        """
        if not key or not isinstance(key, str):
            raise InvalidListenerError(
                f"Message key must be a non-empty string, got {key!r}"
            )
        self._check_unique(key)
        self._ensure_subscribed()

        def register(handler: ListenerHandler) -> None:
            self._add(key, handler)

        return self.dispatcher.listener(register, filter)

    def add_message_listener(self, name: str, callback: MessageListener) -> None:
        """Answer messages named ``name`` with a plain callback taking a MessageEnvelope."""
        self._ensure_subscribed()
        self._add(name, callback)

    def remove_message_listener(self, name: str) -> None:
        self.listeners.pop(name, None)

    def _check_unique(self, name: str) -> None:
        if name in self.listeners:
            raise DuplicateListenerError(
                f"Message listener for '{name}' already exists",
                listener_key=name,
            )

    def _add(self, name: str, listener: MessageListener) -> None:
        self._check_unique(name)
        self.listeners[name] = listener
        self.logger.debug("Registered message listener", message=name)

    async def _on_event(self, message: Any, sender: Any = None) -> Any:
        name = extract(message, "name")
        if not name:
            return None
        listener = self.listeners.get(name)
        if listener is None:
            return None
        return await maybe_await(listener(MessageEnvelope(extract(message, "data"), sender)))
