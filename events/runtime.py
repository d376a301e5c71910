"""
DecoExt - Runtime Lifecycle Events

Installation and startup notifications for the host process.

``on_installed`` listeners can be narrowed to one install reason and to
temporary installs. ``on_startup`` listeners receive no payload.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Union

from core.async_utils import call_once
from core.errors import ConfigurationError
from di.container import Container
from dispatch.factory import ListenerHandler, ListenerMethod
from events.base import EventCategory
from events.source import EventSource


class InstallReason(str, Enum):
    INSTALL = "install"
    UPDATE = "update"
    BROWSER_UPDATE = "browser_update"
    SHARED_MODULE_UPDATE = "shared_module_update"


@dataclass(frozen=True)
class InstalledDetails:
    """Payload of an installation notification."""

    reason: str
    temporary: bool = False
    previous_version: Optional[str] = None
    id: Optional[str] = None


StartupFilter = Callable[[Any], Union[bool, Awaitable[bool]]]


class RuntimeEvents(EventCategory):
    """
    Installation and startup listeners.

    Args:
        container: Owning container
        source: Source of InstalledDetails notifications
        startup_source: Source of startup notifications (no arguments)
    """

    namespace = "installed_details"

    def __init__(
        self,
        container: Container,
        source: EventSource,
        startup_source: Optional[EventSource] = None,
    ):
        super().__init__(container, source)
        self.startup_source = startup_source
        self.startup_dispatcher = container.create_dispatcher("startup")
        self.installed_listeners: List[ListenerHandler] = []
        self.startup_listeners: List[ListenerHandler] = []
        self.installed_details = self.dispatcher.parameter_annotation
        self._ensure_startup_subscribed = call_once(self._subscribe_startup)

    def on_installed(
        self,
        reason: Optional[Union[InstallReason, str]] = None,
        temporary: Optional[bool] = None,
    ) -> Callable[[Any], ListenerMethod]:
        """
        Call the decorated method after install or update.

        Args:
            reason: Only fire for this install reason
            temporary: When true, only fire for temporary installs
        """
        self._ensure_subscribed()
        expected = reason.value if isinstance(reason, InstallReason) else reason

        def matches(details: InstalledDetails) -> bool:
            reason_ok = not expected or details.reason == expected
            temporary_ok = not temporary or details.temporary
            return bool(reason_ok and temporary_ok)

        return self.dispatcher.listener(self.installed_listeners.append, matches)

    def on_startup(self, filter: Optional[StartupFilter] = None) -> Callable[[Any], ListenerMethod]:
        """Call the decorated method when the host starts."""
        self._require_startup_source()
        self._ensure_startup_subscribed()
        return self.startup_dispatcher.listener(self.startup_listeners.append, filter)

    def _require_startup_source(self) -> EventSource:
        if self.startup_source is None:
            raise ConfigurationError("RuntimeEvents was created without a startup source")
        return self.startup_source

    def _subscribe_startup(self) -> None:
        self._require_startup_source().subscribe(self._on_startup)
        self.logger.debug("Subscribed to event source", category="startup")

    async def _on_event(self, details: InstalledDetails) -> List[Any]:
        return await self._dispatch(self.installed_listeners, details)

    async def _on_startup(self) -> List[Any]:
        return await self._dispatch(self.startup_listeners, None)
