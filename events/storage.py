"""
DecoExt - Storage Events

Listeners for changes in a storage area, optionally narrowed to one key.

For each change notification, listeners registered for a specific key fire
once per changed key they watch, then the area-wide listeners fire. The
payload is a StorageChange whose ``specific_change`` is the change of the
watched key (None for area-wide listeners).

Usage:
    storage = StorageEvents(container, source)

    @container.service
    class SettingsCache:
        @storage.on_storage_changed("local", key="settings")
        def refresh(
            self,
            change: Annotated[dict, storage.storage_item_change],
            area: Annotated[str, storage.storage_area_name],
        ) -> None:
            ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from core.async_utils import gather_in_order
from di.container import Container
from dispatch.factory import ListenerHandler, ListenerMethod
from events.base import EventCategory
from events.source import EventSource

# Area-wide listeners
DEFAULT_KEY = None


@dataclass(frozen=True)
class StorageChange:
    """Payload handed to storage listeners."""

    all_changes: Mapping[str, Any] = field(default_factory=dict)
    area_name: str = ""
    specific_change: Any = None


class StorageEvents(EventCategory):
    namespace = "storage_change"

    def __init__(self, container: Container, source: EventSource):
        super().__init__(container, source)
        self.listeners: Dict[str, Dict[Optional[str], List[ListenerHandler]]] = {}
        annotate = self.dispatcher.parameter_annotation
        self.storage_changes = annotate("all_changes")
        self.storage_area_name = annotate("area_name")
        self.storage_item_change = annotate("specific_change")

    def on_storage_changed(
        self,
        storage_area: str,
        key: Optional[str] = None,
    ) -> Callable[[Any], ListenerMethod]:
        """
        Call the decorated method when ``storage_area`` changes.

        Args:
            storage_area: Area name, e.g. "local", "sync", "session"
            key: Only fire when this key changed
        """
        self._ensure_subscribed()

        def register(handler: ListenerHandler) -> None:
            area = self.listeners.setdefault(storage_area, {})
            area.setdefault(key, []).append(handler)

        return self.dispatcher.listener(register)

    async def _on_event(self, changes: Mapping[str, Any], area_name: str) -> List[Any]:
        area = self.listeners.get(area_name)
        if not area:
            return []

        calls: List[Tuple[ListenerHandler, StorageChange]] = []
        for changed_key in changes:
            if changed_key is DEFAULT_KEY:
                continue
            for handler in area.get(changed_key, ()):
                calls.append((handler, StorageChange(changes, area_name, changes[changed_key])))
        for handler in area.get(DEFAULT_KEY, ()):
            calls.append((handler, StorageChange(changes, area_name)))

        return await gather_in_order(handler(payload) for handler, payload in calls)
