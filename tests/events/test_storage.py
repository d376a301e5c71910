"""
Tests for events/storage.py - Storage Events.
"""
from typing import Annotated, Any, Dict

import pytest

from events.storage import StorageChange, StorageEvents


@pytest.fixture
def storage(container, source):
    return StorageEvents(container, source)


CHANGES = {
    "settings": {"old_value": None, "new_value": {"theme": "dark"}},
    "token": {"old_value": "a", "new_value": "b"},
}


class TestStorageEvents:
    """Tests for StorageEvents."""

    @pytest.mark.asyncio
    async def test_key_listener_receives_specific_change(self, container, source, storage):
        @container.service
        class SettingsCache:
            @storage.on_storage_changed("local", key="settings")
            def refresh(
                self,
                change: Annotated[dict, storage.storage_item_change],
                area: Annotated[str, storage.storage_area_name],
            ):
                return change["new_value"], area

        results = await source.emit(CHANGES, "local")

        assert results == [[({"theme": "dark"}, "local")]]

    @pytest.mark.asyncio
    async def test_key_listeners_fire_before_area_listeners(self, container, source, storage):
        order = []

        @container.service
        class Watcher:
            @storage.on_storage_changed("local")
            def everything(self, changes: Annotated[Dict[str, Any], storage.storage_changes]):
                order.append(("area", sorted(changes)))

            @storage.on_storage_changed("local", key="token")
            def token(self):
                order.append(("key", "token"))

        await source.emit(CHANGES, "local")

        assert order == [("key", "token"), ("area", ["settings", "token"])]

    @pytest.mark.asyncio
    async def test_other_area_ignored(self, container, source, storage):
        fired = []

        @container.service
        class Watcher:
            @storage.on_storage_changed("sync")
            def on_sync(self):
                fired.append("sync")

        assert await source.emit(CHANGES, "local") == [[]]
        assert fired == []

    @pytest.mark.asyncio
    async def test_unchanged_key_not_fired(self, container, source, storage):
        fired = []

        @container.service
        class Watcher:
            @storage.on_storage_changed("local", key="missing")
            def on_missing(self):
                fired.append("missing")

        await source.emit(CHANGES, "local")

        assert fired == []

    @pytest.mark.asyncio
    async def test_unbound_listener_receives_payload(self, container, source, storage):
        @container.service
        class Watcher:
            @storage.on_storage_changed("session")
            def on_change(self, payload):
                return payload

        results = await source.emit({"k": 1}, "session")

        assert results == [[StorageChange({"k": 1}, "session", None)]]
