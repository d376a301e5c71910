"""
Tests for dispatch/metadata.py - Parameter Binding Metadata.
"""
import pytest

from dispatch.metadata import Binding, MetadataStore, NamespaceKey


class Owner:
    pass


class TestMetadataStore:
    """Tests for MetadataStore."""

    @pytest.fixture
    def store(self):
        return MetadataStore()

    @pytest.fixture
    def key(self):
        return NamespaceKey("alarm_info")

    def test_empty(self, store, key):
        assert store.get(Owner, "poll", key) == []
        assert not store.has_bindings(Owner, "poll", key)

    def test_bindings_sorted_by_index(self, store, key):
        store.add(Owner, "poll", key, Binding(2, "name"))
        store.add(Owner, "poll", key, Binding(0))

        assert store.get(Owner, "poll", key) == [Binding(0), Binding(2, "name")]
        assert len(store) == 2

    def test_same_index_replaced(self, store, key):
        store.add(Owner, "poll", key, Binding(0, "name"))
        store.add(Owner, "poll", key, Binding(0, "name"))
        store.add(Owner, "poll", key, Binding(0, "scheduled_time"))

        assert store.get(Owner, "poll", key) == [Binding(0, "scheduled_time")]

    def test_keys_compared_by_identity(self, store):
        first = NamespaceKey("same")
        second = NamespaceKey("same")
        store.add(Owner, "poll", first, Binding(0))

        assert store.has_bindings(Owner, "poll", first)
        assert not store.has_bindings(Owner, "poll", second)

    def test_methods_are_separate(self, store, key):
        store.add(Owner, "poll", key, Binding(0))

        assert store.get(Owner, "other", key) == []

    def test_negative_index_rejected(self, store, key):
        with pytest.raises(ValueError):
            store.add(Owner, "poll", key, Binding(-1))

    def test_clear(self, store, key):
        store.add(Owner, "poll", key, Binding(0))
        store.clear()

        assert store.get(Owner, "poll", key) == []
