"""
Tests for di/registry.py - Service Registry.
"""
import pytest

from config import InitFailurePolicy
from di.lifecycle import SingletonFactory
from di.registry import ServiceDefinition, ServiceRegistry


class Storage:
    pass


class Poller:
    pass


@pytest.fixture
def registry():
    return ServiceRegistry()


def make_factory(cls, *dependencies):
    return SingletonFactory(ServiceDefinition(cls, tuple(dependencies)), InitFailurePolicy.RETRY)


class TestServiceRegistry:
    """Tests for ServiceRegistry."""

    def test_lookup_unknown_returns_none(self, registry):
        assert registry.lookup(Storage) is None
        assert not registry.is_registered(Storage)

    def test_register_and_lookup(self, registry):
        factory = make_factory(Storage)
        registry.register(Storage, factory)

        assert registry.lookup(Storage) is factory
        assert registry.is_registered(Storage)
        assert Storage in registry
        assert len(registry) == 1

    def test_register_replaces_previous_entry(self, registry):
        first = make_factory(Storage)
        second = make_factory(Storage)
        registry.register(Storage, first)
        registry.register(Storage, second)

        assert registry.lookup(Storage) is second
        assert len(registry) == 1

    def test_definitions_in_registration_order(self, registry):
        registry.register(Poller, make_factory(Poller, Storage))
        registry.register(Storage, make_factory(Storage))

        definitions = registry.definitions()

        assert [d.cls for d in definitions] == [Poller, Storage]
        assert definitions[0].dependencies == (Storage,)
        assert definitions[0].name == "Poller"

    def test_clear(self, registry):
        registry.register(Storage, make_factory(Storage))
        registry.clear()

        assert registry.lookup(Storage) is None
        assert len(registry) == 0
