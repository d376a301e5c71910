"""
Tests for di/container.py - Composition Root.
"""
import pytest

from config import InitFailurePolicy, RuntimeConfig
from core.errors import ConfigurationError
from di.container import Container, get_container, reset_container, service
from dispatch.factory import EventDispatcher


@pytest.fixture
def global_container():
    reset_container()
    yield get_container()
    reset_container()


class TestContainer:
    """Tests for Container."""

    def test_defaults_from_global_config(self, monkeypatch):
        import config as config_module

        monkeypatch.setattr(
            config_module,
            "_config",
            config_module.Config(
                runtime=RuntimeConfig(InitFailurePolicy.STICKY, True),
            ),
        )

        container = Container()

        assert container.config.init_failure_policy is InitFailurePolicy.STICKY
        assert container.config.strict_dependencies is True

    def test_service_decorator_registers(self, container):
        @container.service
        class Storage:
            pass

        factory = container.lookup(Storage)
        assert factory is not None
        assert factory.definition.cls is Storage
        assert factory.definition.dependencies == ()

    def test_service_decorator_with_dependencies(self, container):
        @container.service
        class Storage:
            pass

        @container.service(depends_on=[Storage])
        class Poller:
            def __init__(self, storage):
                self.storage = storage

        assert container.lookup(Poller).definition.dependencies == (Storage,)

    def test_service_rejects_non_class(self, container):
        with pytest.raises(ConfigurationError):
            container.service(lambda: None)

    def test_containers_are_isolated(self, runtime_config):
        first = Container(runtime_config)
        second = Container(runtime_config)

        @first.service
        class Storage:
            pass

        assert first.lookup(Storage) is not None
        assert second.lookup(Storage) is None

    @pytest.mark.asyncio
    async def test_initialize(self, container):
        ready = []

        @container.service
        class Storage:
            def init(self):
                ready.append("storage")

        @container.service
        class Poller:
            async def init(self):
                ready.append("poller")

        storage, poller = await container.initialize(Storage, Poller)

        assert storage is Storage()
        assert poller is Poller()
        assert sorted(ready) == ["poller", "storage"]

    def test_create_dispatcher(self, container):
        dispatcher = container.create_dispatcher("alarms")

        assert isinstance(dispatcher, EventDispatcher)
        assert dispatcher.container is container
        assert dispatcher.namespace.name == "alarms"

    def test_namespaces_with_same_name_are_distinct(self, container):
        first = container.create_namespace("alarms")
        second = container.create_namespace("alarms")

        assert first.key is not second.key


class TestGlobalContainer:
    """Tests for the process-wide container helpers."""

    def test_get_container_is_cached(self, global_container):
        assert get_container() is global_container

    def test_reset_container(self, global_container):
        reset_container()
        assert get_container() is not global_container

    def test_module_level_service(self, global_container):
        @service
        class Storage:
            pass

        assert global_container.lookup(Storage) is not None
        assert global_container.resolve(Storage) is Storage()
