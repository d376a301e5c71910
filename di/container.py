"""
DecoExt - Dependency Injection Container

Composition root for the service runtime. One Container owns:
- the service registry (class -> singleton factory)
- the parameter binding metadata store
- the dependency resolver
- the runtime configuration

Event dispatchers and parameter namespaces are created from a container and
keep a reference to it, so separate containers never share services or
bindings.

Usage:
    container = Container()

    @container.service()
    class Storage:
        async def init(self) -> None:
            self.cache = await load_cache()

    @container.service(depends_on=[Storage])
    class Poller:
        def __init__(self, storage: Storage):
            self.storage = storage

    poller = Poller()            # the singleton; Storage resolved first
    await poller.init()          # Storage.init, then Poller.init, once
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable, List, Optional, Type, TypeVar

from config import RuntimeConfig, get_config
from core.async_utils import gather_in_order
from core.errors import ConfigurationError
from di.lifecycle import SingletonFactory, install_service
from di.registry import ServiceDefinition, ServiceRegistry
from di.resolver import DependencyResolver
from dispatch.factory import EventDispatcher
from dispatch.metadata import MetadataStore
from dispatch.parameters import ArgumentBuilder, ParameterNamespace

T = TypeVar("T")

logger = logging.getLogger("decoext.di.container")

# Global container instance
_container: Optional["Container"] = None
_container_lock = threading.Lock()


class Container:
    """
    Service container and dispatcher factory.

    Args:
        config: Runtime configuration. Defaults to get_config().runtime.
    """

    def __init__(self, config: Optional[RuntimeConfig] = None) -> None:
        self.config = config or get_config().runtime
        self.registry = ServiceRegistry()
        self.metadata = MetadataStore()
        self.resolver = DependencyResolver(
            self.registry, strict=self.config.strict_dependencies
        )

    # =========================================================================
    # Services
    # =========================================================================

    def service(
        self,
        cls: Optional[Type[T]] = None,
        *,
        depends_on: Iterable[Type] = (),
    ) -> Any:
        """
        Class decorator declaring a singleton service.

        Usable bare (``@container.service``) or with a dependency list
        (``@container.service(depends_on=[Storage])``). Dependencies are
        passed positionally, in declared order, to the class's ``__init__``.
        """
        dependencies = tuple(depends_on)

        def decorator(target: Type[T]) -> Type[T]:
            if not isinstance(target, type):
                raise ConfigurationError(
                    f"service() decorates classes, got {target!r}",
                    suggestions=["Apply @container.service() to a class definition"],
                )
            definition = ServiceDefinition(target, dependencies)
            factory = install_service(
                target,
                definition,
                self.config.init_failure_policy,
                self.resolve,
            )
            self.registry.register(target, factory)
            return target

        if cls is not None:
            return decorator(cls)
        return decorator

    def register(self, cls: Type, factory: SingletonFactory) -> None:
        self.registry.register(cls, factory)

    def lookup(self, cls: Type) -> Optional[SingletonFactory]:
        return self.registry.lookup(cls)

    def resolve(self, cls: Type[T]) -> T:
        """Return the singleton for ``cls``, constructing it and its dependencies on first use."""
        return self.resolver.resolve(cls)

    async def initialize(self, *classes: Type) -> List[Any]:
        """Resolve ``classes`` and await all of their init chains."""
        instances = [self.resolve(cls) for cls in classes]
        await gather_in_order(instance.init() for instance in instances)
        return instances

    # =========================================================================
    # Dispatch
    # =========================================================================

    def create_namespace(self, name: str) -> ParameterNamespace:
        return ParameterNamespace(name, self.metadata)

    def create_dispatcher(
        self,
        name: str,
        argument_builder: Optional[ArgumentBuilder] = None,
        namespace: Optional[ParameterNamespace] = None,
    ) -> EventDispatcher:
        """
        Create the dispatcher for one event namespace.

        Args:
            name: Namespace name, used for the parameter namespace and spans
            argument_builder: Custom payload-to-arguments mapping. Defaults
                to build_arguments() over this dispatcher's namespace.
            namespace: Existing namespace to reuse instead of a new one
        """
        logger.debug("Creating dispatcher %s", name)
        return EventDispatcher(self, name, argument_builder, namespace)

    def __repr__(self) -> str:
        return f"Container(services={len(self.registry)})"


def get_container() -> Container:
    """Get or create the global container instance."""
    global _container
    if _container is None:
        with _container_lock:
            if _container is None:
                _container = Container()
    return _container


def reset_container() -> None:
    """Drop the global container. Classes already decorated keep their old one."""
    global _container
    with _container_lock:
        _container = None


def service(
    cls: Optional[Type[T]] = None,
    *,
    depends_on: Iterable[Type] = (),
) -> Any:
    """
    Declare a service on the global container.

    Usage:
        @service(depends_on=[Storage])
        class Poller:
            def __init__(self, storage: Storage):
                self.storage = storage
    """
    return get_container().service(cls, depends_on=depends_on)
