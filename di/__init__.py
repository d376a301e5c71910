"""
DecoExt - Dependency Injection Module

Singleton services with ordered asynchronous initialization:
- Service registry keyed by class
- Recursive dependency resolution with cycle detection
- Memoizing singleton factory; direct instantiation returns the singleton
- Init chains that run once, however many callers await them

Usage:
    from di import Container

    container = Container()

    @container.service(depends_on=[Storage])
    class Poller:
        def __init__(self, storage: Storage):
            self.storage = storage

        async def init(self) -> None:
            ...

    poller = container.resolve(Poller)
    await poller.init()
"""

from di.registry import ServiceDefinition, ServiceRegistry
from di.lifecycle import (
    InitializationState,
    ServiceLifecycle,
    SingletonFactory,
    install_service,
)
from di.resolver import DependencyResolver
from di.container import (
    Container,
    get_container,
    reset_container,
    service,
)

__all__ = [
    # Registry
    "ServiceDefinition",
    "ServiceRegistry",
    # Lifecycle
    "InitializationState",
    "ServiceLifecycle",
    "SingletonFactory",
    "install_service",
    # Resolution
    "DependencyResolver",
    # Container
    "Container",
    "get_container",
    "reset_container",
    "service",
]
