"""
DecoExt - Dependency Resolver

Turns a service class into its live singleton by resolving the declared
dependency list recursively, in order, and handing the instances to the
class's singleton factory.
"""

from __future__ import annotations

import logging
from typing import Any, List, Type, TypeVar

from core.errors import DependencyCycleError, UnregisteredDependencyError
from di.registry import ServiceRegistry

T = TypeVar("T")

logger = logging.getLogger("decoext.di.resolver")


class DependencyResolver:
    """
    Recursive resolver over a ServiceRegistry.

    Unregistered classes are constructed with no arguments and carry no
    singleton guarantee, unless ``strict`` is set, in which case they raise
    UnregisteredDependencyError.
    """

    def __init__(self, registry: ServiceRegistry, strict: bool = False):
        self._registry = registry
        self._strict = strict
        self._resolving: List[Type] = []

    def resolve(self, cls: Type[T]) -> T:
        factory = self._registry.lookup(cls)
        if factory is None:
            if self._strict:
                raise UnregisteredDependencyError(cls)
            logger.debug("Constructing unregistered class %s", cls.__qualname__)
            return cls()

        if factory.constructed:
            return factory.instance

        if cls in self._resolving:
            start = self._resolving.index(cls)
            raise DependencyCycleError(self._resolving[start:] + [cls])

        self._resolving.append(cls)
        try:
            dependencies: List[Any] = [
                self.resolve(dependency) for dependency in factory.definition.dependencies
            ]
            return factory.get(dependencies)
        finally:
            self._resolving.pop()
