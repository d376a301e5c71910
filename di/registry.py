"""
DecoExt - Service Registry

Identity-keyed table from a service class to its singleton factory.

The registry does not validate anything: registering a class twice simply
replaces the factory, and looking up an unknown class returns None.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, Type

if TYPE_CHECKING:
    from di.lifecycle import SingletonFactory

logger = logging.getLogger("decoext.di.registry")


@dataclass(frozen=True)
class ServiceDefinition:
    """A declared service class and its ordered dependency list."""

    cls: Type
    dependencies: Tuple[Type, ...] = field(default_factory=tuple)

    @property
    def name(self) -> str:
        return self.cls.__qualname__


class ServiceRegistry:
    """
    Map from service class to SingletonFactory.

    Usage:
        registry = ServiceRegistry()
        registry.register(Poller, SingletonFactory(definition, policy))
        factory = registry.lookup(Poller)
    """

    def __init__(self) -> None:
        self._factories: Dict[Type, "SingletonFactory"] = {}

    def register(self, cls: Type, factory: "SingletonFactory") -> None:
        """Associate ``cls`` with ``factory``, replacing any previous entry."""
        self._factories[cls] = factory
        logger.debug("Registered service %s", cls.__qualname__)

    def lookup(self, cls: Type) -> Optional["SingletonFactory"]:
        return self._factories.get(cls)

    def is_registered(self, cls: Type) -> bool:
        return cls in self._factories

    def definitions(self) -> List[ServiceDefinition]:
        """All registered definitions, in registration order."""
        return [factory.definition for factory in self._factories.values()]

    def clear(self) -> None:
        """Forget every registration. Intended for tests."""
        self._factories.clear()

    def __contains__(self, cls: object) -> bool:
        return cls in self._factories

    def __len__(self) -> int:
        return len(self._factories)
