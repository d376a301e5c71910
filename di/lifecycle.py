"""
DecoExt - Singleton Lifecycle

Memoizing singleton factory and per-instance initialization state machine.

A service class is rewired by install_service() so that:
- ``MyService()`` returns the one instance (constructed on first use with
  its resolved dependencies; constructor arguments are ignored)
- ``instance.init()`` runs the dependency init chain and then the class's
  own ``init`` body exactly once, no matter how many callers await it

Subclasses of a service are ordinary classes: they construct normally and
their ``init`` calls the inherited body directly.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Optional, Sequence, Type

from config import InitFailurePolicy
from core.async_utils import gather_in_order, maybe_await
from di.registry import ServiceDefinition

logger = logging.getLogger("decoext.di.lifecycle")


class InitializationState(Enum):
    """Where a singleton is in its init chain."""

    NOT_INITIALIZED = "not_initialized"
    IN_FLIGHT = "in_flight"
    INITIALIZED = "initialized"
    FAILED = "failed"  # sticky failure policy only


async def _init_dependency(dependency: Any) -> None:
    init = getattr(dependency, "init", None)
    if callable(init):
        await maybe_await(init())


class ServiceLifecycle:
    """
    Initialization state machine for one singleton.

    The first caller of init() starts a task that initializes every
    dependency concurrently and then runs the instance's own body. Later
    callers await the same task. Once the task succeeds, init() returns
    immediately.

    On failure the original exception reaches every waiter. What happens
    next depends on the policy:
    - RETRY: the state returns to NOT_INITIALIZED and the next call starts over
    - STICKY: the state becomes FAILED and every later call re-raises

    A cancelled task returns the state to NOT_INITIALIZED under either policy.
    """

    def __init__(
        self,
        name: str,
        body: Optional[Callable[[], Any]],
        dependencies: Sequence[Any] = (),
        policy: InitFailurePolicy = InitFailurePolicy.RETRY,
    ):
        self.name = name
        self.state = InitializationState.NOT_INITIALIZED
        self._body = body
        self._dependencies = tuple(dependencies)
        self._policy = policy
        self._task: Optional[asyncio.Future] = None
        self._error: Optional[BaseException] = None

    @property
    def is_initialized(self) -> bool:
        return self.state is InitializationState.INITIALIZED

    async def init(self) -> None:
        if self.state is InitializationState.INITIALIZED:
            return
        if self._error is not None:
            raise self._error

        if self._task is None:
            logger.debug("Initializing service %s", self.name)
            self._task = asyncio.ensure_future(self._run())
            self.state = InitializationState.IN_FLIGHT

        # Shielded so that one cancelled waiter does not cancel the others
        await asyncio.shield(self._task)

    async def _run(self) -> None:
        try:
            await gather_in_order(_init_dependency(dep) for dep in self._dependencies)
            if self._body is not None:
                await maybe_await(self._body())
        except Exception as e:
            self._task = None
            if self._policy is InitFailurePolicy.STICKY:
                self.state = InitializationState.FAILED
                self._error = e
            else:
                self.state = InitializationState.NOT_INITIALIZED
            raise
        except BaseException:
            # Cancelled (e.g. loop teardown); the next init() starts over
            self._task = None
            self.state = InitializationState.NOT_INITIALIZED
            raise

        self._task = None
        self.state = InitializationState.INITIALIZED
        logger.debug("Service %s initialized", self.name)


class SingletonFactory:
    """
    Produces the one instance of a service definition.

    get() constructs the instance on the first call, passing the resolved
    dependencies to the class's original ``__init__``, and returns the same
    object on every later call.
    """

    def __init__(
        self,
        definition: ServiceDefinition,
        policy: InitFailurePolicy = InitFailurePolicy.RETRY,
        init_body: Optional[Callable[[Any], Any]] = None,
        original_new: Callable[..., Any] = object.__new__,
        original_init: Callable[..., None] = object.__init__,
    ):
        self.definition = definition
        self.policy = policy
        self.init_body = init_body
        self.instance: Any = None
        self.lifecycle: Optional[ServiceLifecycle] = None
        self._original_new = original_new
        self._original_init = original_init

    @property
    def constructed(self) -> bool:
        return self.lifecycle is not None

    def get(self, dependencies: Sequence[Any] = ()) -> Any:
        if self.lifecycle is not None:
            return self.instance

        cls = self.definition.cls
        if self._original_new is object.__new__:
            instance = object.__new__(cls)
        else:
            instance = self._original_new(cls, *dependencies)

        if self._original_init is object.__init__:
            object.__init__(instance)
        else:
            self._original_init(instance, *dependencies)

        body = self.init_body
        self.instance = instance
        self.lifecycle = ServiceLifecycle(
            self.definition.name,
            (lambda: body(instance)) if body is not None else None,
            dependencies,
            self.policy,
        )
        logger.debug("Instantiated service %s", self.definition.name)
        return instance


def install_service(
    cls: Type,
    definition: ServiceDefinition,
    policy: InitFailurePolicy,
    resolve: Callable[[Type], Any],
) -> SingletonFactory:
    """
    Rewire ``cls`` for singleton construction and build its factory.

    Args:
        cls: The service class, modified in place
        definition: Its definition (class plus dependency list)
        policy: Failure policy for the init chain
        resolve: Resolver entry point used when the class is called directly
    """
    original_new = cls.__new__
    original_init = cls.__init__
    body = getattr(cls, "init", None)

    factory = SingletonFactory(
        definition,
        policy=policy,
        init_body=body,
        original_new=original_new,
        original_init=original_init,
    )

    def __new__(klass, *args: Any, **kwargs: Any) -> Any:
        if klass is cls:
            return resolve(cls)
        if original_new is object.__new__:
            return object.__new__(klass)
        return original_new(klass, *args, **kwargs)

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        # The singleton was already initialized by the factory
        if type(self) is cls:
            return
        if original_init is object.__init__:
            object.__init__(self)
        else:
            original_init(self, *args, **kwargs)

    async def init(self) -> None:
        if factory.lifecycle is not None and self is factory.instance:
            await factory.lifecycle.init()
        elif body is not None:
            await maybe_await(body(self))

    init.__qualname__ = f"{cls.__qualname__}.init"
    init.__module__ = cls.__module__
    if body is not None:
        init.__doc__ = body.__doc__

    cls.__new__ = staticmethod(__new__)
    cls.__init__ = __init__
    cls.init = init
    return factory
